"""
static_access_lint/fixits.py
════════════════════════════

Applies :class:`~static_access_lint.diagnostics.FixIt` replacements to
source text.

Rules:

  * identical fixes are applied once;
  * of two overlapping fixes the one covering the wider range wins (a
    rewrite of ``E.S.f`` subsumes a rewrite of ``E.S``);
  * a fix with ``expected_text`` is skipped when the range currently holds
    something else, so running the same fixes twice changes nothing the
    second time.

License: MIT
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from static_access_lint.diagnostics import FixIt, SourceRange
from static_access_lint.errors import FixApplicationError

_log = logging.getLogger(__name__)


@dataclass
class FixResult:
    text: str
    applied: List[FixIt] = field(default_factory=list)
    skipped: List[FixIt] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def _line_starts(text: str) -> List[int]:
    starts = [0]
    for idx, ch in enumerate(text):
        if ch == "\n":
            starts.append(idx + 1)
    return starts


def _offset(starts: Sequence[int], text: str, line: int, column: int) -> int:
    if line < 1 or line > len(starts) or column < 1:
        raise FixApplicationError(f"position {line}:{column} is outside the text")
    off = starts[line - 1] + column - 1
    line_end = starts[line] - 1 if line < len(starts) else len(text)
    if off > line_end:
        raise FixApplicationError(f"column {column} is past the end of line {line}")
    return off


def range_text(text: str, source_range: SourceRange) -> Optional[str]:
    """The slice of ``text`` covered by ``source_range``, or ``None``."""
    starts = _line_starts(text)
    r = source_range
    try:
        begin = _offset(starts, text, r.start_line, r.start_column)
        end = _offset(starts, text, r.end_line, r.end_column)
    except FixApplicationError:
        return None
    if end < begin:
        return None
    return text[begin:end]


def _span_key(fix: FixIt) -> Tuple[int, int, int, int]:
    r = fix.range
    return (r.start_line, r.start_column, r.end_line, r.end_column)


def _width(fix: FixIt, starts: Sequence[int], text: str) -> int:
    r = fix.range
    return (_offset(starts, text, r.end_line, r.end_column)
            - _offset(starts, text, r.start_line, r.start_column))


def select_fixits(fixits: Iterable[FixIt], text: str) -> Tuple[List[FixIt], List[FixIt]]:
    """Split ``fixits`` into a non-overlapping set to apply and the rest."""
    starts = _line_starts(text)
    unique: Dict[Tuple[Tuple[int, int, int, int], str], FixIt] = {}
    for fix in fixits:
        unique.setdefault((_span_key(fix), fix.replacement), fix)

    kept: List[FixIt] = []
    dropped: List[FixIt] = []
    widths: Dict[int, int] = {}
    for fix in unique.values():
        try:
            widths[id(fix)] = _width(fix, starts, text)
        except FixApplicationError:
            # the range no longer exists; an expected-text fix is stale
            if fix.expected_text is None:
                raise
            dropped.append(fix)

    candidates = sorted(
        (f for f in unique.values() if id(f) in widths),
        key=lambda f: (-widths[id(f)], _span_key(f)),
    )
    for fix in candidates:
        if any(fix.range.overlaps(k.range) for k in kept):
            dropped.append(fix)
        else:
            kept.append(fix)
    return kept, dropped


def apply_fixits(text: str, fixits: Iterable[FixIt]) -> FixResult:
    """Apply ``fixits`` to ``text`` and return the rewritten text."""
    kept, dropped = select_fixits(fixits, text)
    starts = _line_starts(text)
    result = FixResult(text=text, skipped=list(dropped))

    spans: List[Tuple[int, int, FixIt]] = []
    for fix in kept:
        r = fix.range
        begin = _offset(starts, text, r.start_line, r.start_column)
        end = _offset(starts, text, r.end_line, r.end_column)
        if fix.expected_text is not None and text[begin:end] != fix.expected_text:
            _log.info("Skipping fix at %s: source no longer matches", r)
            result.skipped.append(fix)
            continue
        spans.append((begin, end, fix))

    out = text
    for begin, end, fix in sorted(spans, key=lambda s: s[0], reverse=True):
        out = out[:begin] + fix.replacement + out[end:]
        result.applied.append(fix)
    result.applied.reverse()
    result.text = out
    return result


def group_by_file(fixits: Iterable[FixIt]) -> Dict[str, List[FixIt]]:
    grouped: Dict[str, List[FixIt]] = defaultdict(list)
    for fix in fixits:
        grouped[fix.range.file].append(fix)
    return dict(grouped)


def apply_fixits_to_file(path: Union[str, Path], fixits: Iterable[FixIt]) -> FixResult:
    """Rewrite ``path`` in place; the file is left untouched if nothing applies."""
    p = Path(path)
    original = p.read_text(encoding="utf-8")
    result = apply_fixits(original, fixits)
    if result.changed:
        p.write_text(result.text, encoding="utf-8")
        _log.info("Applied %d fix(es) to %s", len(result.applied), p)
    return result


__all__ = [
    "FixResult",
    "range_text",
    "select_fixits",
    "apply_fixits",
    "group_by_file",
    "apply_fixits_to_file",
]
