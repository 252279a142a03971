"""
static_access_lint/diagnostics.py
═════════════════════════════════

Diagnostic model shared by the emitter, the checker and the reporter.

A :class:`Diagnostic` is the cppcheck-addon-compatible record of one
finding.  It carries an optional list of :class:`Note` sub-diagnostics and
:class:`FixIt` replacements; a fix can hang off the diagnostic itself or
off one of its notes (clang-tidy style, where fixes on notes are applied
only on explicit request).

License: MIT
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional, Tuple


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — SEVERITY / CONFIDENCE
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """cppcheck-compatible severity levels."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    PERFORMANCE = "performance"
    PORTABILITY = "portability"
    INFORMATION = "information"


class Confidence(Enum):
    """
    How certain we are that the diagnostic is a true positive.

    HIGH   — the semantic model proves the member is static
    MEDIUM — the member was resolved heuristically (e.g. enumerator lookup)
    LOW    — pattern-based, may be a false positive
    """
    HIGH = auto()
    MEDIUM = auto()
    LOW = auto()


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — LOCATIONS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class SourceRange:
    """
    A half-open range of source text.

    Lines and columns are 1-based; ``end_column`` points one past the last
    character of the range.
    """
    file: str = ""
    start_line: int = 0
    start_column: int = 0
    end_line: int = 0
    end_column: int = 0

    @property
    def start(self) -> SourceLocation:
        return SourceLocation(self.file, self.start_line, self.start_column)

    @property
    def end(self) -> SourceLocation:
        return SourceLocation(self.file, self.end_line, self.end_column)

    def overlaps(self, other: SourceRange) -> bool:
        """True if both ranges share at least one character."""
        if self.file != other.file:
            return False
        a0 = (self.start_line, self.start_column)
        a1 = (self.end_line, self.end_column)
        b0 = (other.start_line, other.start_column)
        b1 = (other.end_line, other.end_column)
        return a0 < b1 and b0 < a1

    def __str__(self) -> str:
        return (
            f"{self.file}:{self.start_line}:{self.start_column}"
            f"-{self.end_line}:{self.end_column}"
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — FIX-ITS, NOTES, DIAGNOSTICS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FixIt:
    """
    Replace the text covered by ``range`` with ``replacement``.

    ``expected_text`` is the text the range is supposed to hold; when set,
    :func:`static_access_lint.fixits.apply_fixits` refuses to touch a range
    whose current text differs (so a fix cannot be applied twice).
    """
    range: SourceRange
    replacement: str
    expected_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "file": self.range.file,
            "startLine": self.range.start_line,
            "startColumn": self.range.start_column,
            "endLine": self.range.end_line,
            "endColumn": self.range.end_column,
            "replacement": self.replacement,
        }
        if self.expected_text is not None:
            result["expected"] = self.expected_text
        return result


@dataclass(frozen=True)
class Note:
    """A secondary message attached to a diagnostic."""
    message: str
    location: SourceLocation
    fixits: Tuple[FixIt, ...] = ()


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Designed for direct serialization to cppcheck's JSON addon protocol.

    Attributes
    ----------
    error_id     : Unique identifier (``staticAccessedThroughInstance``)
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location (start of the member access)
    confidence   : Confidence level
    checker_name : Name of the checker that produced this
    addon        : Addon name for cppcheck protocol
    extra        : Additional context string
    notes        : Secondary messages (side-effect warning)
    fixits       : Replacements attached directly to the diagnostic
    evidence     : Machine-readable evidence dict for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    confidence: Confidence = Confidence.HIGH
    checker_name: str = ""
    addon: str = "static-access-lint"
    extra: str = ""
    notes: Tuple[Note, ...] = ()
    fixits: Tuple[FixIt, ...] = ()
    evidence: Dict[str, Any] = field(default_factory=dict)

    def iter_fixits(self, include_notes: bool = False) -> Iterator[FixIt]:
        """Yield the diagnostic's own fixes, then (optionally) its notes' fixes."""
        yield from self.fixits
        if include_notes:
            for note in self.notes:
                yield from note.fixits

    @property
    def has_fix(self) -> bool:
        return bool(self.fixits) or any(n.fixits for n in self.notes)

    def to_cppcheck_json(self) -> Dict[str, Any]:
        """Serialize to cppcheck's JSON addon output format."""
        result: Dict[str, Any] = {
            "file": self.location.file,
            "linenr": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "addon": self.addon,
            "errorId": self.error_id,
            "extra": self.extra,
        }
        fixes = [f.to_dict() for f in self.iter_fixits(include_notes=True)]
        if fixes:
            result["fixes"] = fixes
        if self.notes:
            result["notes"] = [
                {
                    "file": n.location.file,
                    "linenr": n.location.line,
                    "column": n.location.column,
                    "message": n.message,
                }
                for n in self.notes
            ]
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string for cppcheck addon stdout."""
        return json.dumps(self.to_cppcheck_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        lines = [f"{self.location}: {sev}: {self.message} [{self.error_id}]"]
        for note in self.notes:
            lines.append(f"{note.location}: note: {note.message}")
        return "\n".join(lines)


__all__ = [
    "DiagnosticSeverity",
    "Confidence",
    "SourceLocation",
    "SourceRange",
    "FixIt",
    "Note",
    "Diagnostic",
]
