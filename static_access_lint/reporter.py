#!/usr/bin/env python3
"""
static_access_lint/reporter.py
══════════════════════════════

Renders :class:`~static_access_lint.diagnostics.Diagnostic`s.

Output formats
──────────────
  • text  : colourful Rust-style rendering with source snippet and the
            suggested rewrite (falls back to ``plain`` when not a TTY)
  • plain : classic cppcheck one-liner plus indented notes
  • json  : cppcheck addon protocol, one JSON object per line
  • gcc   : ``file:line:col: severity: message [id]``
  • sarif : SARIF 2.1.0 document, written when the reporter finishes

Every text/plain diagnostic ends with the cppcheck one-liner:
    [filename:line]: (severity) message [errorId]

Usage
─────
    with Reporter(fmt="text") as rep:
        for diag in results.diagnostics:
            rep.report(diag)
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO, Tuple

from termcolor import colored, cprint

from static_access_lint.diagnostics import Diagnostic, DiagnosticSeverity, FixIt

FORMATS: Tuple[str, ...] = ("text", "plain", "json", "gcc", "sarif")

# severity → (termcolor colour, SARIF level)
_SEVERITY_STYLE: Dict[DiagnosticSeverity, Tuple[str, str]] = {
    DiagnosticSeverity.ERROR: ("red", "error"),
    DiagnosticSeverity.WARNING: ("yellow", "warning"),
    DiagnosticSeverity.STYLE: ("cyan", "note"),
    DiagnosticSeverity.PERFORMANCE: ("magenta", "warning"),
    DiagnosticSeverity.PORTABILITY: ("blue", "warning"),
    DiagnosticSeverity.INFORMATION: ("white", "note"),
}


def _colour(severity: DiagnosticSeverity) -> str:
    return _SEVERITY_STYLE[severity][0]


def _sarif_level(severity: DiagnosticSeverity) -> str:
    return _SEVERITY_STYLE[severity][1]


def cppcheck_line(diag: Diagnostic) -> str:
    """Classic one-liner: ``[file:line]: (severity) message [id]``."""
    loc = diag.location
    return f"[{loc.file}:{loc.line}]: ({diag.severity.value}) {diag.message} [{diag.error_id}]"


def _fix_hint(diag: Diagnostic) -> Optional[Tuple[FixIt, bool]]:
    """The suggested fix and whether it hangs off a note."""
    for fix in diag.fixits:
        return fix, False
    for note in diag.notes:
        for fix in note.fixits:
            return fix, True
    return None


# ═════════════════════════════════════════════════════════════════════════
#  STATS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class ReporterStats:
    """Aggregate counts per severity, plus fixable findings."""
    error: int = 0
    warning: int = 0
    style: int = 0
    performance: int = 0
    portability: int = 0
    information: int = 0
    fixable: int = 0

    def record(self, diag: Diagnostic) -> None:
        attr = diag.severity.value
        setattr(self, attr, getattr(self, attr) + 1)
        if diag.has_fix:
            self.fixable += 1

    @property
    def total(self) -> int:
        return (
            self.error
            + self.warning
            + self.style
            + self.performance
            + self.portability
            + self.information
        )

    def summary_line(self) -> str:
        parts: List[str] = []
        if self.error:
            parts.append(f"{self.error} error{'s' if self.error != 1 else ''}")
        if self.warning:
            parts.append(f"{self.warning} warning{'s' if self.warning != 1 else ''}")
        if self.style:
            parts.append(f"{self.style} style")
        if self.performance:
            parts.append(f"{self.performance} performance")
        if self.portability:
            parts.append(f"{self.portability} portability")
        if self.information:
            parts.append(f"{self.information} info")
        if not parts:
            return "no diagnostics emitted"
        line = "; ".join(parts) + f" ({self.total} total"
        if self.fixable:
            line += f", {self.fixable} fixable"
        return line + ")"


# ═════════════════════════════════════════════════════════════════════════
#  TERMINAL RENDERER  (Rust-style colourful output)
# ═════════════════════════════════════════════════════════════════════════

class _TerminalRenderer:
    """Render diagnostics to a terminal with colours."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        colour = _colour(diag.severity)
        lines: List[str] = []

        # ── header: severity[errorId]: message ───────────────────────
        sev_str = colored(f"{diag.severity.value}[{diag.error_id}]", colour, attrs=["bold"])
        lines.append(f"{sev_str}: {colored(diag.message, 'white', attrs=['bold'])}")

        loc = diag.location
        arrow = colored("-->", "blue", attrs=["bold"])
        lines.append(f"  {arrow} {loc}")

        hint = _fix_hint(diag)
        if loc.line:
            lines.extend(self._render_snippet(diag, hint[0] if hint else None, colour))

        for note in diag.notes:
            prefix = colored("note", "cyan", attrs=["bold"])
            lines.append(f"  = {prefix}: {note.message}")

        if hint is not None:
            fix, on_note = hint
            prefix = colored("help", "green", attrs=["bold"])
            suggestion = colored(fix.replacement, "green", attrs=["bold"])
            flag = "--fix-notes" if on_note else "--fix"
            lines.append(f"  = {prefix}: use {suggestion} (applied with {flag})")

        lines.append(colored(cppcheck_line(diag), attrs=["dark"]))
        lines.append("")
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()

    def _render_snippet(
        self, diag: Diagnostic, fix: Optional[FixIt], colour: str
    ) -> List[str]:
        loc = diag.location
        source = self._read_line(loc.file, loc.line)
        if source is None:
            return []
        gutter_w = len(str(loc.line)) + 1
        pipe = colored("|", "blue", attrs=["bold"])
        line_prefix = colored(str(loc.line).rjust(gutter_w), "blue", attrs=["bold"])

        start = max(loc.column, 1)
        if fix is not None and fix.range.end_line == loc.line:
            width = max(fix.range.end_column - start, 1)
        elif fix is not None:
            width = max(len(source) - start + 1, 1)
        else:
            width = 1
        marker = colored("^" * width, colour, attrs=["bold"])
        blank_gutter = " " * gutter_w
        return [
            f" {line_prefix} {pipe} {source}",
            f" {blank_gutter} {pipe} {' ' * (start - 1)}{marker}",
        ]

    @staticmethod
    def _read_line(filepath: str, line: int) -> Optional[str]:
        """Attempt to read one source line; ``None`` on failure."""
        if not filepath:
            return None
        try:
            with open(filepath, "r", errors="replace") as fh:
                for idx, text in enumerate(fh, 1):
                    if idx == line:
                        return text.rstrip("\n\r")
        except OSError:
            return None
        return None


# ═════════════════════════════════════════════════════════════════════════
#  PLAIN / LINE RENDERERS
# ═════════════════════════════════════════════════════════════════════════

class _PlainRenderer:
    """Non-coloured renderer: one cppcheck-compatible line per diagnostic."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        self._stream.write(cppcheck_line(diag) + "\n")
        for note in diag.notes:
            self._stream.write(f"  note [{note.location}]: {note.message}\n")
        hint = _fix_hint(diag)
        if hint is not None:
            self._stream.write(f"  fix [{hint[0].range}]: {hint[0].replacement}\n")
        self._stream.flush()


class _JsonRenderer:
    """cppcheck addon protocol: one JSON object per line."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        self._stream.write(diag.to_json_str() + "\n")
        self._stream.flush()


class _GccRenderer:
    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        self._stream.write(diag.to_gcc_format() + "\n")
        self._stream.flush()


# ═════════════════════════════════════════════════════════════════════════
#  SARIF 2.1.0 BUILDER
# ═════════════════════════════════════════════════════════════════════════

def _region(file_range: Any) -> Dict[str, int]:
    return {
        "startLine": file_range.start_line,
        "startColumn": file_range.start_column,
        "endLine": file_range.end_line,
        "endColumn": file_range.end_column,
    }


class _SarifBuilder:
    """Accumulates diagnostics and serialises a SARIF 2.1.0 document."""

    SARIF_VERSION = "2.1.0"
    SARIF_SCHEMA = (
        "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/"
        "Schemata/sarif-schema-2.1.0.json"
    )

    def __init__(self) -> None:
        self._results: List[Dict[str, Any]] = []
        self._rules: Dict[str, Dict[str, Any]] = {}  # errorId → rule obj

    def add(self, diag: Diagnostic) -> None:
        if diag.error_id not in self._rules:
            rule: Dict[str, Any] = {
                "id": diag.error_id,
                "shortDescription": {"text": diag.message},
            }
            if diag.checker_name:
                rule["name"] = diag.checker_name
            self._rules[diag.error_id] = rule

        loc = diag.location
        result: Dict[str, Any] = {
            "ruleId": diag.error_id,
            "level": _sarif_level(diag.severity),
            "message": {"text": diag.message},
        }
        if loc.file:
            phys: Dict[str, Any] = {
                "artifactLocation": {"uri": loc.file},
                "region": {"startLine": loc.line},
            }
            if loc.column:
                phys["region"]["startColumn"] = loc.column
            result["locations"] = [{"physicalLocation": phys}]

        related: List[Dict[str, Any]] = []
        for idx, note in enumerate(diag.notes):
            related.append({
                "id": idx,
                "message": {"text": note.message},
                "physicalLocation": {
                    "artifactLocation": {"uri": note.location.file},
                    "region": {"startLine": note.location.line},
                },
            })
        if related:
            result["relatedLocations"] = related

        fixes = [
            {
                "description": {"text": f"use '{fix.replacement}'"},
                "artifactChanges": [{
                    "artifactLocation": {"uri": fix.range.file},
                    "replacements": [{
                        "deletedRegion": _region(fix.range),
                        "insertedContent": {"text": fix.replacement},
                    }],
                }],
            }
            for fix in diag.iter_fixits(include_notes=True)
        ]
        if fixes:
            result["fixes"] = fixes

        if diag.evidence:
            result["properties"] = dict(diag.evidence)

        self._results.append(result)

    def to_dict(self, tool_name: str, version: str) -> Dict[str, Any]:
        return {
            "$schema": self.SARIF_SCHEMA,
            "version": self.SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": tool_name,
                            "version": version,
                            "rules": list(self._rules.values()),
                        }
                    },
                    "results": self._results,
                }
            ],
        }

    def to_json(self, tool_name: str, version: str) -> str:
        return json.dumps(self.to_dict(tool_name, version), indent=2)


# ═════════════════════════════════════════════════════════════════════════
#  REPORTER  (main entry point)
# ═════════════════════════════════════════════════════════════════════════

class Reporter:
    """
    Central diagnostic dispatcher.

    Use as a context manager::

        with Reporter(stream, fmt="json") as rep:
            rep.report_all(results.diagnostics)
        # finish() is called automatically
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        fmt: str = "text",
        colour: Optional[bool] = None,
        summary_stream: Optional[TextIO] = None,
        tool_name: str = "static-access-lint",
        tool_version: Optional[str] = None,
    ) -> None:
        if fmt not in FORMATS:
            raise ValueError(f"unknown output format '{fmt}' (expected one of {', '.join(FORMATS)})")
        self.stream = stream if stream is not None else sys.stdout
        self.summary_stream = summary_stream if summary_stream is not None else sys.stderr
        self.fmt = fmt
        self.tool_name = tool_name
        if tool_version is None:
            from static_access_lint import __version__
            tool_version = __version__
        self.tool_version = tool_version
        self.stats = ReporterStats()
        self._finished = False

        self._sarif: Optional[_SarifBuilder] = None
        if fmt == "sarif":
            self._sarif = _SarifBuilder()
            self._renderer = None
        elif fmt == "json":
            self._renderer = _JsonRenderer(self.stream)
        elif fmt == "gcc":
            self._renderer = _GccRenderer(self.stream)
        else:
            use_colour = colour if colour is not None else (
                fmt == "text" and hasattr(self.stream, "isatty") and self.stream.isatty()
            )
            if use_colour:
                self._renderer = _TerminalRenderer(self.stream)
            else:
                self._renderer = _PlainRenderer(self.stream)

    # ── context manager ──────────────────────────────────────────────

    def __enter__(self) -> Reporter:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.finish()

    # ── accept ───────────────────────────────────────────────────────

    def report(self, diag: Diagnostic) -> None:
        self.stats.record(diag)
        if self._renderer is not None:
            self._renderer.render(diag)
        if self._sarif is not None:
            self._sarif.add(diag)

    def report_all(self, diags: Iterable[Diagnostic]) -> None:
        for diag in diags:
            self.report(diag)

    # ── finalisation ─────────────────────────────────────────────────

    def finish(self) -> ReporterStats:
        """
        Write the SARIF document or print the summary line.

        Safe to call more than once; only the first call has an effect.
        """
        if self._finished:
            return self.stats
        self._finished = True

        if self._sarif is not None:
            self.stream.write(self._sarif.to_json(self.tool_name, self.tool_version) + "\n")
            self.stream.flush()
            return self.stats

        if self.fmt not in ("text", "plain"):
            return self.stats

        summary = self.stats.summary_line()
        if isinstance(self._renderer, _TerminalRenderer):
            if self.stats.error:
                colour = "red"
            elif self.stats.total:
                colour = "yellow"
            else:
                colour = "green"
            cprint(f"  ╰─ {summary}", colour, attrs=["bold"], file=self.summary_stream)
        else:
            print(f"  {summary}", file=self.summary_stream)
        return self.stats


def render_diagnostics(
    diags: Sequence[Diagnostic], stream: TextIO, fmt: str = "plain", **kwargs: Any
) -> ReporterStats:
    """Render ``diags`` in one go and return the stats."""
    with Reporter(stream, fmt=fmt, **kwargs) as rep:
        rep.report_all(diags)
    return rep.stats


__all__ = [
    "FORMATS",
    "ReporterStats",
    "Reporter",
    "cppcheck_line",
    "render_diagnostics",
]
