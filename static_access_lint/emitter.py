"""
static_access_lint/emitter.py
═════════════════════════════

Turns a :class:`RewriteDecision` into a cppcheck-style
:class:`Diagnostic`.

    warning  at the start of the access
             "static member accessed through instance"
    note     at the same place, when the base may have side effects
             "member base expression may carry some side effects"
    fix-it   replacement of the full access range, attached to the note
             when there is one (so it only applies on request), otherwise
             to the warning

License: MIT
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from static_access_lint.config import CheckConfig
from static_access_lint.diagnostics import (
    Confidence,
    Diagnostic,
    DiagnosticSeverity,
    FixIt,
    Note,
)
from static_access_lint.model import MemberAccessNode, RewriteDecision

CHECK_NAME = "readability-static-accessed-through-instance"
ERROR_ID = "staticAccessedThroughInstance"
WARNING_MESSAGE = "static member accessed through instance"
SIDE_EFFECT_NOTE = "member base expression may carry some side effects"

# Returns the current source text of a range, or None if unknown.
SourceTextLookup = Callable[[MemberAccessNode], Optional[str]]


class DiagnosticEmitter:
    """Builds diagnostics for decisions that warn."""

    def __init__(
        self,
        config: Optional[CheckConfig] = None,
        source_text: Optional[SourceTextLookup] = None,
        severity: DiagnosticSeverity = DiagnosticSeverity.STYLE,
    ) -> None:
        self.config = config or CheckConfig()
        self._source_text = source_text
        self.severity = severity

    def emit(
        self,
        node: MemberAccessNode,
        decision: RewriteDecision,
        confidence: Confidence = Confidence.HIGH,
    ) -> Optional[Diagnostic]:
        if not decision.should_warn:
            return None

        location = node.source_range.start
        fixit: Optional[FixIt] = None
        if decision.replacement_text is not None:
            expected = self._source_text(node) if self._source_text else None
            fixit = FixIt(node.source_range, decision.replacement_text, expected)

        notes = ()
        fixits = ()
        if decision.should_emit_side_effect_note:
            on_note = fixit is not None and self.config.attach_fix_to_note
            notes = (Note(
                SIDE_EFFECT_NOTE,
                location,
                fixits=(fixit,) if on_note else (),
            ),)
            if fixit is not None and not on_note:
                fixits = (fixit,)
        elif fixit is not None:
            fixits = (fixit,)

        evidence: Dict[str, object] = {
            "member": node.member.name,
            "memberKind": node.member.kind.name.lower(),
            "operator": node.operator.value,
            "base": str(node.base),
        }
        if decision.qualifier is not None:
            evidence["qualifier"] = decision.qualifier
        if decision.fix_blocker is not None:
            evidence["fixBlocker"] = decision.fix_blocker.value

        extra = ""
        if decision.replacement_text is not None:
            extra = f"use '{decision.replacement_text}'"

        return Diagnostic(
            error_id=ERROR_ID,
            message=WARNING_MESSAGE,
            severity=self.severity,
            location=location,
            confidence=confidence,
            checker_name=CHECK_NAME,
            extra=extra,
            notes=notes,
            fixits=fixits,
            evidence=evidence,
        )


__all__ = [
    "CHECK_NAME",
    "ERROR_ID",
    "WARNING_MESSAGE",
    "SIDE_EFFECT_NOTE",
    "DiagnosticEmitter",
]
