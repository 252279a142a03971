# tests/test_emitter.py
"""Tests for turning rewrite decisions into diagnostics with notes and fixes."""

import json

import pytest

from static_access_lint.config import CheckConfig
from static_access_lint.diagnostics import Confidence, DiagnosticSeverity, SourceRange
from static_access_lint.emitter import (
    CHECK_NAME,
    ERROR_ID,
    SIDE_EFFECT_NOTE,
    WARNING_MESSAGE,
    DiagnosticEmitter,
)
from static_access_lint.model import NO_ACTION, Expr, FixBlocker, RewriteDecision
from static_access_lint.planner import RewritePlanner
from tests.conftest import make_node

RANGE = SourceRange("t.cpp", 4, 3, 4, 18)


@pytest.fixture
def call_node(field_x):
    """``f(1, 2, 3, 4).x``"""
    base = Expr.call(Expr.ref("f"), *(Expr.literal(str(i)) for i in range(1, 5)))
    return make_node(base, field_x, source_range=RANGE)


class TestWarning:

    def test_no_diagnostic_without_warning(self, plain_node):
        assert DiagnosticEmitter().emit(plain_node, NO_ACTION) is None

    def test_plain_warning_with_fix(self, plain_node):
        diag = DiagnosticEmitter().emit(plain_node, RewritePlanner().plan(plain_node))
        assert diag.error_id == ERROR_ID == "staticAccessedThroughInstance"
        assert diag.message == WARNING_MESSAGE
        assert diag.checker_name == CHECK_NAME
        assert diag.severity is DiagnosticSeverity.STYLE
        assert diag.location == plain_node.source_range.start
        assert diag.notes == ()
        assert len(diag.fixits) == 1
        fix = diag.fixits[0]
        assert fix.replacement == "C::x"
        assert fix.range == plain_node.source_range
        assert diag.extra == "use 'C::x'"

    def test_warning_without_fix(self, plain_node):
        decision = RewriteDecision(should_warn=True, fix_blocker=FixBlocker.MACRO_EXPANSION)
        diag = DiagnosticEmitter().emit(plain_node, decision)
        assert not diag.has_fix
        assert diag.extra == ""
        assert diag.evidence["fixBlocker"] == "macro-expansion"

    def test_expected_text_from_lookup(self, plain_node):
        emitter = DiagnosticEmitter(source_text=lambda node: "c1.x")
        diag = emitter.emit(plain_node, RewritePlanner().plan(plain_node))
        assert diag.fixits[0].expected_text == "c1.x"

    def test_confidence_passed_through(self, plain_node):
        diag = DiagnosticEmitter().emit(plain_node, RewritePlanner().plan(plain_node),
                                        Confidence.MEDIUM)
        assert diag.confidence is Confidence.MEDIUM

    def test_evidence(self, plain_node):
        diag = DiagnosticEmitter().emit(plain_node, RewritePlanner().plan(plain_node))
        assert diag.evidence == {
            "member": "x",
            "memberKind": "field",
            "operator": ".",
            "base": "c1",
            "qualifier": "C",
        }


class TestSideEffectNote:

    def test_fix_attached_to_note(self, call_node):
        diag = DiagnosticEmitter().emit(call_node, RewritePlanner().plan(call_node))
        assert diag.fixits == ()
        assert len(diag.notes) == 1
        note = diag.notes[0]
        assert note.message == SIDE_EFFECT_NOTE
        assert note.location == RANGE.start
        assert [f.replacement for f in note.fixits] == ["C::x"]
        assert diag.has_fix
        assert list(diag.iter_fixits()) == []
        assert len(list(diag.iter_fixits(include_notes=True))) == 1

    def test_fix_on_warning_when_configured(self, call_node):
        cfg = CheckConfig(attach_fix_to_note=False)
        diag = DiagnosticEmitter(cfg).emit(call_node, RewritePlanner(cfg).plan(call_node))
        assert diag.notes[0].fixits == ()
        assert [f.replacement for f in diag.fixits] == ["C::x"]

    def test_note_without_fix(self, call_node):
        decision = RewriteDecision(
            should_warn=True,
            should_emit_side_effect_note=True,
            fix_blocker=FixBlocker.NESTING_TOO_DEEP,
        )
        diag = DiagnosticEmitter().emit(call_node, decision)
        assert len(diag.notes) == 1
        assert not diag.has_fix


class TestSerialisation:

    def test_cppcheck_json(self, call_node):
        diag = DiagnosticEmitter().emit(call_node, RewritePlanner().plan(call_node))
        data = json.loads(diag.to_json_str())
        assert data["errorId"] == ERROR_ID
        assert data["severity"] == "style"
        assert data["linenr"] == 4
        assert data["column"] == 3
        assert data["notes"][0]["message"] == SIDE_EFFECT_NOTE
        assert data["fixes"][0]["replacement"] == "C::x"
        assert data["fixes"][0]["endColumn"] == 18

    def test_gcc_format_includes_note(self, call_node):
        diag = DiagnosticEmitter().emit(call_node, RewritePlanner().plan(call_node))
        lines = diag.to_gcc_format().splitlines()
        assert lines[0] == "t.cpp:4:3: style: static member accessed through instance [staticAccessedThroughInstance]"
        assert lines[1] == f"t.cpp:4:3: note: {SIDE_EFFECT_NOTE}"
