# tests/test_cppcheck_adapter.py
"""
Tests for building member-access nodes from a cppcheck token graph.

The token graphs come from ``tests.fakes``: real line/column positions,
hand-wired AST links.
"""

import pytest

from static_access_lint.cppcheck_adapter import (
    CppcheckAdapter,
    build_enumerator_index,
    enumerator_names,
    expr_from_token,
    is_scoped_enum,
    iter_member_accesses,
    uses_overloaded_arrow,
)
from static_access_lint.fixits import range_text
from static_access_lint.model import (
    AccessOperator,
    ExprKind,
    MemberKind,
    ScopeDescriptor,
    ScopeKind,
)
from static_access_lint.planner import plan
from static_access_lint.scope_path import resolve_qualifier
from tests.fakes import (
    WIDGET_SOURCE,
    FakeConfiguration,
    FakeFunction,
    FakeScope,
    FakeToken,
    FakeValueType,
    FakeVariable,
    TokenStream,
    global_scope,
    set_ast,
    widget_configuration,
)

T = ScopeDescriptor.named_type


def single_access(line, member_name, scope=None, file="t.cpp"):
    """Tokenise ``line`` and wire ``<base> . <member>`` for its first dot."""
    ts = TokenStream(file)
    ts.add_line(line, 1, scope=scope)
    dot = ts.find(".")
    member = ts.find(member_name)
    return ts, dot, member


# ═══════════════════════════════════════════════════════════════════════════
#  NODE CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════════════

class TestWidgetNodes:

    @pytest.fixture
    def nodes(self):
        return list(iter_member_accesses(widget_configuration("widget.cpp")))

    def test_both_accesses_found(self, nodes):
        assert len(nodes) == 2
        assert all(n.member.kind is MemberKind.FIELD for n in nodes)
        assert all(n.member.is_static for n in nodes)

    def test_plain_access(self, nodes):
        node = nodes[0]
        assert node.base.kind is ExprKind.DECL_REF
        assert node.operator is AccessOperator.DOT
        assert node.member.scope_chain == (T("C"),)
        assert range_text(WIDGET_SOURCE, node.source_range) == "c1.x"

    def test_call_base_range_and_shape(self, nodes):
        node = nodes[1]
        assert node.base.kind is ExprKind.CALL
        assert [c.text for c in node.base.children] == ["f", "1", "2", "3", "4"]
        assert range_text(WIDGET_SOURCE, node.source_range) == "f(1, 2, 3, 4).x"

    def test_decisions(self, nodes):
        first, second = (plan(n) for n in nodes)
        assert first.replacement_text == "C::x"
        assert not first.should_emit_side_effect_note
        assert second.replacement_text == "C::x"
        assert second.should_emit_side_effect_note

    def test_no_context_flags(self, nodes):
        for node in nodes:
            assert not node.in_macro_expansion
            assert not node.in_template_dependent_context
            assert node.access_site_chain == ()


class TestRanges:

    def test_grouping_parentheses_included(self):
        record = FakeScope("Struct", "C", global_scope())
        ts, dot, x = single_access("  (c1).x;", "x")
        c1 = ts.find("c1")
        x.variable = FakeVariable(scope=record, isStatic=True)
        set_ast(dot, c1, x)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert (node.source_range.start_column, node.source_range.end_column) == (3, 9)

    def test_arrow_range(self):
        record = FakeScope("Struct", "C", global_scope())
        ts, dot, f = single_access("  c2->f();", "f")
        c2 = ts.find("c2")
        c2.valueType = FakeValueType(record, pointer=1)
        f.function = FakeFunction("f", nestedIn=record, isStatic=True)
        set_ast(ts.find("("), set_ast(dot, c2, f))
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.operator is AccessOperator.ARROW
        assert node.member.kind is MemberKind.METHOD
        assert range_text("  c2->f();\n", node.source_range) == "c2->f"
        assert plan(node).replacement_text == "C::f"

    def test_multi_line_base(self):
        record = FakeScope("Struct", "C", global_scope())
        ts = TokenStream("t.cpp")
        ts.add_line("  [] {", 1)
        ts.add_line("    return c;", 2)
        ts.add_line("  }().x;", 3)
        lam = ts.find("[")
        call = set_ast(ts.find("(", 3), lam)
        x = ts.find("x")
        x.variable = FakeVariable(scope=record, isStatic=True)
        dot = set_ast(ts.find("."), call, x)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        r = node.source_range
        assert (r.start_line, r.start_column, r.end_line, r.end_column) == (1, 3, 3, 8)
        assert plan(node).should_emit_side_effect_note


class TestMemberResolution:

    def test_non_member_variable_skipped(self):
        ts, dot, x = single_access("  c1.x;", "x")
        x.variable = FakeVariable(scope=FakeScope("Function", "g"), isStatic=True)
        set_ast(dot, ts.find("c1"), x)
        assert CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot) is None

    def test_unresolved_member_skipped(self):
        ts, dot, x = single_access("  c1.x;", "x")
        set_ast(dot, ts.find("c1"), x)
        assert list(iter_member_accesses(FakeConfiguration(ts.tokens))) == []

    def test_member_must_be_a_name(self):
        ts = TokenStream()
        ts.add_line("a.1;", 1)
        set_ast(ts.find("."), ts.find("a"), ts.find("1"))
        assert CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(ts.find(".")) is None

    def test_overloaded_arrow(self):
        glob = global_scope()
        ptr = FakeScope("Class", "Ptr", glob)
        q_scope = FakeScope("Struct", "Q", glob)
        ts, dot, k = single_access("  q->K = 10;", "K")
        q = ts.find("q")
        q.valueType = FakeValueType(ptr, pointer=0)
        k.variable = FakeVariable(scope=q_scope, isStatic=True)
        set_ast(ts.find("="), set_ast(dot, q, k), ts.find("10"))
        assert uses_overloaded_arrow(dot)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.base.kind is ExprKind.OPERATOR_CALL
        d = plan(node)
        assert d.should_emit_side_effect_note
        assert d.replacement_text == "Q::K"

    @pytest.mark.parametrize("value_type", ["smart-pointer", "iterator"])
    def test_library_wrapper_arrow(self, value_type):
        # std::unique_ptr<Q> p; p->K;  the wrapper has no scope in the dump
        q_scope = FakeScope("Struct", "Q", global_scope())
        ts, dot, k = single_access("  p->K;", "K")
        p = ts.find("p")
        p.valueType = FakeValueType(None, pointer=0, type=value_type)
        k.variable = FakeVariable(scope=q_scope, isStatic=True)
        set_ast(dot, p, k)
        assert uses_overloaded_arrow(dot)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.base.kind is ExprKind.OPERATOR_CALL
        d = plan(node)
        assert d.should_emit_side_effect_note
        assert d.replacement_text == "Q::K"

    def test_raw_pointer_arrow_is_not_a_call(self):
        q_scope = FakeScope("Struct", "Q", global_scope())
        ts, dot, k = single_access("  p->K;", "K")
        p = ts.find("p")
        p.valueType = FakeValueType(q_scope, pointer=1)
        k.variable = FakeVariable(scope=q_scope, isStatic=True)
        set_ast(dot, p, k)
        assert not uses_overloaded_arrow(dot)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.base.kind is ExprKind.DECL_REF
        assert not plan(node).should_emit_side_effect_note

    def test_builtin_coordinate_not_flagged(self):
        builtin = FakeScope("Struct", "__cuda_builtin_threadIdx_t", global_scope())
        ts, dot, x = single_access("  threadIdx.x;", "x")
        x.variable = FakeVariable(scope=builtin, isStatic=True)
        set_ast(dot, ts.find("threadIdx"), x)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert not plan(node).should_warn

    def test_user_object_named_threadidx_flagged(self):
        record = FakeScope("Struct", "C", global_scope())
        ts, dot, x = single_access("  threadIdx.x;", "x")
        x.variable = FakeVariable(scope=record, isStatic=True)
        set_ast(dot, ts.find("threadIdx"), x)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert plan(node).replacement_text == "C::x"


# ═══════════════════════════════════════════════════════════════════════════
#  ENUMERATORS
# ═══════════════════════════════════════════════════════════════════════════

def _enum_fixture(body_line, access_line, member):
    """``struct C { <body_line> };`` followed by ``<access_line>``."""
    glob = global_scope()
    record = FakeScope("Struct", "C", glob)
    ts = TokenStream("t.cpp")
    ts.add_line("struct C {", 1, scope=glob)
    ts.add_line(body_line, 2, scope=record)
    ts.add_line("};", 3, scope=record)
    ts.add_line(access_line, 4)
    record.bodyStart = ts.find("{", 1)
    record.bodyEnd = ts.find("}", 3)
    enum = FakeScope("Enum", "E", record, ts.find("{", 2), ts.find("}", 2))
    base = ts.tokens[ts.tokens.index(ts.find("}", 3)) + 2]
    base.valueType = FakeValueType(record, pointer=1)
    dot = ts.find(".", 4)
    set_ast(dot, base, ts.find(member, 4))
    return FakeConfiguration(ts.tokens, scopes=[glob, record, enum]), dot, enum


class TestEnumerators:

    def test_enumerator_names_skip_initialisers(self):
        cfg, _, enum = _enum_fixture("  enum E { E1, E2 = 3 };", "c1->E2;", "E2")
        assert enumerator_names(enum) == ["E1", "E2"]
        assert not is_scoped_enum(enum)

    def test_enumerator_through_pointer(self):
        cfg, dot, _ = _enum_fixture("  enum E { E1, E2 = 3 };", "c1->E2;", "E2")
        node = CppcheckAdapter(cfg).build_node(dot)
        assert node.member.kind is MemberKind.ENUMERATOR
        assert plan(node).replacement_text == "C::E2"

    def test_scoped_enum_not_flagged(self):
        cfg, dot, enum = _enum_fixture("  enum class E { A };", "c1->A;", "A")
        assert is_scoped_enum(enum)
        node = CppcheckAdapter(cfg).build_node(dot)
        assert node.member.enum_is_scoped
        assert not plan(node).should_warn

    def test_using_enum(self):
        glob = global_scope()
        record = FakeScope("Struct", "C", glob)
        ts = TokenStream("t.cpp")
        ts.add_line("enum OutEnum { E0 };", 1, scope=glob)
        ts.add_line("struct C {", 2, scope=glob)
        ts.add_line("  using enum OutEnum;", 3, scope=record)
        ts.add_line("};", 4, scope=record)
        ts.add_line("c1->E0;", 5)
        out_enum = FakeScope("Enum", "OutEnum", glob, ts.find("{", 1), ts.find("}", 1))
        record.bodyStart = ts.find("{", 2)
        record.bodyEnd = ts.find("}", 4)
        c1 = ts.find("c1")
        c1.valueType = FakeValueType(record, pointer=1)
        dot = set_ast(ts.find(".", 5), c1, ts.find("E0", 5))
        cfg = FakeConfiguration(ts.tokens, scopes=[glob, out_enum, record])

        index = build_enumerator_index(cfg)
        assert index[(id(record), "E0")].via_using_enum == "OutEnum"
        node = CppcheckAdapter(cfg).build_node(dot)
        assert node.member.via_using_enum == "OutEnum"
        assert plan(node).replacement_text == "C::E0"


# ═══════════════════════════════════════════════════════════════════════════
#  SCOPE CHAINS
# ═══════════════════════════════════════════════════════════════════════════

class TestScopeChains:

    def _namespaces(self, first_line, outer_name):
        glob = global_scope()
        ts = TokenStream()
        ts.add_line(first_line, 1)
        ts.add_line("inline namespace Inline {", 2)
        ts.add_line("struct S {", 3)
        ts.add_line("}; } }", 4)
        outer = FakeScope("Namespace", outer_name, glob, ts.find("{", 1))
        inline = FakeScope("Namespace", "Inline", outer, ts.find("{", 2))
        s = FakeScope("Struct", "S", inline, ts.find("{", 3))
        return CppcheckAdapter(FakeConfiguration(ts.tokens)), s

    def test_inline_namespace_detected(self):
        adapter, s = self._namespaces("namespace Outer {", "Outer")
        assert adapter.scope_chain(s) == (
            T("S"),
            ScopeDescriptor.inline_namespace("Inline"),
            ScopeDescriptor.namespace("Outer"),
        )

    def test_anonymous_namespace(self):
        adapter, s = self._namespaces("namespace {", "")
        chain = adapter.scope_chain(s)
        assert chain[-1].kind is ScopeKind.ANONYMOUS_NAMESPACE

    def test_local_class_stops_at_function(self):
        glob = global_scope()
        func = FakeScope("Function", "g", glob)
        local = FakeScope("Class", "L", func)
        assert CppcheckAdapter(FakeConfiguration()).scope_chain(local) == (T("L"),)

    def test_anonymous_aggregate_instance(self):
        glob = global_scope()
        outer = FakeScope("Struct", "Outer", glob)
        anon = FakeScope("Struct", "Anonymous0", outer)
        name_tok = FakeToken("s")
        name_tok.valueType = FakeValueType(anon)
        ptr_tok = FakeToken("p")
        ptr_tok.valueType = FakeValueType(anon, pointer=1)
        cfg = FakeConfiguration(variables=[
            FakeVariable(nameToken=ptr_tok, isPointer=True),
            FakeVariable(nameToken=name_tok),
        ])
        chain = CppcheckAdapter(cfg).scope_chain(anon)
        assert chain == (ScopeDescriptor.anonymous_instance("s"), T("Outer"))
        assert plan_text(chain) == "decltype(Outer::s)::x"

    def test_anonymous_aggregate_pointer_only(self):
        anon = FakeScope("Struct", "Anonymous1", global_scope())
        ptr_tok = FakeToken("p")
        ptr_tok.valueType = FakeValueType(anon, pointer=1)
        cfg = FakeConfiguration(variables=[FakeVariable(nameToken=ptr_tok, isPointer=True)])
        chain = CppcheckAdapter(cfg).scope_chain(anon)
        assert chain == (ScopeDescriptor.anonymous_instance("p", via_pointer=True),)

    def test_access_site_chain(self):
        glob = global_scope()
        ns = FakeScope("Namespace", "N", glob)
        func = FakeScope("Function", "g", ns)
        tok = FakeToken(".")
        tok.scope = func
        assert CppcheckAdapter(FakeConfiguration()).access_site_chain(tok) == (
            ScopeDescriptor.namespace("N"),
        )


def plan_text(chain):
    return f"{resolve_qualifier(chain)}::x"


# ═══════════════════════════════════════════════════════════════════════════
#  CONTEXT FLAGS AND WRITTEN TYPES
# ═══════════════════════════════════════════════════════════════════════════

class TestContext:

    def _typed_access(self):
        record = FakeScope("Struct", "C", global_scope())
        ts = TokenStream()
        ts.add_line("  D d;", 1)
        ts.add_line("  d.x;", 2)
        var = FakeVariable(nameToken=ts.find("d", 1), typeStartToken=ts.find("D"),
                           typeEndToken=ts.find("D"))
        d = ts.find("d", 2)
        d.variable = var
        d.valueType = FakeValueType(record)
        x = ts.find("x")
        x.variable = FakeVariable(scope=record, isStatic=True)
        dot = set_ast(ts.find("."), d, x)
        return ts, dot, record

    def test_written_type_name(self):
        ts, dot, _ = self._typed_access()
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.written_type_chain == (T("D"),)
        assert plan(node).replacement_text == "D::x"

    def test_written_type_ignored_for_other_class(self):
        ts, dot, _ = self._typed_access()
        ts.find("d", 2).valueType = FakeValueType(FakeScope("Struct", "Derived"))
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.written_type_chain is None
        assert plan(node).replacement_text == "C::x"

    def test_macro_expansion(self):
        ts, dot, _ = self._typed_access()
        ts.find("x").isExpandedMacro = True
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.in_macro_expansion
        assert plan(node).replacement_text is None

    def test_template_argument_in_variable_type(self):
        ts, dot, _ = self._typed_access()
        ts.find("D").isTemplateArg = True
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.in_template_dependent_context
        assert node.member.static_depends_on_template
        d = plan(node)
        assert d.is_deferred
        assert not d.should_warn

    def test_instantiated_template_argument_deferred(self):
        # template <int N> void h() { S<N> sN; sN.x; }  instantiated as h<4>
        record = FakeScope("Struct", "S<4>", global_scope())
        ts = TokenStream()
        ts.add_line("  S < 4 > sN;", 1)
        ts.add_line("  sN.x;", 2)
        ts.find("4").isTemplateArg = True
        var = FakeVariable(nameToken=ts.find("sN", 1), typeStartToken=ts.find("S"),
                           typeEndToken=ts.find(">"))
        sn = ts.find("sN", 2)
        sn.variable = var
        sn.valueType = FakeValueType(record)
        x = ts.find("x")
        x.variable = FakeVariable(scope=record, isStatic=True)
        dot = set_ast(ts.find("."), sn, x)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert node.member.static_depends_on_template
        assert plan(node).is_deferred

    def test_template_argument_in_base_expression(self):
        # t.x where t's declared type was substituted for a template parameter
        record = FakeScope("Struct", "C", global_scope())
        ts, dot, x = single_access("  t.x;", "x")
        t = ts.find("t")
        t.isTemplateArg = True
        t.valueType = FakeValueType(record)
        x.variable = FakeVariable(scope=record, isStatic=True)
        set_ast(dot, t, x)
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert not plan(node).should_warn

    def test_plain_variable_not_template_dependent(self):
        ts, dot, _ = self._typed_access()
        node = CppcheckAdapter(FakeConfiguration(ts.tokens)).build_node(dot)
        assert not node.member.static_depends_on_template
        assert plan(node).should_warn


# ═══════════════════════════════════════════════════════════════════════════
#  EXPRESSION CONVERSION
# ═══════════════════════════════════════════════════════════════════════════

class TestExprConversion:

    def test_assignment(self):
        eq = set_ast(FakeToken("="), FakeToken("a"), FakeToken("b"))
        assert expr_from_token(eq).kind is ExprKind.ASSIGN

    def test_increment(self):
        inc = set_ast(FakeToken("++"), FakeToken("i"))
        assert expr_from_token(inc).kind is ExprKind.INC_DEC

    def test_dereference(self):
        star = set_ast(FakeToken("*"), FakeToken("p"))
        assert expr_from_token(star).kind is ExprKind.UNARY

    def test_conditional(self):
        colon = set_ast(FakeToken(":"), FakeToken("c1"), FakeToken("c2"))
        q = set_ast(FakeToken("?"), FakeToken("b"), colon)
        e = expr_from_token(q)
        assert e.kind is ExprKind.CONDITIONAL
        assert [c.text for c in e.children] == ["b", "c1", "c2"]

    def test_qualified_id(self):
        scope = set_ast(FakeToken("::"), FakeToken("N"), FakeToken("obj"))
        e = expr_from_token(scope)
        assert e.kind is ExprKind.QUALIFIED_ID
        assert e.text == "N::obj"

    def test_cast(self):
        paren = FakeToken("(")
        paren.isCast = True
        set_ast(paren, FakeToken("c1"))
        assert expr_from_token(paren).kind is ExprKind.CAST

    def test_sizeof(self):
        paren = set_ast(FakeToken("("), FakeToken("sizeof"),
                        set_ast(FakeToken("("), FakeToken("f")))
        assert expr_from_token(paren).kind is ExprKind.SIZEOF

    def test_subscript_and_lambda(self):
        ts = TokenStream()
        ts.add_line("arr[0] = [] {};", 1)
        sub = set_ast(ts.find("["), ts.find("arr"), ts.find("0"))
        assert expr_from_token(sub).kind is ExprKind.SUBSCRIPT
        assert expr_from_token(ts.find("[", nth=1)).kind is ExprKind.LAMBDA

    def test_overloaded_operator(self):
        plus = set_ast(FakeToken("+"), FakeToken("a"), FakeToken("b"))
        plus.function = FakeFunction("operator+")
        assert expr_from_token(plus).kind is ExprKind.OPERATOR_CALL

    def test_builtin_binary(self):
        plus = set_ast(FakeToken("+"), FakeToken("p"), FakeToken("1"))
        assert expr_from_token(plus).kind is ExprKind.BINARY

    def test_none(self):
        assert expr_from_token(None).kind is ExprKind.UNKNOWN
