"""
static_access_lint/cppcheck_adapter.py
══════════════════════════════════════

Builds :class:`MemberAccessNode`s from a ``cppcheckdata.Configuration``.

    cfg.tokenlist ──▶ "." tokens with both operands
                          │
          ┌───────────────┼──────────────────────┐
          ▼               ▼                      ▼
    member lookup    base expression        source range
    variable /       AST → Expr tree        leftmost base token
    function /                              (over grouping parens)
    enumerator index                        … end of member name
          │
          ▼
    scope chain  (nestedIn walk: records, namespaces, anonymous
                  aggregates resolved to their instance variable)

Cppcheck facts this module relies on:

  * ``a->b`` is tokenised as ``.`` with ``originalName == "->"``;
  * data members resolve through ``Token.variable``, methods through
    ``Token.function``; enumerators carry neither and are looked up by
    name among the Enum scopes nested in the base object's class;
  * anonymous records get generated class names (``Anonymous0``);
  * tokens substituted for template arguments in an instantiation carry
    ``isTemplateArg``.

Token shapes the adapter cannot model are skipped (logged at DEBUG);
they never produce a diagnostic.

License: MIT
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple

from static_access_lint.ast_helper import (
    LOGICAL_OPS,
    RECORD_SCOPE_TYPES,
    EXECUTABLE_SCOPE_TYPES,
    any_expanded_macro,
    extend_over_parens,
    is_arrow_access,
    is_assignment,
    is_cast,
    is_identifier,
    is_increment_decrement,
    is_literal,
    is_member_access,
    is_record_scope,
    iter_ast_preorder,
    iter_enclosing_scopes,
    iter_token_range,
    leftmost_token,
    scope_name,
    scope_type,
    tok_column,
    tok_file,
    tok_function,
    tok_line,
    tok_link,
    tok_next,
    tok_op1,
    tok_op2,
    tok_previous,
    tok_scope,
    tok_str,
    tok_value_type,
    tok_variable,
    token_range_text,
)
from static_access_lint.diagnostics import SourceRange
from static_access_lint.model import (
    AccessOperator,
    Expr,
    ExprKind,
    MemberAccessNode,
    MemberDeclaration,
    MemberKind,
    ScopeChain,
    ScopeDescriptor,
)
from static_access_lint.qualname import scope_chain_from_spelling

_log = logging.getLogger(__name__)

_ANONYMOUS_RECORD = re.compile(r"^(Anonymous\d*)?$")

# Guards the Expr conversion against pathological AST depth.
_MAX_EXPR_DEPTH = 200

# valueType.type of library classes whose operator-> is a function call
OVERLOADED_ARROW_VALUE_TYPES = frozenset({"smart-pointer", "iterator"})

Token = Any
Scope = Any


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — ENUMERATOR INDEX
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EnumeratorInfo:
    """An enumerator reachable as a member of ``owner``."""
    name: str
    enum_scope: Scope
    owner: Scope
    scoped: bool = False
    via_using_enum: str = ""


def enumerator_names(enum_scope: Scope) -> List[str]:
    """
    Names declared between the braces of an enum body.

    An enumerator name is the first identifier after ``{`` or after a
    top-level ``,``; initialisers are skipped.
    """
    start = getattr(enum_scope, "bodyStart", None)
    end = getattr(enum_scope, "bodyEnd", None)
    if start is None or end is None:
        return []
    names: List[str] = []
    expecting = True
    tok = tok_next(start)
    while tok is not None and tok is not end:
        s = tok_str(tok)
        if s in ("(", "[", "{", "<") and tok_link(tok) is not None:
            tok = tok_next(tok_link(tok))
            continue
        if s == ",":
            expecting = True
        elif expecting and is_identifier(tok):
            names.append(s)
            expecting = False
        tok = tok_next(tok)
    return names


def is_scoped_enum(enum_scope: Scope) -> bool:
    """True for ``enum class`` / ``enum struct``."""
    tok = tok_previous(getattr(enum_scope, "bodyStart", None))
    for _ in range(16):
        if tok is None:
            return False
        if tok_str(tok) == "enum":
            return tok_str(tok_next(tok)) in ("class", "struct")
        if tok_str(tok) in (";", "}", "{"):
            return False
        tok = tok_previous(tok)
    return False


def using_enum_names(record: Scope) -> List[str]:
    """Enums re-exported into ``record`` by ``using enum X;``."""
    start = getattr(record, "bodyStart", None)
    end = getattr(record, "bodyEnd", None)
    found: List[str] = []
    tok = tok_next(start)
    while tok is not None and tok is not end:
        if (
            tok_str(tok) == "using"
            and tok_str(tok_next(tok)) == "enum"
            and tok_scope(tok) is record
        ):
            last = ""
            cur = tok_next(tok_next(tok))
            while cur is not None and tok_str(cur) != ";":
                if is_identifier(cur):
                    last = tok_str(cur)
                cur = tok_next(cur)
            if last:
                found.append(last)
            tok = cur
            continue
        tok = tok_next(tok)
    return found


def build_enumerator_index(cfg: Any) -> Dict[Tuple[int, str], EnumeratorInfo]:
    """Map ``(id(record scope), name)`` to the enumerator it exposes."""
    index: Dict[Tuple[int, str], EnumeratorInfo] = {}
    scopes = list(getattr(cfg, "scopes", None) or [])
    enums_by_name: Dict[str, Scope] = {}

    for scope in scopes:
        if scope_type(scope) != "Enum":
            continue
        if scope_name(scope):
            enums_by_name.setdefault(scope_name(scope), scope)
        owner = getattr(scope, "nestedIn", None)
        if not is_record_scope(owner):
            continue
        scoped = is_scoped_enum(scope)
        for name in enumerator_names(scope):
            index.setdefault(
                (id(owner), name),
                EnumeratorInfo(name, scope, owner, scoped=scoped),
            )

    for scope in scopes:
        if not is_record_scope(scope):
            continue
        for enum_name in using_enum_names(scope):
            enum_scope = enums_by_name.get(enum_name)
            if enum_scope is None:
                _log.debug("using enum %s in %s: enum not found", enum_name, scope_name(scope))
                continue
            for name in enumerator_names(enum_scope):
                index.setdefault(
                    (id(scope), name),
                    EnumeratorInfo(name, enum_scope, scope, via_using_enum=enum_name),
                )
    return index


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — BASE EXPRESSION CONVERSION
# ═════════════════════════════════════════════════════════════════════════

def _spell(tok: Token) -> str:
    if tok is None:
        return ""
    if tok_str(tok) == "::":
        op1, op2 = tok_op1(tok), tok_op2(tok)
        if op1 is not None and op2 is not None:
            return f"{_spell(op1)}::{_spell(op2)}"
        return f"::{_spell(op2 or op1)}"
    return tok_str(tok)


def _flatten_commas(tok: Token) -> List[Token]:
    if tok is None:
        return []
    if tok_str(tok) == ",":
        return _flatten_commas(tok_op1(tok)) + _flatten_commas(tok_op2(tok))
    return [tok]


def _is_lambda_bracket(tok: Token) -> bool:
    prev = tok_previous(tok)
    return not (is_identifier(prev) or tok_str(prev) in (")", "]"))


def uses_overloaded_arrow(dot: Token) -> bool:
    """
    ``obj->m`` where ``obj`` is a class object, not a pointer.

    Library wrappers (``std::unique_ptr``, container iterators) have no
    record scope in the dump; cppcheck tags them through ``valueType.type``.
    """
    if not is_arrow_access(dot):
        return False
    vt = tok_value_type(tok_op1(dot))
    if vt is None:
        return False
    if int(getattr(vt, "pointer", 0) or 0) != 0:
        return False
    if getattr(vt, "type", "") in OVERLOADED_ARROW_VALUE_TYPES:
        return True
    return is_record_scope(getattr(vt, "typeScope", None))


def expr_from_token(tok: Token, depth: int = 0) -> Expr:
    """Convert a cppcheck AST subtree into an :class:`Expr`."""
    if tok is None or depth > _MAX_EXPR_DEPTH:
        return Expr(ExprKind.UNKNOWN)
    s = tok_str(tok)
    op1, op2 = tok_op1(tok), tok_op2(tok)
    sub = depth + 1

    if s == "this":
        return Expr.this()
    if is_literal(tok):
        return Expr.literal(s)
    if s == "::":
        return Expr.qualified(_spell(tok))
    if op1 is None and op2 is None:
        if is_identifier(tok):
            return Expr.ref(s)
        if s == "[":
            return Expr.lambda_()
        return Expr(ExprKind.UNKNOWN, text=s)

    if s == ".":
        inner = expr_from_token(op1, sub)
        if uses_overloaded_arrow(tok):
            inner = Expr.operator_call("->", inner)
        return Expr.member(inner, tok_str(op2), arrow=is_arrow_access(tok))
    if s == "(":
        if is_cast(tok):
            vt = tok_value_type(tok)
            type_name = getattr(vt, "originalTypeName", "") if vt is not None else ""
            return Expr.cast(type_name or "", expr_from_token(op1 or op2, sub))
        if tok_str(op1) == "sizeof":
            return Expr.sizeof(expr_from_token(op2, sub))
        if op1 is not None:
            args = [expr_from_token(a, sub) for a in _flatten_commas(op2)]
            return Expr.call(expr_from_token(op1, sub), *args)
        return Expr.paren(expr_from_token(op2, sub))
    if s == "[":
        if _is_lambda_bracket(tok):
            return Expr.lambda_()
        return Expr.subscript(expr_from_token(op1, sub), expr_from_token(op2, sub))
    if s == "sizeof":
        return Expr.sizeof(expr_from_token(op1 or op2, sub))
    if s == "?":
        cond = expr_from_token(op1, sub)
        if tok_str(op2) == ":":
            return Expr.conditional(
                cond,
                expr_from_token(tok_op1(op2), sub),
                expr_from_token(tok_op2(op2), sub),
            )
        return Expr(ExprKind.CONDITIONAL, operator="?:",
                    children=(cond, expr_from_token(op2, sub)))
    if s in ("new", "delete", "throw"):
        kind = {"new": ExprKind.NEW, "delete": ExprKind.DELETE, "throw": ExprKind.THROW}[s]
        children = tuple(expr_from_token(t, sub) for t in (op1, op2) if t is not None)
        return Expr(kind, operator=s, children=children)
    if is_assignment(tok):
        return Expr.assign(expr_from_token(op1, sub), expr_from_token(op2, sub), s)
    if is_increment_decrement(tok):
        return Expr.unary(s, expr_from_token(op1 or op2, sub))
    if tok_function(tok) is not None and bool(getattr(tok, "isOp", False)):
        operands = tuple(expr_from_token(t, sub) for t in (op1, op2) if t is not None)
        return Expr.operator_call(s, *operands)
    if op1 is not None and op2 is not None:
        if s in LOGICAL_OPS or s == ",":
            return Expr.binary(s, expr_from_token(op1, sub), expr_from_token(op2, sub))
        if bool(getattr(tok, "isOp", False)):
            return Expr.binary(s, expr_from_token(op1, sub), expr_from_token(op2, sub))
    if bool(getattr(tok, "isOp", False)) and (op1 is None) != (op2 is None):
        return Expr.unary(s, expr_from_token(op1 or op2, sub))
    return Expr(ExprKind.UNKNOWN, text=s)


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — ADAPTER
# ═════════════════════════════════════════════════════════════════════════

class CppcheckAdapter:
    """
    Walks one cppcheck configuration and yields its member accesses.

    The indices built in the constructor are read-only afterwards, so one
    adapter may serve any number of traversals of the same configuration.
    """

    def __init__(self, cfg: Any) -> None:
        self.cfg = cfg
        self._enumerators = build_enumerator_index(cfg)
        self._instances = self._build_instance_index(cfg)

    # ── traversal ────────────────────────────────────────────────────

    def iter_member_accesses(self) -> Iterator[MemberAccessNode]:
        for tok in getattr(self.cfg, "tokenlist", None) or []:
            if not is_member_access(tok):
                continue
            node = self.build_node(tok)
            if node is not None:
                yield node

    def build_node(self, dot: Token) -> Optional[MemberAccessNode]:
        base_tok, member_tok = tok_op1(dot), tok_op2(dot)
        if not is_identifier(member_tok):
            _log.debug("Skipping %s:%d: member is not a name",
                       tok_file(dot), tok_line(dot))
            return None

        member, decl_scope = self.resolve_member(member_tok, base_tok)
        if member is None:
            return None

        template_dependent = self._is_template_dependent(base_tok)
        if template_dependent:
            # a specialisation for this argument may declare the member differently
            member = replace(member, static_depends_on_template=True)

        first = self._range_start(dot)
        source_range = SourceRange(
            file=tok_file(first),
            start_line=tok_line(first),
            start_column=tok_column(first),
            end_line=tok_line(member_tok),
            end_column=tok_column(member_tok) + len(tok_str(member_tok)),
        )

        base = expr_from_token(base_tok)
        if uses_overloaded_arrow(dot):
            base = Expr.operator_call("->", base)

        return MemberAccessNode(
            base=base,
            operator=AccessOperator.ARROW if is_arrow_access(dot) else AccessOperator.DOT,
            member=member,
            source_range=source_range,
            in_macro_expansion=any_expanded_macro(first, member_tok),
            in_template_dependent_context=template_dependent,
            written_type_chain=self.written_type_chain(base_tok, decl_scope),
            access_site_chain=self.access_site_chain(dot),
        )

    # ── member resolution ────────────────────────────────────────────

    def resolve_member(
        self, member_tok: Token, base_tok: Token
    ) -> Tuple[Optional[MemberDeclaration], Optional[Scope]]:
        """Declaration of the member token and the scope declaring it."""
        name = tok_str(member_tok)

        var = tok_variable(member_tok)
        if var is not None:
            scope = getattr(var, "scope", None)
            if not is_record_scope(scope):
                return None, None
            return MemberDeclaration(
                name=name,
                kind=MemberKind.FIELD,
                is_static=bool(getattr(var, "isStatic", False)),
                scope_chain=self.scope_chain(scope),
            ), scope

        func = tok_function(member_tok)
        if func is not None:
            scope = getattr(func, "nestedIn", None)
            if not is_record_scope(scope):
                return None, None
            return MemberDeclaration(
                name=name,
                kind=MemberKind.METHOD,
                is_static=bool(getattr(func, "isStatic", False)),
                scope_chain=self.scope_chain(scope),
            ), scope

        record = getattr(tok_value_type(base_tok), "typeScope", None)
        info = self._enumerators.get((id(record), name)) if record is not None else None
        if info is not None:
            return MemberDeclaration(
                name=name,
                kind=MemberKind.ENUMERATOR,
                scope_chain=self.scope_chain(info.owner),
                via_using_enum=info.via_using_enum,
                enum_is_scoped=info.scoped,
            ), info.owner

        _log.debug("Unresolved member '%s' at %s:%d",
                   name, tok_file(member_tok), tok_line(member_tok))
        return None, None

    # ── scopes ───────────────────────────────────────────────────────

    @staticmethod
    def _build_instance_index(cfg: Any) -> Dict[int, Tuple[str, bool]]:
        """Anonymous record scope → (instance variable, via pointer)."""
        index: Dict[int, Tuple[str, bool]] = {}
        for var in getattr(cfg, "variables", None) or []:
            name_tok = getattr(var, "nameToken", None)
            record = getattr(tok_value_type(name_tok), "typeScope", None)
            if record is None or not _ANONYMOUS_RECORD.match(scope_name(record)):
                continue
            via_pointer = bool(getattr(var, "isPointer", False))
            known = index.get(id(record))
            # an object instance beats a pointer instance
            if known is None or (known[1] and not via_pointer):
                index[id(record)] = (tok_str(name_tok), via_pointer)
        return index

    @staticmethod
    def _is_inline_namespace(scope: Scope) -> bool:
        name_tok = tok_previous(getattr(scope, "bodyStart", None))
        kw = tok_previous(name_tok)
        return tok_str(kw) == "namespace" and tok_str(tok_previous(kw)) == "inline"

    def scope_chain(self, scope: Scope) -> ScopeChain:
        """Innermost-first chain from ``scope`` out to (not including) global."""
        chain: List[ScopeDescriptor] = []
        for s in iter_enclosing_scopes(scope):
            kind = scope_type(s)
            name = scope_name(s)
            if kind in RECORD_SCOPE_TYPES:
                if _ANONYMOUS_RECORD.match(name):
                    instance, via_pointer = self._instances.get(id(s), ("", False))
                    chain.append(ScopeDescriptor.anonymous_instance(instance, via_pointer))
                else:
                    chain.append(ScopeDescriptor.named_type(name))
            elif kind == "Namespace":
                if not name:
                    chain.append(ScopeDescriptor.anonymous_namespace())
                elif self._is_inline_namespace(s):
                    chain.append(ScopeDescriptor.inline_namespace(name))
                else:
                    chain.append(ScopeDescriptor.namespace(name))
            elif kind in EXECUTABLE_SCOPE_TYPES:
                # local classes are named relative to the function body
                break
        return tuple(chain)

    def access_site_chain(self, tok: Token) -> ScopeChain:
        chain: List[ScopeDescriptor] = []
        for s in iter_enclosing_scopes(tok_scope(tok)):
            if scope_type(s) != "Namespace":
                continue
            name = scope_name(s)
            if not name:
                chain.append(ScopeDescriptor.anonymous_namespace())
            elif self._is_inline_namespace(s):
                chain.append(ScopeDescriptor.inline_namespace(name))
            else:
                chain.append(ScopeDescriptor.namespace(name))
        return tuple(chain)

    def written_type_chain(self, base_tok: Token, decl_scope: Scope) -> Optional[ScopeChain]:
        """
        The base variable's type as spelled at its declaration, when that
        type is the member's declaring class.
        """
        if decl_scope is None or not is_identifier(base_tok):
            return None
        var = tok_variable(base_tok)
        if var is None:
            return None
        if getattr(tok_value_type(base_tok), "typeScope", None) is not decl_scope:
            return None
        start = getattr(var, "typeStartToken", None)
        end = getattr(var, "typeEndToken", None)
        if start is None or end is None:
            return None
        return scope_chain_from_spelling(token_range_text(start, end))

    # ── ranges and context ───────────────────────────────────────────

    @staticmethod
    def _range_start(dot: Token) -> Token:
        first = leftmost_token(tok_op1(dot)) or dot
        return extend_over_parens(first, dot)

    @staticmethod
    def _is_template_dependent(base_tok: Token) -> bool:
        """True if the base mentions a substituted template argument."""
        for t in iter_ast_preorder(base_tok):
            if getattr(t, "isTemplateArg", False):
                return True
            var = tok_variable(t)
            if var is None:
                continue
            start = getattr(var, "typeStartToken", None)
            end = getattr(var, "typeEndToken", None)
            if start is None or end is None:
                continue
            if any(getattr(x, "isTemplateArg", False) for x in iter_token_range(start, end)):
                return True
        return False


def iter_member_accesses(cfg: Any) -> Iterator[MemberAccessNode]:
    """Convenience wrapper: ``CppcheckAdapter(cfg).iter_member_accesses()``."""
    return CppcheckAdapter(cfg).iter_member_accesses()


__all__ = [
    "EnumeratorInfo",
    "enumerator_names",
    "is_scoped_enum",
    "using_enum_names",
    "build_enumerator_index",
    "OVERLOADED_ARROW_VALUE_TYPES",
    "uses_overloaded_arrow",
    "expr_from_token",
    "CppcheckAdapter",
    "iter_member_accesses",
]
