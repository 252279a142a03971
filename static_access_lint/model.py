"""
static_access_lint/model.py
═══════════════════════════

Data model of the static-access rule.

    ┌──────────────────────┐      ┌──────────────────────┐
    │  MemberAccessNode    │─────▶│  MemberDeclaration   │
    │  base: Expr          │      │  kind, is_static     │
    │  operator: . / ->    │      │  scope_chain ────────┼──▶ ScopeDescriptor*
    │  source_range        │      └──────────────────────┘
    └──────────┬───────────┘
               │ planner
               ▼
    ┌──────────────────────┐
    │  RewriteDecision     │
    └──────────────────────┘

Every type here is a frozen dataclass: nodes are built once per member
access during a traversal and never mutated.  Scope chains are ordered
innermost → outermost and owned by the declaration (no back references into
the host's symbol table).

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Iterator, Optional, Tuple

from static_access_lint.diagnostics import SourceRange


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — ENUMS
# ═════════════════════════════════════════════════════════════════════════

class AccessOperator(Enum):
    """The token between base expression and member name."""
    DOT = "."
    ARROW = "->"


class MemberKind(Enum):
    FIELD = auto()
    METHOD = auto()
    ENUMERATOR = auto()


class ScopeKind(Enum):
    NAMED_TYPE = auto()
    ANONYMOUS_AGGREGATE_INSTANCE = auto()
    INLINE_NAMESPACE = auto()
    NAMESPACE = auto()
    ANONYMOUS_NAMESPACE = auto()


class Classification(Enum):
    """
    Outcome of the declaration classifier.

    INDETERMINATE is not NOT_FLAGGABLE: the member's static-ness depends on
    a template parameter and has to be decided again at instantiation.
    """
    FLAGGABLE = auto()
    NOT_FLAGGABLE = auto()
    INDETERMINATE = auto()


class FixBlocker(Enum):
    """Why a flagged access did not get a replacement."""
    MACRO_EXPANSION = "macro-expansion"
    TEMPLATE_DEPENDENT = "template-dependent"
    NESTING_TOO_DEEP = "nesting-too-deep"
    UNNAMEABLE_SCOPE = "unnameable-scope"


class ExprKind(Enum):
    DECL_REF = auto()
    QUALIFIED_ID = auto()
    THIS = auto()
    LITERAL = auto()
    MEMBER = auto()
    CALL = auto()
    OPERATOR_CALL = auto()
    ASSIGN = auto()
    INC_DEC = auto()
    UNARY = auto()
    BINARY = auto()
    LOGICAL = auto()
    CONDITIONAL = auto()
    CAST = auto()
    SUBSCRIPT = auto()
    PAREN = auto()
    NEW = auto()
    DELETE = auto()
    THROW = auto()
    LAMBDA = auto()
    COMMA = auto()
    SIZEOF = auto()
    UNKNOWN = auto()


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SCOPES AND DECLARATIONS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ScopeDescriptor:
    """
    One link of a scope chain.

    ``name`` is the type or namespace name; for an anonymous aggregate it is
    the name of the instance variable declared with the aggregate (empty
    when there is none).  ``via_pointer`` marks an anonymous aggregate that
    is only reachable through a pointer instance.
    """
    kind: ScopeKind
    name: str = ""
    via_pointer: bool = False

    @classmethod
    def named_type(cls, name: str) -> ScopeDescriptor:
        return cls(ScopeKind.NAMED_TYPE, name)

    @classmethod
    def anonymous_instance(cls, instance_name: str = "",
                           via_pointer: bool = False) -> ScopeDescriptor:
        return cls(ScopeKind.ANONYMOUS_AGGREGATE_INSTANCE, instance_name, via_pointer)

    @classmethod
    def inline_namespace(cls, name: str) -> ScopeDescriptor:
        return cls(ScopeKind.INLINE_NAMESPACE, name)

    @classmethod
    def namespace(cls, name: str) -> ScopeDescriptor:
        return cls(ScopeKind.NAMESPACE, name)

    @classmethod
    def anonymous_namespace(cls) -> ScopeDescriptor:
        return cls(ScopeKind.ANONYMOUS_NAMESPACE)

    @property
    def is_type(self) -> bool:
        return self.kind in (
            ScopeKind.NAMED_TYPE,
            ScopeKind.ANONYMOUS_AGGREGATE_INSTANCE,
        )

    def __str__(self) -> str:
        if self.kind is ScopeKind.ANONYMOUS_NAMESPACE:
            return "(anonymous namespace)"
        if self.kind is ScopeKind.ANONYMOUS_AGGREGATE_INSTANCE:
            return f"(anonymous aggregate of {self.name or '?'})"
        return self.name


ScopeChain = Tuple[ScopeDescriptor, ...]


@dataclass(frozen=True)
class MemberDeclaration:
    """The member named on the right of ``.`` / ``->``."""
    name: str
    kind: MemberKind
    is_static: bool = False
    scope_chain: ScopeChain = ()
    is_builtin_pseudo_member: bool = False
    static_depends_on_template: bool = False
    via_using_enum: str = ""
    enum_is_scoped: bool = False

    @property
    def declaring_type(self) -> Optional[ScopeDescriptor]:
        """Innermost type scope of the chain, if any."""
        for scope in self.scope_chain:
            if scope.is_type:
                return scope
        return None


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — BASE EXPRESSIONS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Expr:
    """
    Syntax-level view of a base expression.

    Only the shape matters to the side-effect analyzer; ``text`` holds the
    identifier / literal spelling for leaves and ``operator`` the operator
    spelling for operator nodes.
    """
    kind: ExprKind
    text: str = ""
    operator: str = ""
    children: Tuple[Expr, ...] = ()

    # ── constructors ─────────────────────────────────────────────────

    @classmethod
    def ref(cls, name: str) -> Expr:
        return cls(ExprKind.DECL_REF, text=name)

    @classmethod
    def qualified(cls, text: str) -> Expr:
        return cls(ExprKind.QUALIFIED_ID, text=text)

    @classmethod
    def this(cls) -> Expr:
        return cls(ExprKind.THIS, text="this")

    @classmethod
    def literal(cls, text: str) -> Expr:
        return cls(ExprKind.LITERAL, text=text)

    @classmethod
    def member(cls, base: Expr, name: str, arrow: bool = False) -> Expr:
        return cls(ExprKind.MEMBER, text=name,
                   operator="->" if arrow else ".", children=(base,))

    @classmethod
    def call(cls, callee: Expr, *args: Expr) -> Expr:
        return cls(ExprKind.CALL, children=(callee,) + tuple(args))

    @classmethod
    def operator_call(cls, operator: str, *operands: Expr) -> Expr:
        return cls(ExprKind.OPERATOR_CALL, operator=operator, children=tuple(operands))

    @classmethod
    def assign(cls, lhs: Expr, rhs: Expr, operator: str = "=") -> Expr:
        return cls(ExprKind.ASSIGN, operator=operator, children=(lhs, rhs))

    @classmethod
    def unary(cls, operator: str, operand: Expr) -> Expr:
        if operator in ("++", "--"):
            return cls(ExprKind.INC_DEC, operator=operator, children=(operand,))
        return cls(ExprKind.UNARY, operator=operator, children=(operand,))

    @classmethod
    def binary(cls, operator: str, lhs: Expr, rhs: Expr) -> Expr:
        if operator in ("&&", "||"):
            return cls(ExprKind.LOGICAL, operator=operator, children=(lhs, rhs))
        if operator == ",":
            return cls(ExprKind.COMMA, operator=operator, children=(lhs, rhs))
        return cls(ExprKind.BINARY, operator=operator, children=(lhs, rhs))

    @classmethod
    def conditional(cls, cond: Expr, then: Expr, otherwise: Expr) -> Expr:
        return cls(ExprKind.CONDITIONAL, operator="?:", children=(cond, then, otherwise))

    @classmethod
    def paren(cls, inner: Expr) -> Expr:
        return cls(ExprKind.PAREN, children=(inner,))

    @classmethod
    def cast(cls, type_name: str, inner: Expr) -> Expr:
        return cls(ExprKind.CAST, text=type_name, children=(inner,))

    @classmethod
    def subscript(cls, base: Expr, index: Expr) -> Expr:
        return cls(ExprKind.SUBSCRIPT, children=(base, index))

    @classmethod
    def lambda_(cls, captures: str = "") -> Expr:
        return cls(ExprKind.LAMBDA, text=captures)

    @classmethod
    def sizeof(cls, inner: Expr) -> Expr:
        return cls(ExprKind.SIZEOF, operator="sizeof", children=(inner,))

    # ── traversal ────────────────────────────────────────────────────

    def walk(self) -> Iterator[Expr]:
        """Pre-order iteration over this node and its descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __str__(self) -> str:
        k = self.kind
        if k in (ExprKind.DECL_REF, ExprKind.QUALIFIED_ID, ExprKind.THIS, ExprKind.LITERAL):
            return self.text
        if k is ExprKind.MEMBER:
            return f"{self.children[0]}{self.operator}{self.text}"
        if k is ExprKind.CALL:
            callee, *args = self.children
            return f"{callee}({', '.join(str(a) for a in args)})"
        if k is ExprKind.OPERATOR_CALL:
            return f"operator{self.operator}({', '.join(str(c) for c in self.children)})"
        if k is ExprKind.PAREN:
            return f"({self.children[0]})"
        if k is ExprKind.LAMBDA:
            return f"[{self.text}]{{...}}"
        if k in (ExprKind.UNARY, ExprKind.INC_DEC, ExprKind.SIZEOF) and self.children:
            return f"{self.operator}{self.children[0]}"
        if len(self.children) == 2:
            return f"{self.children[0]} {self.operator} {self.children[1]}"
        return self.text or self.kind.name.lower()


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — MEMBER ACCESS NODES AND DECISIONS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MemberAccessNode:
    """
    One syntactic ``obj.member`` / ``ptr->member`` occurrence.

    ``source_range`` covers base, operator and member name; a call's
    argument list lies outside it.
    """
    base: Expr
    operator: AccessOperator
    member: MemberDeclaration
    source_range: SourceRange = field(default_factory=SourceRange)
    in_macro_expansion: bool = False
    in_template_dependent_context: bool = False
    implicit_object: bool = False
    written_type_chain: Optional[ScopeChain] = None
    access_site_chain: ScopeChain = ()

    def with_member(self, member: MemberDeclaration) -> MemberAccessNode:
        """Copy of this node referring to another declaration."""
        return replace(self, member=member)

    def __str__(self) -> str:
        return f"{self.base}{self.operator.value}{self.member.name}"


@dataclass(frozen=True)
class RewriteDecision:
    """
    What to do with one member access.

    ``replacement_text`` replaces the node's whole ``source_range``.  It is
    only ever set together with ``should_warn``.
    """
    should_warn: bool = False
    should_emit_side_effect_note: bool = False
    replacement_text: Optional[str] = None
    classification: Classification = Classification.NOT_FLAGGABLE
    fix_blocker: Optional[FixBlocker] = None
    qualifier: Optional[str] = None

    @property
    def is_deferred(self) -> bool:
        return self.classification is Classification.INDETERMINATE

    @property
    def has_replacement(self) -> bool:
        return self.replacement_text is not None


NO_ACTION = RewriteDecision()
DEFERRED = RewriteDecision(classification=Classification.INDETERMINATE)


__all__ = [
    "AccessOperator",
    "MemberKind",
    "ScopeKind",
    "Classification",
    "FixBlocker",
    "ExprKind",
    "ScopeDescriptor",
    "ScopeChain",
    "MemberDeclaration",
    "Expr",
    "MemberAccessNode",
    "RewriteDecision",
    "NO_ACTION",
    "DEFERRED",
]
