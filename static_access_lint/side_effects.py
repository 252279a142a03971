"""
static_access_lint/side_effects.py
══════════════════════════════════

Conservative, syntax-level side-effect test for member base expressions.

Rewriting ``f().x`` to ``C::x`` drops the evaluation of ``f()``.  The
rewrite is still offered, but the user is told about it through a note.
This module decides when that note is due.

No data flow is involved: any call, overloaded operator, assignment,
increment/decrement, allocation, throw or lambda invocation counts.  Nodes
we do not understand count as well.

License: MIT
"""

from __future__ import annotations

from typing import FrozenSet, Optional

from static_access_lint.model import Expr, ExprKind

# Node kinds whose evaluation may be observable on their own.
EFFECTFUL_KINDS: FrozenSet[ExprKind] = frozenset({
    ExprKind.CALL,
    ExprKind.OPERATOR_CALL,
    ExprKind.ASSIGN,
    ExprKind.INC_DEC,
    ExprKind.NEW,
    ExprKind.DELETE,
    ExprKind.THROW,
    ExprKind.LAMBDA,
    ExprKind.UNKNOWN,
})

# Node kinds that are pure as long as their operands are.
PURE_KINDS: FrozenSet[ExprKind] = frozenset({
    ExprKind.DECL_REF,
    ExprKind.QUALIFIED_ID,
    ExprKind.THIS,
    ExprKind.LITERAL,
    ExprKind.MEMBER,
    ExprKind.SUBSCRIPT,
    ExprKind.UNARY,
    ExprKind.BINARY,
    ExprKind.CAST,
    ExprKind.PAREN,
    ExprKind.COMMA,
    ExprKind.LOGICAL,
    ExprKind.CONDITIONAL,
})


def side_effect_reason(expr: Optional[Expr]) -> Optional[Expr]:
    """
    Return the first sub-expression (pre-order) that may have a side
    effect, or ``None`` if ``expr`` is side-effect free.

    Operands of ``LOGICAL`` and ``CONDITIONAL`` nodes are only
    conditionally evaluated; an effect in them is still reported, because
    removing the whole base changes whether that effect happens.
    ``sizeof`` operands are never evaluated and are skipped.
    """
    if expr is None:
        return None
    stack = [expr]
    while stack:
        node = stack.pop()
        if node.kind is ExprKind.SIZEOF:
            continue
        if node.kind in EFFECTFUL_KINDS:
            return node
        if node.kind not in PURE_KINDS:
            return node
        stack.extend(reversed(node.children))
    return None


def has_possible_side_effect(expr: Optional[Expr]) -> bool:
    """True if evaluating ``expr`` could have an observable effect."""
    return side_effect_reason(expr) is not None


__all__ = [
    "EFFECTFUL_KINDS",
    "PURE_KINDS",
    "side_effect_reason",
    "has_possible_side_effect",
]
