#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
static_access_lint/ast_helper.py
════════════════════════════════

Read-only helpers over the raw ``cppcheckdata`` object graph.

    ┌─────────────────────────────────────────────────────────────────┐
    │  Safe accessors   tok_str, tok_op1, tok_variable, tok_scope ... │
    ├─────────────────────────────────────────────────────────────────┤
    │  AST traversal    pre-order walk, parent chain, extent          │
    ├─────────────────────────────────────────────────────────────────┤
    │  Predicates       member access, arrow, cast, literal, macro    │
    ├─────────────────────────────────────────────────────────────────┤
    │  Scopes           enclosing-scope walk, record/namespace tests  │
    └─────────────────────────────────────────────────────────────────┘

Every function accepts ``None`` and returns an empty/false/None result for
it, so adapter code can chain accessors without guarding each step.

Cppcheck normalises ``a->b`` to a ``.`` token whose ``originalName`` is
``"->"``; the predicates below hide that detail.

License: MIT
"""

from __future__ import annotations

from typing import Any, FrozenSet, Iterator, List, Optional, Tuple

# Token / Scope / Variable are cppcheckdata objects; Any keeps this module
# importable without Cppcheck installed.
Token = Any
Scope = Any


# ═══════════════════════════════════════════════════════════════════════════
#  CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

ASSIGNMENT_OPS: FrozenSet[str] = frozenset({
    '=', '+=', '-=', '*=', '/=', '%=',
    '&=', '|=', '^=', '<<=', '>>=',
})

LOGICAL_OPS: FrozenSet[str] = frozenset({'&&', '||'})

RECORD_SCOPE_TYPES: FrozenSet[str] = frozenset({'Class', 'Struct', 'Union'})

EXECUTABLE_SCOPE_TYPES: FrozenSet[str] = frozenset({
    'Function', 'Lambda', 'If', 'Else', 'For', 'While', 'Do',
    'Switch', 'Try', 'Catch', 'Unconditional',
})


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — SAFE ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════

def tok_str(tok: Token) -> str:
    """
    Safely get the string representation of a token.

    Args:
        tok: A cppcheckdata Token object (may be None)

    Returns:
        The token's string value, or empty string if tok is None
    """
    if tok is None:
        return ""
    return getattr(tok, "str", "") or ""


def tok_op1(tok: Token) -> Optional[Token]:
    """Safely get astOperand1 of a token."""
    if tok is None:
        return None
    return getattr(tok, "astOperand1", None)


def tok_op2(tok: Token) -> Optional[Token]:
    """Safely get astOperand2 of a token."""
    if tok is None:
        return None
    return getattr(tok, "astOperand2", None)


def tok_variable(tok: Token) -> Optional[Any]:
    """
    Safely get the Variable object associated with a token.

    Args:
        tok: A cppcheckdata Token object (may be None)

    Returns:
        The Variable object, or None
    """
    if tok is None:
        return None
    return getattr(tok, "variable", None)


def tok_function(tok: Token) -> Optional[Any]:
    """
    Safely get the Function object associated with a token.

    For a call ``f(x)`` the function is attached to the name token ``f``;
    for an overloaded operator it is attached to the operator token.
    """
    if tok is None:
        return None
    return getattr(tok, "function", None)


def tok_scope(tok: Token) -> Optional[Scope]:
    if tok is None:
        return None
    return getattr(tok, "scope", None)


def tok_value_type(tok: Token) -> Optional[Any]:
    if tok is None:
        return None
    return getattr(tok, "valueType", None)


def tok_link(tok: Token) -> Optional[Token]:
    """Matching bracket of ``(``, ``[``, ``{``, ``<`` and their closers."""
    if tok is None:
        return None
    return getattr(tok, "link", None)


def tok_next(tok: Token) -> Optional[Token]:
    if tok is None:
        return None
    return getattr(tok, "next", None)


def tok_previous(tok: Token) -> Optional[Token]:
    if tok is None:
        return None
    return getattr(tok, "previous", None)


def tok_file(tok: Token) -> str:
    if tok is None:
        return ""
    return getattr(tok, "file", "") or ""


def tok_line(tok: Token) -> int:
    if tok is None:
        return 0
    return int(getattr(tok, "linenr", 0) or 0)


def tok_column(tok: Token) -> int:
    """
    Safely get the 1-based column of a token.

    Returns:
        The column number, or 0
    """
    if tok is None:
        return 0
    return int(getattr(tok, "column", 0) or 0)


def tok_position(tok: Token) -> Tuple[int, int]:
    """(line, column) pair, for ordering tokens within one file."""
    return (tok_line(tok), tok_column(tok))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — AST TRAVERSAL
# ═══════════════════════════════════════════════════════════════════════════

def iter_ast_preorder(root: Token) -> Iterator[Token]:
    """
    Iterate over AST nodes in pre-order (root, left, right).

    Args:
        root: The root token of the AST subtree

    Yields:
        Tokens in pre-order sequence
    """
    if root is None:
        return
    stack: List[Token] = [root]
    while stack:
        node = stack.pop()
        yield node
        # Push right first so left is processed first (LIFO)
        op2 = tok_op2(node)
        if op2 is not None:
            stack.append(op2)
        op1 = tok_op1(node)
        if op1 is not None:
            stack.append(op1)


def leftmost_token(root: Token) -> Optional[Token]:
    """
    The token of ``root``'s subtree that appears first in the source.

    Args:
        root: The root token of the AST subtree

    Returns:
        The earliest token by (line, column), or None for an empty tree
    """
    best: Optional[Token] = None
    for tok in iter_ast_preorder(root):
        if best is None or tok_position(tok) < tok_position(best):
            best = tok
    return best


def extend_over_parens(start: Token, limit: Token) -> Token:
    """
    Move ``start`` left over opening parentheses that close before
    ``limit``.

    Cppcheck does not keep grouping parentheses in the AST, so the
    leftmost AST token of ``(a).x`` is ``a``; the access really starts at
    the ``(``.
    """
    limit_pos = tok_position(limit)
    cur = start
    prev = tok_previous(cur)
    while tok_str(prev) == '(':
        close = tok_link(prev)
        if close is None or not (tok_position(cur) < tok_position(close) < limit_pos):
            break
        cur = prev
        prev = tok_previous(cur)
    return cur


def iter_token_range(first: Token, last: Token) -> Iterator[Token]:
    """Tokens from ``first`` to ``last`` inclusive, following ``next``."""
    cur = first
    while cur is not None:
        yield cur
        if cur is last:
            return
        cur = tok_next(cur)


def token_range_text(first: Token, last: Token) -> str:
    """Space-joined token spelling between two tokens."""
    return " ".join(tok_str(t) for t in iter_token_range(first, last))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — PREDICATES
# ═══════════════════════════════════════════════════════════════════════════

def is_member_access(tok: Token) -> bool:
    """
    Check if a token is a member access operator with both operands.

    Args:
        tok: Token to check

    Returns:
        True for ``a.b`` and ``a->b`` (both spelled ``.`` in the dump)
    """
    if tok_str(tok) not in ('.', '->'):
        return False
    return tok_op1(tok) is not None and tok_op2(tok) is not None


def is_arrow_access(tok: Token) -> bool:
    if tok_str(tok) == '->':
        return True
    return getattr(tok, "originalName", "") == '->'


def is_identifier(tok: Token) -> bool:
    if tok is None:
        return False
    return bool(getattr(tok, "isName", False))


def is_literal(tok: Token) -> bool:
    """
    Check if a token is any kind of literal.

    Returns:
        True if tok is a number, string, char, or boolean literal
    """
    if tok is None:
        return False
    return (
        bool(getattr(tok, "isNumber", False)) or
        bool(getattr(tok, "isString", False)) or
        bool(getattr(tok, "isChar", False)) or
        bool(getattr(tok, "isBoolean", False))
    )


def is_cast(tok: Token) -> bool:
    if tok is None:
        return False
    return bool(getattr(tok, "isCast", False))


def is_assignment(tok: Token) -> bool:
    return tok_str(tok) in ASSIGNMENT_OPS


def is_increment_decrement(tok: Token) -> bool:
    return tok_str(tok) in ('++', '--')


def is_expanded_macro(tok: Token) -> bool:
    if tok is None:
        return False
    return bool(getattr(tok, "isExpandedMacro", False))


def any_expanded_macro(first: Token, last: Token) -> bool:
    """True if any token between ``first`` and ``last`` came from a macro."""
    return any(is_expanded_macro(t) for t in iter_token_range(first, last))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — SCOPES
# ═══════════════════════════════════════════════════════════════════════════

def scope_type(scope: Scope) -> str:
    if scope is None:
        return ""
    return getattr(scope, "type", "") or ""


def scope_name(scope: Scope) -> str:
    if scope is None:
        return ""
    return getattr(scope, "className", "") or ""


def is_record_scope(scope: Scope) -> bool:
    return scope_type(scope) in RECORD_SCOPE_TYPES


def iter_enclosing_scopes(scope: Scope) -> Iterator[Scope]:
    """
    Walk ``nestedIn`` links outward starting at ``scope`` itself.

    The global scope is not yielded.
    """
    cur = scope
    while cur is not None and scope_type(cur) != 'Global':
        yield cur
        cur = getattr(cur, "nestedIn", None)


__all__ = [
    "ASSIGNMENT_OPS",
    "LOGICAL_OPS",
    "RECORD_SCOPE_TYPES",
    "EXECUTABLE_SCOPE_TYPES",
    # Safe accessors
    "tok_str", "tok_op1", "tok_op2",
    "tok_variable", "tok_function", "tok_scope", "tok_value_type",
    "tok_link", "tok_next", "tok_previous",
    "tok_file", "tok_line", "tok_column", "tok_position",
    # Traversal
    "iter_ast_preorder", "leftmost_token",
    "extend_over_parens", "iter_token_range", "token_range_text",
    # Predicates
    "is_member_access", "is_arrow_access", "is_identifier", "is_literal",
    "is_cast", "is_assignment", "is_increment_decrement",
    "is_expanded_macro", "any_expanded_macro",
    # Scopes
    "scope_type", "scope_name", "is_record_scope", "iter_enclosing_scopes",
]
