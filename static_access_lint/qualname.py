"""
static_access_lint/qualname.py
══════════════════════════════

PEG grammar for C++ qualified type spellings.

Cppcheck hands us type names as text (``N::V::T``, ``CT<int>``,
``const Outer::S *``).  The rewrite planner needs them split into scope
segments, with template argument lists kept intact, so that the written
spelling of a type can be reused as a qualifier and counted against the
nesting threshold.

    qualified_name  ::=  "::"? segment ( "::" segment )*
    segment         ::=  decltype "(" qualified_name ")"
                      |  identifier template_args?

Built on parsimonious, the same PEG library the CASL front-end uses.

License: MIT
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from parsimonious.exceptions import IncompleteParseError, ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from static_access_lint.errors import QualifiedNameSyntaxError
from static_access_lint.model import ScopeChain, ScopeDescriptor

QUALNAME_GRAMMAR = Grammar(r'''
    qualified_name = global_prefix? segment scoped_segment*
    global_prefix  = "::" _
    scoped_segment = _ "::" _ segment
    segment        = decltype_spec / template_id / identifier
    decltype_spec  = "decltype" _ "(" _ qualified_name _ ")"
    template_id    = identifier _ template_args
    template_args  = "<" _ arg_list? _ ">"
    arg_list       = template_arg more_args*
    more_args      = _ "," _ template_arg
    template_arg   = arg_piece+
    arg_piece      = template_args / paren_group / arg_text
    paren_group    = "(" ~r"[^()]*" ")"
    arg_text       = ~r"[^<>(),]+"
    identifier     = ~r"[A-Za-z_][A-Za-z0-9_]*"
    _              = ~r"\s*"
''')

# Words that decorate a type spelling without naming a scope.
_DECORATIONS = frozenset({
    "const", "volatile", "struct", "class", "union", "enum",
    "typename", "mutable", "static", "extern", "inline", "constexpr",
})

_SPACES_AROUND_PUNCT = re.compile(r"\s*([<>,()])\s*")


@dataclass(frozen=True)
class Segment:
    """One ``::``-separated component of a qualified name."""
    text: str
    name: str
    is_decltype: bool = False

    @property
    def has_template_args(self) -> bool:
        return "<" in self.text and not self.is_decltype

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class QualifiedName:
    segments: Tuple[Segment, ...]
    is_global: bool = False

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def last(self) -> Segment:
        return self.segments[-1]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(s.text for s in self.segments)

    def __str__(self) -> str:
        body = "::".join(s.text for s in self.segments)
        return f"::{body}" if self.is_global else body


def _normalize(text: str) -> str:
    text = _SPACES_AROUND_PUNCT.sub(r"\1", text.strip())
    text = re.sub(r"\s+", " ", text)
    return text.replace(",", ", ")


class _QualifiedNameBuilder(NodeVisitor):
    """Folds the parse tree into a :class:`QualifiedName`."""

    def visit_qualified_name(self, node, visited_children):
        _prefix, first, rest = visited_children
        is_global = bool(node.children[0].text)
        # an empty repetition comes back from generic_visit as the bare node
        tail = rest if isinstance(rest, list) else []
        return QualifiedName(tuple([first] + tail), is_global)

    def visit_scoped_segment(self, node, visited_children):
        return visited_children[3]

    def visit_segment(self, node, visited_children):
        return visited_children[0]

    def visit_decltype_spec(self, node, visited_children):
        inner: QualifiedName = visited_children[4]
        return Segment(text=f"decltype({inner})", name=str(inner), is_decltype=True)

    def visit_template_id(self, node, visited_children):
        name = node.children[0].text
        return Segment(text=_normalize(node.text), name=name)

    def visit_identifier(self, node, visited_children):
        return Segment(text=node.text, name=node.text)

    def generic_visit(self, node, visited_children):
        return visited_children or node


def parse_qualified_name(text: str) -> QualifiedName:
    """
    Parse ``text`` into its scope segments.

    Raises :class:`QualifiedNameSyntaxError` when the spelling is not a
    (possibly templated) qualified name.

    >>> str(parse_qualified_name("N :: V::T<int,  2>"))
    'N::V::T<int, 2>'
    """
    source = text.strip()
    try:
        tree = QUALNAME_GRAMMAR.parse(source)
    except IncompleteParseError as exc:
        raise QualifiedNameSyntaxError(text, exc.pos) from exc
    except ParseError as exc:
        raise QualifiedNameSyntaxError(text, exc.pos) from exc
    try:
        return _QualifiedNameBuilder().visit(tree)
    except VisitationError as exc:
        raise QualifiedNameSyntaxError(text) from exc


def try_parse_qualified_name(text: str) -> Optional[QualifiedName]:
    """Like :func:`parse_qualified_name` but returns ``None`` on failure."""
    if not text or not text.strip():
        return None
    try:
        return parse_qualified_name(text)
    except QualifiedNameSyntaxError:
        return None


def is_qualified_id(text: str) -> bool:
    """
    True if ``text`` names an entity through a ``::`` qualifier.

    A rewritten access (``C::x``, ``decltype(P)::f``) is a qualified-id and
    therefore never a member access again.
    """
    qn = try_parse_qualified_name(text)
    if qn is None:
        return False
    return qn.depth >= 2 or qn.is_global


def strip_type_decorations(type_text: str) -> str:
    """
    Remove cv-qualifiers, elaborated-type keywords and pointer/reference
    declarators from a type spelling: ``const struct N::V *&`` → ``N::V``.
    """
    text = type_text.strip().rstrip("*& \t")
    words = [w for w in text.split() if w not in _DECORATIONS]
    return " ".join(words).strip().rstrip("*& \t")


def scope_chain_from_spelling(type_text: str) -> Optional[ScopeChain]:
    """
    Turn a written type spelling into a scope chain (innermost first).

    Every segment becomes a named scope: when a spelling is reused as a
    qualifier the distinction between class and namespace does not matter.
    Returns ``None`` for spellings that are not qualified names (``auto``,
    builtin types, function types).
    """
    stripped = strip_type_decorations(type_text)
    qn = try_parse_qualified_name(stripped)
    if qn is None or qn.last.name in ("auto", "decltype"):
        return None
    return tuple(ScopeDescriptor.named_type(seg.text) for seg in reversed(qn.segments))


__all__ = [
    "QUALNAME_GRAMMAR",
    "Segment",
    "QualifiedName",
    "parse_qualified_name",
    "try_parse_qualified_name",
    "is_qualified_id",
    "strip_type_decorations",
    "scope_chain_from_spelling",
]
