# tests/conftest.py
"""Shared fixtures: declarations and nodes for the common rewrite scenarios."""

import pytest

from static_access_lint.config import CheckConfig
from static_access_lint.diagnostics import SourceRange
from static_access_lint.model import (
    AccessOperator,
    Expr,
    MemberAccessNode,
    MemberDeclaration,
    MemberKind,
    ScopeDescriptor,
)

T = ScopeDescriptor.named_type
NS = ScopeDescriptor.namespace


def static_field(name="x", *chain):
    return MemberDeclaration(name, MemberKind.FIELD, is_static=True,
                             scope_chain=tuple(chain) or (T("C"),))


def make_node(base, member, operator=AccessOperator.DOT, **kwargs):
    kwargs.setdefault(
        "source_range",
        SourceRange("t.cpp", 1, 3, 1, 3 + len(str(base)) + len(operator.value) + len(member.name)),
    )
    return MemberAccessNode(base=base, operator=operator, member=member, **kwargs)


@pytest.fixture
def config():
    return CheckConfig()


@pytest.fixture
def field_x():
    return static_field("x", T("C"))


@pytest.fixture
def plain_node(field_x):
    """``c1.x`` with ``C::x`` static."""
    return make_node(Expr.ref("c1"), field_x)
