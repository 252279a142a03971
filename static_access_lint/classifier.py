"""
static_access_lint/classifier.py
════════════════════════════════

Decides whether a resolved member declaration is "static" in the sense
that matters to the rule: reachable without an object instance.

    static data member               → FLAGGABLE
    static method                    → FLAGGABLE
    enumerator of an enum nested in  → FLAGGABLE   (plain, anonymous, or
      a class                                       re-exported by using-enum)
    non-static field / method        → NOT_FLAGGABLE
    builtin coordinate pseudo-member → NOT_FLAGGABLE
    static-ness depends on template  → INDETERMINATE

License: MIT
"""

from __future__ import annotations

from typing import FrozenSet, Optional

from static_access_lint.model import (
    Classification,
    Expr,
    ExprKind,
    MemberDeclaration,
    MemberKind,
)

# CUDA per-thread coordinate objects.  Their ``x``/``y``/``z`` members are
# declared static in the builtin headers but are really per-thread values.
BUILTIN_COORDINATE_OBJECTS: FrozenSet[str] = frozenset({
    "threadIdx",
    "blockIdx",
    "blockDim",
    "gridDim",
})

BUILTIN_TYPE_PREFIX = "__cuda_builtin_"


def is_builtin_pseudo_member(decl: MemberDeclaration, base: Optional[Expr] = None) -> bool:
    """
    True for the builtin per-thread/block/grid coordinate fields.

    Recognised from the declaration flag set by the host or from the name
    of the declaring builtin type.  The coordinate object the member is
    read from only decides when the declaring type is unknown; a user
    variable named ``threadIdx`` of an ordinary class is still checked.
    """
    if decl.is_builtin_pseudo_member:
        return True
    owner = decl.declaring_type
    if owner is not None:
        return owner.name.startswith(BUILTIN_TYPE_PREFIX)
    if base is not None and base.kind is ExprKind.DECL_REF:
        return base.text in BUILTIN_COORDINATE_OBJECTS
    return False


def classify(decl: MemberDeclaration, base: Optional[Expr] = None) -> Classification:
    """Classify ``decl`` (optionally reached through ``base``)."""
    if is_builtin_pseudo_member(decl, base):
        return Classification.NOT_FLAGGABLE
    if decl.static_depends_on_template:
        return Classification.INDETERMINATE

    if decl.kind is MemberKind.ENUMERATOR:
        # enum class values are not injected into the enclosing class
        if decl.enum_is_scoped:
            return Classification.NOT_FLAGGABLE
        if decl.declaring_type is None:
            return Classification.NOT_FLAGGABLE
        return Classification.FLAGGABLE

    if decl.kind in (MemberKind.FIELD, MemberKind.METHOD):
        return Classification.FLAGGABLE if decl.is_static else Classification.NOT_FLAGGABLE

    return Classification.NOT_FLAGGABLE


def is_flaggable(decl: MemberDeclaration, base: Optional[Expr] = None) -> bool:
    return classify(decl, base) is Classification.FLAGGABLE


__all__ = [
    "BUILTIN_COORDINATE_OBJECTS",
    "BUILTIN_TYPE_PREFIX",
    "is_builtin_pseudo_member",
    "classify",
    "is_flaggable",
]
