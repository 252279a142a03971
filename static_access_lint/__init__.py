"""static_access_lint — static members accessed through an instance.

A cppcheck addon that finds member accesses written as if they operate on
an object (``obj.member``, ``ptr->member``) while the member is static,
and rewrites them to the qualified form (``Type::member``).

Submodules
----------
model
    ``MemberAccessNode``, ``MemberDeclaration``, ``ScopeDescriptor``,
    ``Expr`` and ``RewriteDecision``.

classifier, side_effects, scope_path, planner
    The decision pipeline: is the member static, may the base have side
    effects, which qualifier names the member, what to do with the node.

emitter, fixits, reporter
    Diagnostics with notes and fix-its; applying fixes to source text;
    terminal / JSON / GCC / SARIF output.

cppcheck_adapter, checker
    Builds nodes from a ``cppcheckdata`` configuration and runs the check
    over every configuration of a dump.

main
    CLI entry-point (``static-access-lint``).

Usage
-----
Command-line::

    cppcheck --dump widget.cpp
    static-access-lint widget.cpp.dump --fix

Programmatic::

    from static_access_lint import CheckConfig, RewritePlanner

    planner = RewritePlanner(CheckConfig(name_specifier_nesting_threshold=4))
    decision = planner.plan(node)
"""

from __future__ import annotations

__version__: str = "0.1.0"

from static_access_lint.config import CheckConfig
from static_access_lint.diagnostics import Diagnostic, FixIt, Note, SourceRange
from static_access_lint.model import (
    AccessOperator,
    Classification,
    Expr,
    MemberAccessNode,
    MemberDeclaration,
    MemberKind,
    RewriteDecision,
    ScopeDescriptor,
)
from static_access_lint.planner import RewritePlanner

__all__: list[str] = [
    "__version__",
    "CheckConfig",
    "Diagnostic",
    "FixIt",
    "Note",
    "SourceRange",
    "AccessOperator",
    "Classification",
    "Expr",
    "MemberAccessNode",
    "MemberDeclaration",
    "MemberKind",
    "RewriteDecision",
    "ScopeDescriptor",
    "RewritePlanner",
]
