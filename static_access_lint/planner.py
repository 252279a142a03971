"""
static_access_lint/planner.py
═════════════════════════════

Per-node decision: warn or not, add the side-effect note or not, and what
text (if any) replaces the access.

    node ──▶ implicit object? ──yes──▶ NO_ACTION
               │
               ▼
           classify ──NOT_FLAGGABLE──▶ NO_ACTION
               │      ──INDETERMINATE─▶ DEFERRED  (re-plan at instantiation)
               ▼ FLAGGABLE
           warn; side effects? → note
               │
               ├─ macro expansion      ─▶ warn, no fix
               ├─ template dependent   ─▶ warn, no fix
               ▼
           resolve qualifier ──fail──▶ warn, no fix
               │
               ▼
           replacement = qualifier + "::" + member

Each decision depends on the node alone, so nodes can be planned in any
order and by independent planner instances.

License: MIT
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Tuple

from static_access_lint.classifier import classify
from static_access_lint.config import CheckConfig
from static_access_lint.model import (
    DEFERRED,
    NO_ACTION,
    Classification,
    FixBlocker,
    MemberAccessNode,
    MemberDeclaration,
    RewriteDecision,
)
from static_access_lint.scope_path import ScopePathResolver
from static_access_lint.side_effects import has_possible_side_effect

_log = logging.getLogger(__name__)


class RewritePlanner:
    """Turns :class:`MemberAccessNode`s into :class:`RewriteDecision`s."""

    def __init__(self, config: Optional[CheckConfig] = None) -> None:
        self.config = config or CheckConfig()
        self._resolver = ScopePathResolver(self.config)

    def plan(self, node: MemberAccessNode) -> RewriteDecision:
        if node.implicit_object:
            return NO_ACTION

        classification = classify(node.member, node.base)
        if classification is Classification.NOT_FLAGGABLE:
            return NO_ACTION
        if classification is Classification.INDETERMINATE:
            _log.debug("Deferring %s: static-ness depends on a template parameter", node)
            return DEFERRED

        note = has_possible_side_effect(node.base)

        blocker: Optional[FixBlocker] = None
        if node.in_macro_expansion:
            blocker = FixBlocker.MACRO_EXPANSION
        elif node.in_template_dependent_context:
            blocker = FixBlocker.TEMPLATE_DEPENDENT
        if blocker is not None:
            decision = RewriteDecision(
                should_warn=True,
                should_emit_side_effect_note=note,
                classification=classification,
                fix_blocker=blocker,
            )
            _log.debug("Flagged %s without fix (%s)", node, blocker.value)
            return decision

        path, blocker = self._resolver.resolve(node)
        if path is None:
            return RewriteDecision(
                should_warn=True,
                should_emit_side_effect_note=note,
                classification=classification,
                fix_blocker=blocker,
            )

        replacement = f"{path.text}::{node.member.name}"
        _log.debug("Flagged %s -> %s%s", node, replacement, " (with note)" if note else "")
        return RewriteDecision(
            should_warn=True,
            should_emit_side_effect_note=note,
            replacement_text=replacement,
            classification=classification,
            qualifier=path.text,
        )

    def plan_instantiated(
        self, node: MemberAccessNode, instantiated: MemberDeclaration
    ) -> RewriteDecision:
        """
        Re-plan a deferred node once the dependent name has been resolved
        at instantiation.
        """
        return self.plan(node.with_member(instantiated))

    def plan_all(
        self, nodes: Iterable[MemberAccessNode]
    ) -> Iterator[Tuple[MemberAccessNode, RewriteDecision]]:
        for node in nodes:
            yield node, self.plan(node)


def plan(node: MemberAccessNode, config: Optional[CheckConfig] = None) -> RewriteDecision:
    """Convenience wrapper around :meth:`RewritePlanner.plan`."""
    return RewritePlanner(config).plan(node)


__all__ = ["RewritePlanner", "plan"]
