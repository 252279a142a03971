"""
static_access_lint/scope_path.py
════════════════════════════════

Computes the qualifier that names a static member without an instance.

Given a scope chain (innermost → outermost), the resolver walks outward and
collects the segments needed for a globally valid name:

    NAMED_TYPE                    → its name (template arguments included)
    ANONYMOUS_AGGREGATE_INSTANCE  → decltype(<outer path>::<instance>)
    INLINE_NAMESPACE              → its name (unless disabled)
    NAMESPACE                     → its name
    ANONYMOUS_NAMESPACE           → nothing; not counted

If more segments are needed than the nesting threshold allows, resolution
fails rather than producing a partial, possibly ambiguous name.  A path
exactly as deep as the threshold is accepted.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from static_access_lint.config import DEFAULT_NESTING_THRESHOLD, CheckConfig
from static_access_lint.model import (
    FixBlocker,
    MemberAccessNode,
    ScopeChain,
    ScopeDescriptor,
    ScopeKind,
)

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualifierPath:
    """
    A resolved qualifier.

    ``segments`` run outermost first and exclude unwritten scopes; ``depth``
    is the number of segments of the untrimmed, globally valid path.
    """
    segments: Tuple[ScopeDescriptor, ...]
    depth: int
    text: str

    def __str__(self) -> str:
        return self.text


def _collect_segments(
    chain: Sequence[ScopeDescriptor],
    depth_cap: int,
    include_inline_namespaces: bool,
) -> Tuple[Optional[List[ScopeDescriptor]], Optional[FixBlocker]]:
    """Walk ``chain`` outward; stop as soon as the cap is exceeded."""
    collected: List[ScopeDescriptor] = []
    for scope in chain:
        if scope.kind is ScopeKind.ANONYMOUS_NAMESPACE:
            continue
        if scope.kind is ScopeKind.INLINE_NAMESPACE and not include_inline_namespaces:
            continue
        if scope.kind is ScopeKind.ANONYMOUS_AGGREGATE_INSTANCE:
            if not scope.name or scope.via_pointer:
                return None, FixBlocker.UNNAMEABLE_SCOPE
        collected.append(scope)
        if len(collected) > depth_cap:
            return None, FixBlocker.NESTING_TOO_DEEP
    collected.reverse()
    return collected, None


def _trim_enclosing(
    segments: List[ScopeDescriptor],
    access_site_chain: Sequence[ScopeDescriptor],
) -> List[ScopeDescriptor]:
    """Drop leading namespaces the access site is already inside."""
    site = [
        s for s in reversed(access_site_chain)
        if s.kind in (ScopeKind.NAMESPACE, ScopeKind.INLINE_NAMESPACE)
    ]
    i = 0
    while (
        i < len(segments) - 1
        and i < len(site)
        and segments[i].kind in (ScopeKind.NAMESPACE, ScopeKind.INLINE_NAMESPACE)
        and segments[i].name == site[i].name
    ):
        i += 1
    return segments[i:]


def render_segments(segments: Sequence[ScopeDescriptor]) -> str:
    """
    Spell ``segments`` (outermost first) as a C++ qualifier.

    >>> render_segments([ScopeDescriptor.namespace("N"), ScopeDescriptor.named_type("V")])
    'N::V'
    """
    text = ""
    for seg in segments:
        if seg.kind is ScopeKind.ANONYMOUS_AGGREGATE_INSTANCE:
            inner = f"{text}::{seg.name}" if text else seg.name
            text = f"decltype({inner})"
        else:
            text = f"{text}::{seg.name}" if text else seg.name
    return text


def resolve_path_checked(
    chain: ScopeChain,
    depth_cap: int = DEFAULT_NESTING_THRESHOLD,
    *,
    include_inline_namespaces: bool = True,
    access_site_chain: ScopeChain = (),
    trim_enclosing_namespaces: bool = False,
) -> Tuple[Optional[QualifierPath], Optional[FixBlocker]]:
    """Resolve ``chain``; on failure also report why."""
    if not chain or not chain[0].is_type:
        return None, FixBlocker.UNNAMEABLE_SCOPE

    segments, blocker = _collect_segments(chain, depth_cap, include_inline_namespaces)
    if segments is None:
        return None, blocker

    depth = len(segments)
    if trim_enclosing_namespaces and access_site_chain:
        segments = _trim_enclosing(segments, access_site_chain)

    return QualifierPath(tuple(segments), depth, render_segments(segments)), None


def resolve_path(
    chain: ScopeChain,
    depth_cap: int = DEFAULT_NESTING_THRESHOLD,
    **kwargs,
) -> Optional[QualifierPath]:
    path, _ = resolve_path_checked(chain, depth_cap, **kwargs)
    return path


def resolve_qualifier(
    chain: ScopeChain,
    depth_cap: int = DEFAULT_NESTING_THRESHOLD,
    **kwargs,
) -> Optional[str]:
    """
    Shortest globally valid qualifier for a member declared in ``chain``,
    or ``None`` if it cannot be spelled within ``depth_cap`` segments.
    """
    path = resolve_path(chain, depth_cap, **kwargs)
    return path.text if path is not None else None


class ScopePathResolver:
    """Applies a :class:`CheckConfig` to the resolution of one node."""

    def __init__(self, config: Optional[CheckConfig] = None) -> None:
        self.config = config or CheckConfig()

    def resolve(
        self, node: MemberAccessNode
    ) -> Tuple[Optional[QualifierPath], Optional[FixBlocker]]:
        cfg = self.config
        chain = node.member.scope_chain
        if cfg.use_written_type_names and node.written_type_chain:
            chain = node.written_type_chain
        path, blocker = resolve_path_checked(
            chain,
            cfg.name_specifier_nesting_threshold,
            include_inline_namespaces=cfg.include_inline_namespaces,
            access_site_chain=node.access_site_chain,
            trim_enclosing_namespaces=cfg.trim_enclosing_namespaces,
        )
        if path is None:
            _log.debug("No qualifier for %s: %s", node, blocker.value if blocker else "?")
        return path, blocker


__all__ = [
    "QualifierPath",
    "render_segments",
    "resolve_path_checked",
    "resolve_path",
    "resolve_qualifier",
    "ScopePathResolver",
]
