"""
static_access_lint/checker.py
═════════════════════════════

Checker framework and the ``readability-static-accessed-through-instance``
checker.

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │                                                         │
  │   for each configuration in the dump:                   │
  │     ┌──────────────────────────────────────────────┐    │
  │     │  StaticAccessChecker                         │    │
  │     │   configure        CheckConfig from options  │    │
  │     │   collect_evidence CppcheckAdapter → nodes   │    │
  │     │   diagnose         RewritePlanner → emitter  │    │
  │     │   report           de-duplicated diagnostics │    │
  │     └──────────────────────────────────────────────┘    │
  └─────────────────────────────────────────────────────────┘

A dump with several preprocessor configurations sees the same access
once per configuration; the runner keeps one diagnostic per location.

License: MIT
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Sequence, Tuple, Type

from static_access_lint.config import CheckConfig
from static_access_lint.cppcheck_adapter import CppcheckAdapter
from static_access_lint.diagnostics import (
    Confidence,
    Diagnostic,
    DiagnosticSeverity,
    SourceLocation,
)
from static_access_lint.emitter import CHECK_NAME, ERROR_ID, DiagnosticEmitter
from static_access_lint.errors import StaticAccessLintError
from static_access_lint.fixits import range_text
from static_access_lint.model import MemberAccessNode, MemberKind, RewriteDecision
from static_access_lint.planner import RewritePlanner

_log = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — SOURCE TEXT
# ═════════════════════════════════════════════════════════════════════════

class SourceCache:
    """
    Lazily reads source files named in the dump.

    Used to record the text a fix is expected to replace; a file that
    cannot be read simply yields no expected text.
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root
        self._texts: Dict[str, Optional[str]] = {}

    def text(self, file: str) -> Optional[str]:
        if file not in self._texts:
            path = Path(file)
            if self.root is not None and not path.is_absolute():
                path = self.root / path
            try:
                self._texts[file] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                _log.debug("Cannot read %s: %s", path, exc)
                self._texts[file] = None
        return self._texts[file]

    def node_text(self, node: MemberAccessNode) -> Optional[str]:
        text = self.text(node.source_range.file)
        if text is None:
            return None
        return range_text(text, node.source_range)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerContext:
    """
    Shared context passed to a checker during execution.

    Attributes
    ----------
    cfg     : cppcheckdata.Configuration
    options : user-provided options (snake_case or clang-tidy keys)
    config  : base configuration the options are applied on top of
    sources : source text cache for fix expected-text
    stats   : mutable dict for timing / counting statistics
    """
    cfg: Any  # cppcheckdata.Configuration
    options: Dict[str, Any] = field(default_factory=dict)
    config: CheckConfig = field(default_factory=CheckConfig)
    sources: Optional[SourceCache] = None
    stats: Dict[str, Any] = field(default_factory=dict)


class Checker(ABC):
    """
    Abstract base class for checkers.

    Lifecycle
    ─────────
      1. ``configure(ctx)``         — read options
      2. ``collect_evidence(ctx)``  — gather candidate sites
      3. ``diagnose(ctx)``          — turn evidence into diagnostics
      4. ``report(ctx)``            — return final diagnostics
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.STYLE

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        return list(self._diagnostics)

    def _emit(self, diag: Optional[Diagnostic]) -> None:
        if diag is not None:
            self._diagnostics.append(diag)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — STATIC ACCESS CHECKER
# ═════════════════════════════════════════════════════════════════════════

class StaticAccessChecker(Checker):
    """
    Flags ``obj.member`` / ``ptr->member`` where ``member`` is static and
    offers the qualified spelling ``Type::member`` as a fix.
    """

    name: ClassVar[str] = CHECK_NAME
    description: ClassVar[str] = "static member accessed through instance"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({ERROR_ID})

    def __init__(self) -> None:
        super().__init__()
        self.config = CheckConfig()
        self._nodes: List[MemberAccessNode] = []
        self._deferred: List[MemberAccessNode] = []

    def configure(self, ctx: CheckerContext) -> None:
        self.config = ctx.config.merged(ctx.options) if ctx.options else ctx.config
        _log.debug("Configuration: %s", self.config.to_dict())

    def collect_evidence(self, ctx: CheckerContext) -> None:
        adapter = CppcheckAdapter(ctx.cfg)
        self._nodes = list(adapter.iter_member_accesses())
        ctx.stats["member_accesses"] = ctx.stats.get("member_accesses", 0) + len(self._nodes)
        _log.info("Collected %d member access(es)", len(self._nodes))

    def diagnose(self, ctx: CheckerContext) -> None:
        planner = RewritePlanner(self.config)
        emitter = DiagnosticEmitter(
            self.config,
            source_text=ctx.sources.node_text if ctx.sources else None,
            severity=self.default_severity,
        )
        for node, decision in planner.plan_all(self._nodes):
            if decision.is_deferred:
                self._deferred.append(node)
                continue
            self._emit(emitter.emit(node, decision, self._confidence(node, decision)))
        ctx.stats["deferred"] = ctx.stats.get("deferred", 0) + len(self._deferred)

    @property
    def deferred(self) -> List[MemberAccessNode]:
        """Nodes whose static-ness has to be decided at instantiation."""
        return list(self._deferred)

    @staticmethod
    def _confidence(node: MemberAccessNode, decision: RewriteDecision) -> Confidence:
        # enumerators are found by name lookup, not through the symbol table
        if node.member.kind is MemberKind.ENUMERATOR:
            return Confidence.MEDIUM
        return Confidence.HIGH


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

def _location_key(diag: Diagnostic) -> Tuple[str, str, int, int]:
    loc = diag.location
    return (diag.error_id, loc.file, loc.line, loc.column)


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    @property
    def fixable_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.has_fix)

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def to_json_lines(self) -> str:
        """Format all diagnostics as cppcheck JSON addon output."""
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        lines = [
            f"Checker run complete: {self.total_count} diagnostics "
            f"({self.fixable_count} with fixes)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)

    def merge(self, partial: CheckerRunResults) -> None:
        """Fold ``partial`` in, keeping one diagnostic per location."""
        seen = {_location_key(d) for d in self.diagnostics}
        for name in partial.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        for name, diags in partial.diagnostics_by_checker.items():
            for diag in diags:
                key = _location_key(diag)
                if key in seen:
                    continue
                seen.add(key)
                self.diagnostics.append(diag)
                self.diagnostics_by_checker[name].append(diag)
        for key, val in partial.stats.items():
            if isinstance(val, (int, float)) and key in self.stats:
                self.stats[key] += val
            else:
                self.stats[key] = val


class CheckerRunner:
    """
    Runs checkers against cppcheck configurations.

    >>> runner = CheckerRunner(config=CheckConfig(name_specifier_nesting_threshold=4))
    >>> results = runner.run_all_configurations(data)   # doctest: +SKIP
    >>> print(results.summary())                        # doctest: +SKIP

    A checker that raises is reported as a ``checkerInternalError``
    diagnostic instead of aborting the run; configuration errors are not
    caught and reach the caller.
    """

    def __init__(
        self,
        checkers: Optional[Sequence[Type[Checker]]] = None,
        config: Optional[CheckConfig] = None,
        options: Optional[Dict[str, Any]] = None,
        sources: Optional[SourceCache] = None,
    ) -> None:
        self.checkers: List[Type[Checker]] = list(checkers or [StaticAccessChecker])
        self.config = config or CheckConfig()
        self.options = options or {}
        self.sources = sources

    def run(self, cfg: Any) -> CheckerRunResults:
        """Run every checker against a single Configuration."""
        results = CheckerRunResults()
        ctx = CheckerContext(
            cfg=cfg,
            options=self.options,
            config=self.config,
            sources=self.sources,
            stats=results.stats,
        )

        for cls in self.checkers:
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except StaticAccessLintError:
                raise
            except Exception as exc:
                _log.exception("Checker '%s' failed", checker_name)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        return results

    def run_all_configurations(self, data: Any) -> CheckerRunResults:
        """
        Run checkers across all configurations in a CppcheckData dump.

        Parameters
        ----------
        data : cppcheckdata.CppcheckData (result of parsedump())
        """
        combined = CheckerRunResults()
        for cfg in getattr(data, "configurations", None) or []:
            _log.info("Checking configuration '%s'", getattr(cfg, "name", "") or "<default>")
            combined.merge(self.run(cfg))
        return combined


__all__ = [
    "SourceCache",
    "CheckerContext",
    "Checker",
    "StaticAccessChecker",
    "CheckerRunResults",
    "CheckerRunner",
]
