#!/usr/bin/env python3
"""static_access_lint/main.py — CLI entry-point.

Usage examples
--------------
    # Report static members accessed through instances
    static-access-lint project.cpp.dump

    # Machine-readable output for cppcheck's addon protocol
    static-access-lint project.cpp.dump --format json

    # Rewrite the sources; include fixes attached to side-effect notes
    static-access-lint project.cpp.dump --fix --fix-notes

    # Allow deeper qualifiers, read options from a file
    static-access-lint a.cpp.dump b.cpp.dump --nesting-threshold 4 \\
        --config static-access.json

Exit codes
----------
    0   Success (or findings without ``--error-exitcode``).
    N   Findings were reported and ``--error-exitcode N`` was given.
    2   Infrastructure failure (missing cppcheckdata, bad dump, bad config).

The module doubles as ``python -m static_access_lint`` via the companion
``__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from static_access_lint import __version__
from static_access_lint.checker import CheckerRunner, CheckerRunResults, SourceCache
from static_access_lint.config import CheckConfig
from static_access_lint.diagnostics import Diagnostic
from static_access_lint.errors import (
    ConfigError,
    DumpLoadError,
    FixApplicationError,
)
from static_access_lint.fixits import apply_fixits_to_file, group_by_file
from static_access_lint.reporter import FORMATS, Reporter

_log = logging.getLogger("static_access_lint")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the package root logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("static_access_lint")
    root.setLevel(level)
    root.handlers[:] = [handler]


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _import_cppcheckdata():
    """Import ``cppcheckdata`` with a friendly error on failure."""
    try:
        import cppcheckdata  # type: ignore[import-untyped]
        return cppcheckdata
    except ImportError:
        _log.error(
            "cppcheckdata is not installed.  "
            "Install cppcheck or add its addons directory to PYTHONPATH."
        )
        raise SystemExit(EXIT_INFRA)


# ===========================================================================
# Pipeline steps
# ===========================================================================

def build_config(args: argparse.Namespace) -> CheckConfig:
    """Defaults, then ``--config``, then individual flags."""
    config = CheckConfig.from_json_file(args.config) if args.config else CheckConfig()
    overrides: Dict[str, Any] = {
        "name_specifier_nesting_threshold": args.nesting_threshold,
        "include_inline_namespaces": args.inline_namespaces,
        "trim_enclosing_namespaces": args.trim_enclosing_namespaces,
        "use_written_type_names": args.written_type_names,
    }
    return config.merged({k: v for k, v in overrides.items() if v is not None})


def load_dump(cppcheckdata: Any, path: Path) -> Any:
    """Parse one dump file, wrapping parser failures in DumpLoadError."""
    _log.info("Parsing dump file: %s", path)
    try:
        return cppcheckdata.parsedump(str(path))
    except Exception as exc:
        raise DumpLoadError(str(path), str(exc)) from exc


def analyze(
    dumps: Sequence[Any],
    config: CheckConfig,
    sources: Optional[SourceCache] = None,
) -> CheckerRunResults:
    """Run the checker over already parsed dumps."""
    runner = CheckerRunner(config=config, sources=sources or SourceCache())
    combined = CheckerRunResults()
    for data in dumps:
        combined.merge(runner.run_all_configurations(data))
    return combined


def apply_fixes(diagnostics: Sequence[Diagnostic], include_notes: bool) -> int:
    """Apply the diagnostics' fixes to the files on disk; return the count."""
    fixits = [f for d in diagnostics for f in d.iter_fixits(include_notes=include_notes)]
    applied = 0
    for file, fixes in sorted(group_by_file(fixits).items()):
        result = apply_fixits_to_file(file, fixes)
        applied += len(result.applied)
        for fix in result.skipped:
            _log.warning("Fix at %s not applied", fix.range)
    return applied


# ===========================================================================
# Command implementation
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    try:
        config = build_config(args)
    except ConfigError as exc:
        _log.error("Invalid configuration: %s", exc)
        return EXIT_INFRA

    cppcheckdata = _import_cppcheckdata()
    paths = [_resolve_path(raw, "dump file") for raw in args.dumps]

    t0 = time.monotonic()
    try:
        dumps = [load_dump(cppcheckdata, p) for p in paths]
    except DumpLoadError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    results = analyze(dumps, config)
    _log.info("Analysis completed in %.3fs", time.monotonic() - t0)

    stream = _open_output(args.output)
    try:
        with Reporter(stream, fmt=args.format, tool_version=__version__) as rep:
            rep.report_all(results.diagnostics)
    finally:
        if stream is not sys.stdout:
            stream.close()

    if args.fix or args.fix_notes:
        try:
            count = apply_fixes(results.diagnostics, include_notes=args.fix_notes)
        except (FixApplicationError, OSError) as exc:
            _log.error("Applying fixes failed: %s", exc)
            return EXIT_INFRA
        _log.info("Applied %d fix(es)", count)

    if results.total_count and args.error_exitcode:
        return args.error_exitcode
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="static-access-lint",
        description=(
            "Find static class members accessed through an object instance\n"
            "in cppcheck dump files and rewrite them as qualified names."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              cppcheck --dump src/widget.cpp
              static-access-lint src/widget.cpp.dump
              static-access-lint src/widget.cpp.dump --format sarif -o report.sarif
              static-access-lint src/widget.cpp.dump --fix
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "dumps",
        nargs="+",
        metavar="DUMP",
        help="Path(s) to cppcheck .dump files.",
    )

    out = parser.add_argument_group("output")
    out.add_argument(
        "--format",
        choices=FORMATS,
        default="text",
        help="Output format (default: text).",
    )
    out.add_argument(
        "-o", "--output",
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    out.add_argument(
        "--error-exitcode",
        type=int,
        default=EXIT_OK,
        metavar="N",
        help="Exit with N when at least one finding was reported.",
    )

    fix = parser.add_argument_group("fixes")
    fix.add_argument(
        "--fix",
        action="store_true",
        help="Apply the suggested rewrites attached to warnings.",
    )
    fix.add_argument(
        "--fix-notes",
        action="store_true",
        help="Also apply rewrites attached to side-effect notes (implies --fix).",
    )

    opts = parser.add_argument_group("check options")
    opts.add_argument(
        "--config",
        default=None,
        metavar="FILE",
        help="JSON file with check options (a 'CheckOptions' object is unwrapped).",
    )
    opts.add_argument(
        "--nesting-threshold",
        type=int,
        default=None,
        metavar="N",
        help="Maximum number of qualifier segments in a rewrite (default: 3).",
    )
    opts.add_argument(
        "--inline-namespaces",
        dest="inline_namespaces",
        action="store_const",
        const=True,
        default=None,
        help="Spell inline namespaces in rewrites (default).",
    )
    opts.add_argument(
        "--no-inline-namespaces",
        dest="inline_namespaces",
        action="store_const",
        const=False,
        help="Omit inline namespaces from rewrites.",
    )
    opts.add_argument(
        "--trim-enclosing-namespaces",
        action="store_const",
        const=True,
        default=None,
        help="Drop leading namespaces that already enclose the access.",
    )
    opts.add_argument(
        "--no-written-type-names",
        dest="written_type_names",
        action="store_const",
        const=False,
        default=None,
        help="Qualify with the declaring scope even where a typedef was used.",
    )
    parser.set_defaults(func=cmd_check)
    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())


__all__ = [
    "EXIT_OK",
    "EXIT_ERROR",
    "EXIT_INFRA",
    "build_config",
    "load_dump",
    "analyze",
    "apply_fixes",
    "main",
]
