"""
static_access_lint/errors.py
════════════════════════════

Exception hierarchy for the outer layers of the addon.

The analytic core (classifier, side-effect analyzer, scope-path resolver,
planner) never raises: every decision point degrades to "do not flag" or
"flag without rewrite".  The exceptions below belong to the layers that
touch the outside world: configuration, dump loading, qualified-name
parsing and fix application.

    StaticAccessLintError (base)
    ├── ConfigError               - invalid option value or config file
    ├── QualifiedNameSyntaxError  - type spelling the grammar rejects
    ├── DumpLoadError             - cppcheck dump could not be read
    └── FixApplicationError       - fix range does not fit the source text

License: MIT
"""

from __future__ import annotations

from typing import Optional


class StaticAccessLintError(Exception):
    """Base class for every error raised by ``static_access_lint``."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


class ConfigError(StaticAccessLintError):
    """An option value or configuration file is invalid."""

    def __init__(self, key: str, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(f"option '{key}': {message}", hint=hint)
        self.key = key


class QualifiedNameSyntaxError(StaticAccessLintError):
    """A C++ qualified type spelling could not be parsed."""

    def __init__(self, text: str, position: int = 0) -> None:
        super().__init__(
            f"cannot parse qualified name {text!r} at offset {position}"
        )
        self.text = text
        self.position = position


class DumpLoadError(StaticAccessLintError):
    """A cppcheck ``.dump`` file could not be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to load dump file {path}: {reason}")
        self.path = path
        self.reason = reason


class FixApplicationError(StaticAccessLintError):
    """A fix-it refers to a range that does not exist in the source text."""


__all__ = [
    "StaticAccessLintError",
    "ConfigError",
    "QualifiedNameSyntaxError",
    "DumpLoadError",
    "FixApplicationError",
]
