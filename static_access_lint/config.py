"""
static_access_lint/config.py
════════════════════════════

Options of the static-access rule.

Sources, lowest precedence first:

  1. defaults (``CheckConfig()``)
  2. a JSON file (``--config rules.json``)
  3. a checker options mapping (``CheckerContext.options``)
  4. command-line flags

Option keys are accepted both in snake_case and in the clang-tidy spelling
(``NameSpecifierNestingThreshold``), so existing ``.clang-tidy`` option
blocks can be copied over unchanged.

License: MIT
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from static_access_lint.errors import ConfigError

_log = logging.getLogger(__name__)

DEFAULT_NESTING_THRESHOLD = 3

# clang-tidy style key → field name
_OPTION_ALIASES: Dict[str, str] = {
    "NameSpecifierNestingThreshold": "name_specifier_nesting_threshold",
    "IncludeInlineNamespaces": "include_inline_namespaces",
    "TrimEnclosingNamespaces": "trim_enclosing_namespaces",
    "UseWrittenTypeNames": "use_written_type_names",
    "AttachFixToNote": "attach_fix_to_note",
}


@dataclass(frozen=True)
class CheckConfig:
    """
    Attributes
    ----------
    name_specifier_nesting_threshold :
        Maximum number of qualifying segments a rewrite may spell out.  A
        path exactly this deep is still rewritten.
    include_inline_namespaces :
        Spell inline namespaces in the qualifier even though lookup finds
        the member without them.
    trim_enclosing_namespaces :
        Drop leading namespaces that already enclose the access site.
    use_written_type_names :
        Prefer the base object's type as the user wrote it (typedef and
        alias names included) over the declaring scope chain.
    attach_fix_to_note :
        When the base expression may have side effects, hang the fix off
        the note instead of the warning.
    """
    name_specifier_nesting_threshold: int = DEFAULT_NESTING_THRESHOLD
    include_inline_namespaces: bool = True
    trim_enclosing_namespaces: bool = False
    use_written_type_names: bool = True
    attach_fix_to_note: bool = True

    def __post_init__(self) -> None:
        threshold = self.name_specifier_nesting_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ConfigError(
                "name_specifier_nesting_threshold",
                f"expected an integer, got {threshold!r}",
            )
        if threshold < 1:
            raise ConfigError(
                "name_specifier_nesting_threshold",
                f"must be at least 1, got {threshold}",
                hint="a threshold of 1 only allows unqualified type names",
            )
        for f in fields(self):
            if f.type in ("bool", bool) and not isinstance(getattr(self, f.name), bool):
                raise ConfigError(f.name, f"expected a boolean, got {getattr(self, f.name)!r}")

    # ── construction helpers ─────────────────────────────────────────

    def merged(self, options: Mapping[str, Any]) -> CheckConfig:
        """Return a copy with ``options`` applied on top of this config."""
        known = {f.name for f in fields(self)}
        updates: Dict[str, Any] = {}
        for raw_key, value in options.items():
            key = _OPTION_ALIASES.get(raw_key, raw_key)
            if key not in known:
                _log.warning("Ignoring unknown option '%s'", raw_key)
                continue
            if value is None:
                continue
            updates[key] = _coerce(key, value)
        return replace(self, **updates) if updates else self

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> CheckConfig:
        return cls().merged(options)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> CheckConfig:
        """
        Load options from a JSON object.

        A top-level ``"CheckOptions"`` object is unwrapped, mirroring the
        layout of a ``.clang-tidy`` file.
        """
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(str(p), f"cannot read config file: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(str(p), f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(str(p), "top-level value must be an object")
        options = data.get("CheckOptions", data)
        if not isinstance(options, dict):
            raise ConfigError("CheckOptions", "must be an object")
        _log.info("Loaded configuration from %s", p)
        return cls.from_options(options)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(key: str, value: Any) -> Any:
    """Accept the string forms found in YAML/INI-ish option files."""
    if key == "name_specifier_nesting_threshold":
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise ConfigError(key, f"expected an integer, got {value!r}") from None
        return value
    if isinstance(value, str):
        low = value.strip().lower()
        if low in ("true", "1", "yes", "on"):
            return True
        if low in ("false", "0", "no", "off"):
            return False
        raise ConfigError(key, f"expected a boolean, got {value!r}")
    return value


__all__ = ["CheckConfig", "DEFAULT_NESTING_THRESHOLD"]
