"""
gws.config — User configuration.

~/.gws/config.yaml:

    parallel: 8
    max-depth: 20
    timeout: 300          # seconds per repository operation, 0 = none
    stop-on-error: false
    format: text          # text | json | yaml
    only-changes: false
    git-binary: git

Priority (high to low):
    CLI flag > GWS_* env var > config file > default
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from gws.engine.engine import DEFAULT_PARALLEL
from gws.workspace.resolver import DEFAULT_MAX_DEPTH

GWS_HOME = Path.home() / ".gws"
FORMATS = ("text", "json", "yaml")

_ENV_PREFIX = "GWS_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class GwsConfig:
    """Resolved gws settings."""
    parallel: int = DEFAULT_PARALLEL
    max_depth: int = DEFAULT_MAX_DEPTH
    timeout: float = 0.0
    stop_on_error: bool = False
    format: str = "text"
    only_changes: bool = False
    git_binary: str = "git"

    def apply(self, **overrides: Any) -> GwsConfig:
        """Apply non-None overrides (CLI flags) in place."""
        for key, value in overrides.items():
            if value is not None:
                setattr(self, key, _coerce(key, value))
        return self


class ConfigError(Exception):
    """Invalid configuration value."""
    pass


_TYPES: dict[str, type] = {
    "parallel": int,
    "max_depth": int,
    "timeout": float,
    "stop_on_error": bool,
    "format": str,
    "only_changes": bool,
    "git_binary": str,
}


def _coerce(key: str, value: Any) -> Any:
    kind = _TYPES[key]

    try:
        if kind is bool:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(value)
        result = kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for '{key}': {value!r}") from None

    if key in ("parallel", "max_depth", "timeout") and result < 0:
        raise ConfigError(f"'{key}' must not be negative, got {value!r}")
    if key == "format" and result not in FORMATS:
        raise ConfigError(f"Unknown format '{value}'. Expected one of: {', '.join(FORMATS)}")
    return result


def config_path() -> Path:
    return GWS_HOME / "config.yaml"


# Dashed key → description, in display order
KEYS: dict[str, str] = {
    "parallel": "Repositories processed concurrently",
    "max-depth": "Maximum nesting of linked workspaces",
    "timeout": "Seconds per repository operation (0 = none)",
    "stop-on-error": "Stop starting new operations after the first failure",
    "format": "Default status output: text | json | yaml",
    "only-changes": "Status shows only repositories with changes",
    "git-binary": "git executable",
}

# Where a resolved value came from
DEFAULT = "default"
FILE = "file"
ENV = "env"


def field_name(key: str) -> str:
    """Map a dashed or underscored key to its GwsConfig field.

    Raises:
        ConfigError: Unknown key
    """
    name = str(key).strip().replace("-", "_")
    if name not in _TYPES:
        raise ConfigError(
            f"Unknown config key '{key}'. Available keys: {', '.join(KEYS)}"
        )
    return name


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_config(
    path: str | Path | None = None,
    env: dict[str, str] | None = None,
) -> tuple[GwsConfig, dict[str, str]]:
    """Like load_config, also reporting the source of every setting.

    Returns:
        (config, {field name: "default" | "file" | "env"})
    """
    cfg = GwsConfig()
    sources = {key: DEFAULT for key in _TYPES}
    cp = Path(path) if path else config_path()

    if cp.exists():
        with open(cp, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse {cp}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must be a YAML mapping: {cp}")

        for raw_key, value in data.items():
            key = str(raw_key).replace("-", "_")
            if key not in _TYPES:
                raise ConfigError(f"Unknown config key '{raw_key}' in {cp}")
            setattr(cfg, key, _coerce(key, value))
            sources[key] = FILE

    environ = os.environ if env is None else env
    for key in _TYPES:
        value = environ.get(_ENV_PREFIX + key.upper())
        if value is not None and value.strip():
            setattr(cfg, key, _coerce(key, value))
            sources[key] = ENV

    return cfg, sources


def load_config(path: str | Path | None = None, env: dict[str, str] | None = None) -> GwsConfig:
    """Build the config from defaults, the config file and environment.

    Raises:
        ConfigError: Malformed file or invalid value
    """
    cfg, _ = resolve_config(path, env)
    return cfg


def save_config(cfg: GwsConfig, path: str | Path | None = None) -> Path:
    """Write non-default settings to the config file. Returns its path."""
    cp = Path(path) if path else config_path()
    cp.parent.mkdir(parents=True, exist_ok=True)

    defaults = GwsConfig()
    data: dict[str, Any] = {}
    for fld in fields(GwsConfig):
        value = getattr(cfg, fld.name)
        if value != getattr(defaults, fld.name):
            data[fld.name.replace("_", "-")] = value

    with open(cp, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    return cp


def set_value(key: str, value: str, path: str | Path | None = None) -> Path:
    """Persist one setting in the config file.

    Only the file's own values are rewritten; environment overrides are
    never copied into it.

    Raises:
        ConfigError: Unknown key, invalid value or malformed file
    """
    name = field_name(key)
    cfg = load_config(path, env={})
    cfg.apply(**{name: value})
    return save_config(cfg, path)
