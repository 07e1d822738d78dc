"""Load TernConfig from tern.yaml / tern.toml and the environment.

Precedence, lowest first: file config, ``TERN_MODE``, explicit overrides
(CLI flags).  Overrides always win.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

import yaml

from tern._errors import ConfigError
from tern.config import TernConfig

MODE_ENV_VAR = "TERN_MODE"

_KNOWN_KEYS: frozenset[str] = frozenset({
    "mode", "host", "port", "port_attempts", "output",
    "source_dir", "styles_dir", "style_entry", "scripts_dir", "pages_dir",
    "includes_dir", "index_file", "subsite_dir",
    "watch_debounce_ms", "build_debounce_ms", "poll_interval_ms",
    "rebuild_policy", "prefix_command", "browsers", "subsite_browsers",
})

_TUPLE_KEYS: frozenset[str] = frozenset({"prefix_command", "browsers", "subsite_browsers"})


def load_config(root: Path, **overrides: object) -> TernConfig:
    """Load TernConfig from root, merging tern.yaml/tern.toml and TERN_MODE.

    ``None`` overrides are ignored so CLI defaults never mask file values.

    Raises:
        ConfigError: If a config file exists but cannot be parsed, or a
            value is invalid.

    """
    merged = _read_tern_config(root)
    env_mode = os.environ.get(MODE_ENV_VAR)
    if env_mode:
        merged["mode"] = env_mode.strip().lower()
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if "output" in merged and not isinstance(merged["output"], Path):
        merged["output"] = Path(str(merged["output"]))
    for key in _TUPLE_KEYS & merged.keys():
        merged[key] = _as_tuple(key, merged[key])

    try:
        return TernConfig(root=root, **merged)  # type: ignore[arg-type]
    except TypeError as exc:
        msg = f"Invalid configuration: {exc}"
        raise ConfigError(msg) from exc


def _read_tern_config(root: Path) -> dict[str, object]:
    """Read tern config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("tern.yaml", "tern.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "tern.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_tern_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_tern_section(data)


def _flatten_tern_section(data: dict[str, object]) -> dict[str, object]:
    """Extract tern.* keys and known top-level keys into one flat dict."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("tern")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result


def _as_tuple(key: str, value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split()) if key == "prefix_command" else (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    msg = f"{key} must be a string or a list of strings, got {type(value).__name__}"
    raise ConfigError(msg)
