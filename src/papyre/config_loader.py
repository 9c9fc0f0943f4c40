"""Load the caller build config from papyre.yaml / papyre.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from papyre._errors import ConfigError

CONFIG_NAMES = ("papyre.yaml", "papyre.yml", "papyre.toml")


def load_config(path: Path, **overrides: object) -> dict[str, object]:
    """Load the caller config from *path*, optionally merging a config file.

    *path* is either a config file or a directory that may contain one of
    ``papyre.yaml``, ``papyre.yml`` or ``papyre.toml``. A relative ``entry``
    is resolved against the directory the config lives in. Overrides take
    precedence; ``None`` overrides are ignored.
    """
    config_file = _find_config_file(path)
    base_dir = config_file.parent if config_file is not None else path
    file_config = _read_config_file(config_file) if config_file is not None else {}

    cli = {k: v for k, v in overrides.items() if v is not None}
    merged = {**file_config, **cli}
    entry = file_config.get("entry")
    if isinstance(entry, str) and "entry" not in cli:
        merged["entry"] = _relative_to(base_dir, entry)
    return merged


def _find_config_file(path: Path) -> Path | None:
    if path.is_file():
        return path
    if path.is_dir():
        for name in CONFIG_NAMES:
            candidate = path / name
            if candidate.is_file():
                return candidate
        return None
    msg = f"Config path {path} does not exist"
    raise ConfigError(msg)


def _read_config_file(path: Path) -> dict[str, object]:
    """Parse a yaml or toml config file into a flat mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to read config file {path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        if path.suffix == ".toml":
            data = tomllib.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        msg = f"Failed to parse config file {path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_papyre_section(data)


def _flatten_papyre_section(data: dict[str, object]) -> dict[str, object]:
    """Hoist papyre.* keys to the top level. Section keys win over top-level ones."""
    result = {k: v for k, v in data.items() if k != "papyre"}
    section = data.get("papyre")
    if isinstance(section, dict):
        result.update(section)
    return result


def _relative_to(base_dir: Path, entry: str) -> str:
    if Path(entry).is_absolute():
        return entry
    return str(base_dir / entry)
