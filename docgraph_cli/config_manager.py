"""Configuration manager for DocGraph using TOML files.

Settings live in the ``[build]`` section.  Values are resolved from, in
increasing priority: built-in defaults, the user file
(``$DOCGRAPH_HOME/config.toml``), and a ``docgraph.toml`` in the working
directory.  Command-line options override all of them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .errors import ConfigError

logger = logging.getLogger(__name__)

BUILD_SECTION = "build"


@dataclass
class BuildSettings:
    type_graph: str = config.DEFAULT_TYPE_GRAPH
    content_dir: str = config.DEFAULT_CONTENT_DIR
    out_dir: str = config.DEFAULT_OUT_DIR
    on_conflict: str = config.DEFAULT_ON_CONFLICT
    entry_level: int = config.DEFAULT_ENTRY_LEVEL

    def validate(self) -> "BuildSettings":
        if self.on_conflict not in config.CONFLICT_POLICIES:
            raise ConfigError(
                f"on_conflict must be one of {', '.join(config.CONFLICT_POLICIES)}, got '{self.on_conflict}'"
            )
        try:
            self.entry_level = int(self.entry_level)
        except (TypeError, ValueError):
            raise ConfigError(f"entry_level must be an integer, got '{self.entry_level}'") from None
        if self.entry_level < 1:
            raise ConfigError(f"entry_level must be positive, got {self.entry_level}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load an entire TOML config file (all sections).

    A missing file yields ``{}``; an unreadable one is logged and ignored.
    """
    path = path or config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def _save_full_config(payload: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Write the whole config dict, preserving all sections."""
    path = path or config.CONFIG_FILE
    if path == config.CONFIG_FILE:
        config.ensure_base_dirs()
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(payload, f)
    return path


def load_build_settings(cwd: Optional[Path] = None) -> BuildSettings:
    """Resolve ``[build]`` settings from defaults, user and local files."""
    merged: Dict[str, Any] = {}
    local = (cwd or Path.cwd()) / config.LOCAL_CONFIG_NAME
    for path in (config.CONFIG_FILE, local):
        section = load_full_config(path).get(BUILD_SECTION, {})
        if not isinstance(section, dict):
            raise ConfigError(f"{path}: [{BUILD_SECTION}] must be a table")
        merged.update(section)

    known = set(BuildSettings.__dataclass_fields__)
    unknown = sorted(set(merged) - known)
    if unknown:
        logger.warning("Ignoring unknown build settings: %s", ", ".join(unknown))
    return BuildSettings(**{k: v for k, v in merged.items() if k in known}).validate()


def save_build_setting(key: str, value: str, path: Optional[Path] = None) -> Path:
    """Persist one ``[build]`` key, preserving the rest of the file.

    Args:
        key: A :class:`BuildSettings` field name.
        value: New value as typed on the command line.
        path: Target file, the user config by default.

    Returns:
        The file that was written.
    """
    if key not in BuildSettings.__dataclass_fields__:
        raise ConfigError(f"unknown build setting '{key}'")

    payload = load_full_config(path)
    section = dict(payload.get(BUILD_SECTION, {}))
    section[key] = value
    settings = BuildSettings(**{
        k: v for k, v in section.items() if k in BuildSettings.__dataclass_fields__
    }).validate()
    section[key] = getattr(settings, key)
    payload[BUILD_SECTION] = section
    return _save_full_config(payload, path)


def clear_build_settings(path: Optional[Path] = None) -> Path:
    """Remove the ``[build]`` section, resetting to defaults."""
    payload = load_full_config(path)
    payload.pop(BUILD_SECTION, None)
    return _save_full_config(payload, path)
