"""Configuration paths and build defaults for DocGraph."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("DOCGRAPH_HOME", str(Path.home() / ".docgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
LOCAL_CONFIG_NAME = "docgraph.toml"

DEFAULT_TYPE_GRAPH = "type-graph.txt"
DEFAULT_CONTENT_DIR = "lib"
DEFAULT_OUT_DIR = "html"
DEFAULT_ON_CONFLICT = "abort"
CONFLICT_POLICIES = ("abort", "skip")
DEFAULT_ENTRY_LEVEL = 2
DOCUMENT_SUFFIX = ".json"


def ensure_base_dirs() -> None:
    """Create the user configuration directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
