"""Shared configuration utilities.

Reads ~/.rc-interactions/configuration.json (or the file named by the
RC_INTERACTIONS_CONFIG environment variable). Every value has a default, so a
missing or unreadable file simply yields the defaults.

Example configuration.json:
    {
      "storage_path": "/srv/rc-interactions",
      "max_iterations": 200,
      "initial_memory": {"honor_level": 55},
      "log_level": "DEBUG"
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from interactions.graph.executor import DEFAULT_MAX_ITERATIONS, GameMemory

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

CONFIG_DIR = Path.home() / ".rc-interactions"
CONFIG_FILE = CONFIG_DIR / "configuration.json"
CONFIG_ENV_VAR = "RC_INTERACTIONS_CONFIG"

DEFAULT_INITIAL_MEMORY: GameMemory = {"honor_level": 55}


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_FILE


def get_interactions_config() -> dict[str, Any]:
    """Load the configuration file as a dict."""
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def get_storage_path() -> Path:
    """Return the project storage root."""
    configured = get_interactions_config().get("storage_path")
    return Path(configured).expanduser() if configured else CONFIG_DIR


def get_max_iterations() -> int:
    """Return the traversal step bound, falling back to DEFAULT_MAX_ITERATIONS."""
    value = get_interactions_config().get("max_iterations", DEFAULT_MAX_ITERATIONS)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return DEFAULT_MAX_ITERATIONS
    return value


def get_initial_memory() -> GameMemory:
    """Return a fresh copy of the memory a simulator session starts with."""
    memory = get_interactions_config().get("initial_memory")
    if not isinstance(memory, dict):
        memory = DEFAULT_INITIAL_MEMORY
    return dict(memory)


def get_log_level() -> str:
    return str(get_interactions_config().get("log_level", "INFO")).upper()


# ---------------------------------------------------------------------------
# InteractionsConfig – shared by the CLI, simulator and runtime bridge
# ---------------------------------------------------------------------------


@dataclass
class InteractionsConfig:
    """Runtime configuration loaded from configuration.json."""

    storage_path: Path = field(default_factory=get_storage_path)
    max_iterations: int = field(default_factory=get_max_iterations)
    initial_memory: GameMemory = field(default_factory=get_initial_memory)
    log_level: str = field(default_factory=get_log_level)
