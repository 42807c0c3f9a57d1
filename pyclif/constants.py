"""Shared constants for pyclif."""

import os
from pathlib import Path

__all__ = [
    "APP_SECTION",
    "CONFIG_FILE",
    "DEFAULT_APP_NAME",
    "HELP_FLAGS",
    "PATH_SEPARATOR",
    "VERSION_FLAGS",
]

# Config file path - use XDG_CONFIG_HOME with fallback to ~/.config
_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
CONFIG_FILE = _xdg_config_home / "pyclif" / "config.toml"

# Section of the configuration read by the framework itself
APP_SECTION = "pyclif"
DEFAULT_APP_NAME = "pyclif"

# Global flags recognized at every command level
HELP_FLAGS = frozenset({"--help", "-h"})
VERSION_FLAGS = frozenset({"--version", "-v"})

# Path separator of the strict (colon) command addressing
PATH_SEPARATOR = ":"
