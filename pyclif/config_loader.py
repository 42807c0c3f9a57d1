"""Configuration loading: TOML files, directories of TOML files and includes.

    [pyclif]
    include = ["~/.config/pyclif/local.toml", "$PROJECT/pyclif.d"]
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .constants import APP_SECTION, CONFIG_FILE
from .models import ConfigurationError

if TYPE_CHECKING:
    import logging

__all__ = ["ConfigLoader", "merge"]


def merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Deep merge `source` into `target` and return `target`.

    Tables are merged, arrays concatenated, other values replaced::

        merge({"a": {"b": 1}}, {"a": {"c": 2}}) == {"a": {"b": 1, "c": 2}}
    """
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            current.extend(value)
        else:
            target[key] = value
    return target


class ConfigLoader:
    """Load the configuration, following `[pyclif] include` entries.

    A directory stands for all of its `*.toml` files, merged by name order.
    """

    def __init__(self, log: logging.Logger) -> None:
        self.log = log
        self.config: dict[str, Any] = {}

    def load(self, config_filename: str = "") -> dict[str, Any]:
        """Load `config_filename`, or the default location if empty.

        The default file may be missing (the configuration is then empty),
        an explicit one may not.

        Raises:
            ConfigurationError: A file is missing or is not valid TOML
        """
        if not config_filename and not CONFIG_FILE.exists():
            self.log.info("No configuration file at %s", CONFIG_FILE)
            return self.config
        merge(self.config, self._read(config_filename or str(CONFIG_FILE)))
        return self.config

    def _read(self, location: str) -> dict[str, Any]:
        path = Path(os.path.expandvars(location)).expanduser()
        if path.is_dir():
            config: dict[str, Any] = {}
            for child in sorted(path.glob("*.toml")):
                merge(config, self._read_file(child))
        else:
            config = self._read_file(path)
        for extra in list(config.get(APP_SECTION, {}).get("include", [])):
            merge(config, self._read(extra))
        return config

    def _read_file(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            self.log.critical("Config file not found: %s", path)
            msg = f"Config file not found: {path}"
            raise ConfigurationError(msg)
        self.log.info("Loading %s", path)
        try:
            with path.open("rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            self.log.critical("Problem reading %s: %s", path, e)
            msg = f"Problem reading {path}: {e}"
            raise ConfigurationError(msg) from e
