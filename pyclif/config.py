"""Settings: the loaded configuration with typed accessors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import logging

__all__ = ["BOOL_FALSE_STRINGS", "Configuration", "coerce_to_bool"]

BOOL_FALSE_STRINGS = frozenset({"false", "no", "off", "0", "disabled"})


def coerce_to_bool(value: object, default: bool = False) -> bool:
    """Read `value` as a boolean.

    None gives `default`, strings are true unless blank or one of
    `BOOL_FALSE_STRINGS` (case insensitive), anything else uses `bool()`.
    """
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        return bool(text) and text not in BOOL_FALSE_STRINGS
    return bool(value)


class Configuration(dict):
    """Settings handed to every intent handler.

    A plain dict (usually loaded from TOML) with typed accessors. Handlers
    share the same instance: mutations are seen by the following handlers.
    """

    def __init__(self, *args: Any, logger: logging.Logger, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(*args, **kwargs)
        self.log = logger

    def get_bool(self, name: str, default: bool = False) -> bool:
        """Get a boolean, see `coerce_to_bool`."""
        return coerce_to_bool(self.get(name), default)

    def get_str(self, name: str, default: str = "") -> str:
        """Get a string, `default` if missing."""
        value = self.get(name)
        return default if value is None else str(value)

    def section(self, name: str) -> Configuration:
        """Return the `name` table (empty if missing or not a table)."""
        value = self.get(name)
        if value is not None and not isinstance(value, dict):
            self.log.warning("Ignoring %s: expected a table, got %r", name, value)
        return Configuration(value if isinstance(value, dict) else {}, logger=self.log)
