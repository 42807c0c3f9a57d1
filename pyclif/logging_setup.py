"""Logging setup: one set of handlers shared by every pyclif logger.

Debug mode (DEBUG level, detailed screen format) is enabled by the
`PYCLIF_DEBUG` or `DEBUG` environment variables, or by `--debug`.
"""

import logging
import os

from .ansi import RESET, Styles, sgr, should_colorize

__all__ = [
    "LogObjects",
    "ScreenLogFormatter",
    "get_logger",
    "init_logger",
    "is_debug",
    "set_debug",
]

SCREEN_FORMAT = "%(message)s"
DEBUG_SCREEN_FORMAT = "%(name)10s | %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s (%(filename)s:%(lineno)d)"


class _DebugState:
    """Container for mutable debug state to avoid global statement."""

    value: bool = bool(os.environ.get("PYCLIF_DEBUG") or os.environ.get("DEBUG"))


def is_debug() -> bool:
    """Return the current debug state."""
    return _DebugState.value


def set_debug(value: bool) -> None:
    """Set the debug state (applies to loggers returned afterwards)."""
    _DebugState.value = value


class LogObjects:
    """Handlers installed by `init_logger`."""

    handlers: list[logging.Handler] = []


class ScreenLogFormatter(logging.Formatter):
    """Terminal formatter, warnings and errors are colored."""

    def __init__(self, fmt: str, colored: bool) -> None:
        super().__init__(fmt)
        self.colored = colored

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        style = Styles.for_level(record.levelno)
        if self.colored and style:
            return f"{sgr(*style)}{text}{RESET}"
        return text


def init_logger(filename: str | None = None, force_debug: bool = False) -> None:
    """Replace the shared handlers.

    Args:
        filename: Also write every record to this file
        force_debug: Turn debug mode on
    """
    if force_debug:
        set_debug(True)
    handlers: list[logging.Handler] = []
    if filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)
    screen = logging.StreamHandler()
    screen.setFormatter(ScreenLogFormatter(DEBUG_SCREEN_FORMAT if is_debug() else SCREEN_FORMAT, should_colorize()))
    handlers.append(screen)
    LogObjects.handlers[:] = handlers


def get_logger(name: str = "pyclif", level: int | None = None) -> logging.Logger:
    """Return the logger `name`, attached to the shared handlers.

    Args:
        name: Logger name
        level: Logger level, DEBUG or WARNING depending on debug mode if not set
    """
    logger = logging.getLogger(name)
    if level is None:
        level = logging.DEBUG if is_debug() else logging.WARNING
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers = list(LogObjects.handlers)
    return logger
