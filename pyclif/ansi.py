"""Terminal colors for log records and failure reports.

Colors are turned off by NO_COLOR, forced on by FORCE_COLOR, and otherwise
only used when the stream is a terminal.
"""

import logging
import os
import sys
from typing import TextIO

__all__ = [
    "BOLD",
    "DIM",
    "RED",
    "RESET",
    "YELLOW",
    "Styles",
    "colorize",
    "paint",
    "sgr",
    "should_colorize",
]

_ESC = "\x1b["
RESET = f"{_ESC}0m"

BOLD = "1"
DIM = "2"
RED = "31"
YELLOW = "33"

Style = tuple[str, ...]


def should_colorize(stream: TextIO | None = None) -> bool:
    """Tell if ANSI sequences may be written to `stream` (stderr by default)."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    isatty = getattr(sys.stderr if stream is None else stream, "isatty", None)
    return bool(isatty and isatty())


def sgr(*codes: str) -> str:
    """Return the escape sequence selecting `codes`, "" when there is none."""
    return f"{_ESC}{';'.join(codes)}m" if codes else ""


def colorize(text: str, *codes: str) -> str:
    """Wrap `text` between the `codes` sequence and a reset."""
    return f"{sgr(*codes)}{text}{RESET}" if codes else text


def paint(text: str, style: Style, stream: TextIO | None = None) -> str:
    """Colorize `text` only if `stream` accepts colors."""
    return colorize(text, *style) if should_colorize(stream) else text


class Styles:
    """Styles of the diagnostics written by pyclif."""

    WARNING: Style = (YELLOW, DIM)
    ERROR: Style = (RED, DIM)
    CRITICAL: Style = (RED, BOLD)
    FAILURE: Style = (RED, BOLD)  # "Error:" prefix of failure reports

    @classmethod
    def for_level(cls, levelno: int) -> Style:
        """Return the style of a log level (empty below WARNING)."""
        if levelno >= logging.CRITICAL:
            return cls.CRITICAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        return ()
