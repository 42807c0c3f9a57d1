"""Built-in intent handlers, opt-in.

    app = Clif(structure="commands", patterns=[*BUILTIN_PATTERNS, *my_patterns])

Intents understood:

- `{"ns": "io", "op": "read", "path": ...}` -> file contents
- `{"ns": "io", "op": "write", "path": ..., "data": ...}` -> characters written
- `{"ns": "print", "text": ...}` -> None (stdout, or stderr with `"stderr": True`)
- `{"ns": "log", "message": ..., "level": "info"}` -> None
- `{"ns": "exit", "code": n}` -> never returns, exits the process
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import aiofiles

from .ansi import Styles, paint
from .logging_setup import get_logger
from .models import Fail

__all__ = [
    "BUILTIN_PATTERNS",
    "RECOVERY_PATTERNS",
    "exit_process",
    "log_message",
    "print_text",
    "read_file",
    "report_failure",
    "write_file",
]


async def read_file(intent: dict[str, Any], _settings: Any) -> str:  # noqa: ANN401
    """Read a text file."""
    async with aiofiles.open(intent["path"], encoding=intent.get("encoding", "utf-8")) as f:
        return await f.read()


async def write_file(intent: dict[str, Any], _settings: Any) -> int:  # noqa: ANN401
    """Write (or append with `"append": True`) text to a file."""
    mode = "a" if intent.get("append") else "w"
    async with aiofiles.open(intent["path"], mode, encoding=intent.get("encoding", "utf-8")) as f:
        return await f.write(intent.get("data", ""))


def print_text(intent: dict[str, Any], _settings: Any) -> None:  # noqa: ANN401
    """Print some text."""
    stream = sys.stderr if intent.get("stderr") else sys.stdout
    print(intent.get("text", ""), file=stream)


def log_message(intent: dict[str, Any], _settings: Any) -> None:  # noqa: ANN401
    """Log through the "command" logger (or the one named by `logger`)."""
    level = logging.getLevelNamesMapping().get(str(intent.get("level", "info")).upper(), logging.INFO)
    get_logger(intent.get("logger", "command")).log(level, "%s", intent.get("message", ""))


def exit_process(intent: dict[str, Any], _settings: Any) -> None:  # noqa: ANN401
    """Exit with `code` (0 by default). SystemExit is never recovered."""
    raise SystemExit(int(intent.get("code", 0)))


def report_failure(err: BaseException, _settings: Any) -> Fail:  # noqa: ANN401
    """Print the normalized failure on stderr and absorb the error."""
    failure = Fail.from_error(err)
    print(paint("Error:", Styles.FAILURE, sys.stderr), failure.summary(), file=sys.stderr)
    return failure


BUILTIN_PATTERNS: list[tuple[dict[str, Any], Any]] = [
    ({"ns": "io", "op": "read"}, read_file),
    ({"ns": "io", "op": "write"}, write_file),
    ({"ns": "print"}, print_text),
    ({"ns": "log"}, log_message),
    ({"ns": "exit"}, exit_process),
]

# Absorbs every error: only add it when failures should not propagate
RECOVERY_PATTERNS: list[tuple[type, Any]] = [
    (Exception, report_failure),
]
