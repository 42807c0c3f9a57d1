"""Errors, exit codes and the normalized failure shape."""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum
from typing import Any

__all__ = [
    "ClifError",
    "CommandInterrupted",
    "CompositionError",
    "ConfigurationError",
    "ExitCode",
    "Fail",
    "RegistryFrozenError",
    "StructuralError",
    "UnknownCommandError",
    "UsageError",
]

FAILURE_NS = "failure"


class ClifError(Exception):
    """Base class for the errors raised by pyclif itself."""


class StructuralError(ClifError):
    """A declaration or module does not have the expected shape.

    Never raised alone: collected and reported through `CompositionError`.
    """


class CompositionError(ExceptionGroup):  # noqa: N818
    """Every structural problem found while building the command tree."""

    def __str__(self) -> str:
        lines = [self.message]
        lines.extend(f"  - {err}" for err in self.exceptions)
        return "\n".join(lines)


class ConfigurationError(ClifError):
    """The configuration file is missing or cannot be parsed."""


class UsageError(ClifError):
    """Invalid command line (eg: a string flag without a value)."""


class UnknownCommandError(ClifError):
    """No registered command matches the command line."""

    def __init__(self, argv: list[str]) -> None:
        super().__init__(f"Command not recognized: {' '.join(argv)}")
        self.argv = argv


class CommandInterrupted(ClifError):
    """The run was cancelled at a suspension point."""


class RegistryFrozenError(ClifError):
    """A pattern was registered after dispatch started."""


class Fail(Exception):
    """Normalized failure: a namespace, a message and any extra fields.

    Can be raised directly by command logic::

        raise Fail({"ns": "io", "path": path}, "cannot read")
        raise Fail("plain message")

    Every field is also available as an attribute, unless the name is
    already taken by the class (eg: `fields`, `args`); such fields stay
    reachable through `fields`.
    """

    def __init__(self, pattern: Mapping[str, Any] | str | None = None, message: str = "") -> None:
        if isinstance(pattern, str):
            message = pattern
            pattern = {}
        fields = dict(pattern or {})
        message = fields.pop("message", None) or message
        fields.setdefault("ns", FAILURE_NS)
        super().__init__(message)
        self.message = message
        self._fields = fields
        for key, value in fields.items():
            if not key.startswith("_") and not hasattr(type(self), key):
                setattr(self, key, value)

    @property
    def fields(self) -> dict[str, Any]:
        """Return the failure as a plain mapping (`ns`, `message` and extras)."""
        return {**self._fields, "message": self.message}

    def summary(self) -> str:
        """Return a one line report: `[ns] message {extra fields}`."""
        line = f"[{self._fields['ns']}] {self.message}"
        extras = {key: value for key, value in self._fields.items() if key not in ("ns", "error")}
        return f"{line} {extras}" if extras else line

    @classmethod
    def from_error(cls, err: BaseException) -> Fail:
        """Wrap any exception into the normalized failure shape.

        Public attributes attached to the exception become extra fields,
        the exception class name is kept as `error`.
        """
        if isinstance(err, Fail):
            return err
        extras = {key: value for key, value in vars(err).items() if not key.startswith("_")}
        extras.setdefault("error", type(err).__name__)
        failure = cls(extras, str(err) or type(err).__name__)
        failure.__cause__ = err
        return failure


class ExitCode(IntEnum):
    """Exit codes of the command line entry point."""

    SUCCESS = 0
    USAGE_ERROR = 1  # Unknown command, invalid arguments or declarations
    ENV_ERROR = 2  # Missing or unreadable configuration
    COMMAND_ERROR = 4  # Command execution failed
    INTERRUPTED = 130  # SIGINT
