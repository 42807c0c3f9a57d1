"""Data models for command declarations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

__all__ = [
    "CommandArg",
    "CommandDeclaration",
    "CommandGroup",
    "CommandTree",
    "FlagDeclaration",
    "ImplicitFlags",
    "Implicits",
    "Invocation",
]

FlagType = Literal["string", "boolean"]


@dataclass
class CommandArg:
    """A positional parameter of a command."""

    value: str  # e.g., "name" or "next|pause"
    required: bool  # True for <arg> or bare names, False for [arg]


@dataclass
class FlagDeclaration:
    """A `--flag` accepted by a command.

    Fields are checked by `validate_declaration`, not at construction time,
    so a declaration loaded from a module can carry any value.
    """

    name: str
    description: str
    type: FlagType
    alias: str | list[str] | tuple[str, ...] = ()
    default: Any = None

    @property
    def aliases(self) -> list[str]:
        """Return the aliases as a list."""
        if isinstance(self.alias, str):
            return [self.alias] if self.alias else []
        return list(self.alias or ())


@dataclass
class CommandDeclaration:
    """An executable command (leaf of the command tree)."""

    description: str
    logic: Callable[..., Any] | None = None  # generator function receiving an Invocation
    positionals: list[str] | tuple[str, ...] = ()  # "<required>" / "[optional]" notation
    flags: list[FlagDeclaration] = field(default_factory=list)


@dataclass
class CommandGroup:
    """A branch of the command tree: a description and sub-commands."""

    description: str
    commands: dict[str, CommandDeclaration | CommandGroup] = field(default_factory=dict)


CommandTree: TypeAlias = dict[str, CommandDeclaration | CommandGroup]


@dataclass
class ImplicitFlags:
    """Flags given on the command line but not declared by the command."""

    raw: list[str] = field(default_factory=list)
    parsed: dict[str, Any] = field(default_factory=dict)


@dataclass
class Implicits:
    """Undeclared inputs: extra positionals and unknown flags."""

    positionals: list[str] = field(default_factory=list)
    flags: ImplicitFlags = field(default_factory=ImplicitFlags)


@dataclass
class Invocation:
    """Everything the logic procedure of a command receives."""

    inputs: dict[str, Any]  # declared flags and positionals, by name
    settings: Any
    implicits: Implicits = field(default_factory=Implicits)
    posteriors: list[str] = field(default_factory=list)  # arguments after `--`
    argv: list[str] = field(default_factory=list)
