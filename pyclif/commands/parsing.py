"""Command line parsing: positional notation, flag configuration and argv."""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..models import UsageError
from .models import CommandArg, Implicits

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import FlagDeclaration

__all__ = [
    "FlagConfig",
    "ParsedArgs",
    "option_strings",
    "parse_argv",
    "parse_implicit_flags",
    "parse_positionals",
]

# Regex pattern to match args: <required> or [optional]
_ARG_PATTERN = re.compile(r"^([<\[])([^>\]]+)([>\]])$")

_POSITIONALS_DEST = "__positionals__"


def parse_positionals(names: Iterable[str]) -> list[CommandArg]:
    """Parse positional names written in bracket notation.

    "<name>" and "name" are required, "[name]" is optional.
    """
    args: list[CommandArg] = []
    for name in names:
        match = _ARG_PATTERN.match(name.strip())
        if match:
            args.append(CommandArg(value=match.group(2), required=match.group(1) == "<"))
        else:
            args.append(CommandArg(value=name.strip(), required=True))
    return args


def option_strings(name: str) -> list[str]:
    """Return the command line spelling of a flag name ("v" -> "-v", "verbose" -> "--verbose")."""
    return [f"-{name}" if len(name) == 1 else f"--{name}"]


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser reporting errors as exceptions instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


@dataclass
class FlagConfig:
    """Parsing configuration derived from the flag declarations of a command."""

    string: list[str] = field(default_factory=list)
    boolean: list[str] = field(default_factory=list)
    alias: dict[str, list[str]] = field(default_factory=dict)
    default: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_flags(cls, flags: Iterable[FlagDeclaration]) -> FlagConfig:
        """Build the configuration from (already validated) flag declarations."""
        config = cls()
        for flag in flags:
            if flag.type == "string":
                config.string.append(flag.name)
            else:
                config.boolean.append(flag.name)
            if flag.aliases:
                config.alias[flag.name] = flag.aliases
            if flag.default is not None:
                config.default[flag.name] = flag.default
        return config

    def build_parser(self, prog: str | None = None) -> argparse.ArgumentParser:
        """Return an argparse parser for the declared flags.

        Positionals are collected in a single list, unknown flags are left
        to `parse_known_intermixed_args`.
        """
        parser = _ArgumentParser(prog=prog, add_help=False, allow_abbrev=False, exit_on_error=False)
        for name in self.boolean:
            parser.add_argument(
                *self._spellings(name),
                dest=name,
                action=argparse.BooleanOptionalAction,
                default=bool(self.default.get(name, False)),
            )
        for name in self.string:
            parser.add_argument(*self._spellings(name), dest=name, default=self.default.get(name))
        parser.add_argument(_POSITIONALS_DEST, nargs="*")
        return parser

    def _spellings(self, name: str) -> list[str]:
        spellings = option_strings(name)
        for alias in self.alias.get(name, []):
            spellings.extend(option_strings(alias))
        return spellings


@dataclass
class ParsedArgs:
    """Result of `parse_argv`."""

    inputs: dict[str, Any]
    implicits: Implicits
    posteriors: list[str]


def _coerce(value: str) -> Any:  # noqa: ANN401
    for kind in (int, float):
        try:
            return kind(value)
        except ValueError:
            continue
    return value


def parse_implicit_flags(raw: Iterable[str]) -> dict[str, Any]:
    """Loosely parse flags nobody declared.

    "--a=b" -> {"a": "b"}, "--a" -> {"a": True}, "--no-a" -> {"a": False},
    "-xy" -> {"x": True, "y": True}. Numeric values are converted.
    """
    parsed: dict[str, Any] = {}
    for token in raw:
        if token.startswith("--"):
            name, sep, value = token[2:].partition("=")
            if sep:
                parsed[name] = _coerce(value)
            elif name.startswith("no-"):
                parsed[name[3:]] = False
            else:
                parsed[name] = True
        elif token.startswith("-"):
            name, sep, value = token[1:].partition("=")
            if sep:
                parsed[name] = _coerce(value)
            else:
                parsed.update(dict.fromkeys(name, True))
    return parsed


def parse_argv(argv: list[str], config: FlagConfig, positionals: Iterable[str] = ()) -> ParsedArgs:
    """Parse the argv of one command.

    Args:
        argv: Arguments left after the command path
        config: Declared flags
        positionals: Declared positional names, bracket notation allowed

    Returns:
        Inputs (declared flags and positionals by name), implicits and posteriors

    Raises:
        UsageError: A declared flag is malformed (eg: a string flag without value)
    """
    if "--" in argv:
        split = argv.index("--")
        argv, posteriors = argv[:split], argv[split + 1 :]
    else:
        posteriors = []

    try:
        namespace, extras = config.build_parser().parse_known_intermixed_args(argv)
    except argparse.ArgumentError as e:
        raise UsageError(str(e)) from e

    values = vars(namespace)
    args: list[str] = list(values.pop(_POSITIONALS_DEST) or [])
    implicits = Implicits()
    for token in extras:
        if token.startswith("-") and len(token) > 1:
            implicits.flags.raw.append(token)
        else:
            args.append(token)
    implicits.flags.parsed = parse_implicit_flags(implicits.flags.raw)

    declared = parse_positionals(positionals)
    implicits.positionals = args[len(declared) :]
    inputs = dict(values)
    for index, arg in enumerate(declared):
        inputs[arg.value] = args[index] if index < len(args) else None

    return ParsedArgs(inputs=inputs, implicits=implicits, posteriors=posteriors)
