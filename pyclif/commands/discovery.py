"""Load command trees and patterns from directories of Python modules.

Command modules::

    # commands/remote/add.py
    describe = "Add a remote"
    positionals = ["<name>", "[url]"]
    flags = {"force": {"description": "Overwrite", "type": "boolean", "alias": "f"}}

    def run(invocation):
        yield {"ns": "git", "op": "remote-add", "name": invocation.inputs["name"]}

A sub-directory is a command group, its `__init__.py` provides `describe`.

Pattern modules pair a `patterns` mapping with functions of the same name::

    # patterns/io.py
    patterns = {"read": {"ns": "io", "op": "read"}}

    async def read(intent, settings): ...
"""

from __future__ import annotations

import importlib.util
import inspect
import re
import sys
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from ..logging_setup import get_logger
from ..matching import is_pattern
from ..models import StructuralError
from .models import CommandDeclaration, CommandGroup, CommandTree, FlagDeclaration
from .validation import validate_pattern_module

__all__ = ["declaration_from_module", "load_module", "load_patterns", "load_structure"]

_INVALID_CHARS = re.compile(r"\W")


def _module_name(prefix: str, path: Path) -> str:
    parts = [_INVALID_CHARS.sub("_", part) for part in path.with_suffix("").parts[-3:]]
    return ".".join([prefix, *parts])


def load_module(path: Path, prefix: str = "pyclif_modules") -> ModuleType:
    """Import the Python file at `path` under a unique module name.

    Raises:
        SyntaxError: The file is not valid Python
        Exception: Anything raised while executing the module
    """
    name = _module_name(prefix, path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot import {path}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[name]
        raise
    return module


def _flags_from_module(value: Any) -> Any:  # noqa: ANN401
    """Convert the `flags` attribute of a command module to flag declarations.

    Accepts a mapping of name to properties, or a list of FlagDeclaration.
    Other values are returned untouched for the validator to report.
    """
    if isinstance(value, Mapping):
        flags: list[FlagDeclaration | Any] = []
        for name, props in value.items():
            if not isinstance(props, Mapping):
                flags.append(props)
                continue
            flags.append(
                FlagDeclaration(
                    name=name,
                    description=props.get("description", props.get("describe")),
                    type=props.get("type"),
                    alias=props.get("alias", ()),
                    default=props.get("default"),
                )
            )
        return flags
    return value


def declaration_from_module(module: ModuleType) -> CommandDeclaration:
    """Build a command declaration from a command module."""
    return CommandDeclaration(
        description=getattr(module, "describe", None),  # type: ignore[arg-type]
        logic=getattr(module, "run", None),
        positionals=getattr(module, "positionals", ()),
        flags=_flags_from_module(getattr(module, "flags", [])),
    )


def _syntax_error(path: Path, err: SyntaxError) -> StructuralError:
    return StructuralError(f"{path}:{err.lineno}: invalid syntax: {err.msg}")


def load_structure(directory: str | Path, errors: list[StructuralError]) -> CommandTree:
    """Load the command tree rooted at `directory`.

    Args:
        directory: Folder of command modules and group folders
        errors: Receives a StructuralError per module with a syntax error

    Returns:
        Command names to declarations and groups, sorted by name
    """
    log = get_logger("discovery")
    tree: CommandTree = {}
    for entry in sorted(Path(directory).iterdir()):
        if entry.name.startswith(("_", ".")):
            continue
        if entry.is_dir():
            description: Any = None
            init = entry / "__init__.py"
            if init.exists():
                try:
                    description = getattr(load_module(init), "describe", None)
                except SyntaxError as e:
                    errors.append(_syntax_error(init, e))
            tree[entry.name] = CommandGroup(description=description, commands=load_structure(entry, errors))
            continue
        if entry.suffix != ".py":
            continue
        log.debug("Loading command %s", entry)
        try:
            module = load_module(entry)
        except SyntaxError as e:
            errors.append(_syntax_error(entry, e))
            continue
        tree[entry.stem] = declaration_from_module(module)
    return tree


def load_patterns(directory: str | Path, errors: list[StructuralError]) -> list[tuple[Any, Any]]:
    """Load the (pattern, handler) pairs of every pattern module in `directory`.

    Args:
        directory: Folder of pattern modules
        errors: Receives a StructuralError per unpaired pattern or function

    Returns:
        Valid pairs, in file then declaration order
    """
    pairs: list[tuple[Any, Any]] = []
    for path in sorted(Path(directory).glob("*.py")):
        if path.name.startswith("_"):
            continue
        try:
            module = load_module(path, prefix="pyclif_patterns")
        except SyntaxError as e:
            errors.append(_syntax_error(path, e))
            continue
        patterns = getattr(module, "patterns", None)
        actions = {
            name: fn
            for name, fn in vars(module).items()
            if inspect.isfunction(fn) and fn.__module__ == module.__name__ and not name.startswith("_")
        }
        errors.extend(validate_pattern_module(str(path), patterns, actions))
        if not isinstance(patterns, Mapping):
            continue
        for name, pattern in patterns.items():
            if name in actions and is_pattern(pattern):
                pairs.append((pattern, actions[name]))
    return pairs
