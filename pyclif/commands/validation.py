"""Structural validation of command declarations and pattern modules.

Validators never raise: they return the list of problems found so callers
can aggregate them over a whole tree before deciding to abort.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from ..matching import is_pattern
from ..models import StructuralError
from .models import CommandDeclaration, CommandGroup, FlagDeclaration
from .parsing import option_strings

__all__ = [
    "is_command_logic",
    "validate_declaration",
    "validate_group",
    "validate_pattern_module",
]

FLAG_TYPES = ("boolean", "string")


def is_command_logic(fn: object) -> bool:
    """Tell if `fn` is a generator function or an async generator function."""
    return inspect.isgeneratorfunction(fn) or inspect.isasyncgenfunction(fn)


def _non_empty_str(value: object) -> bool:
    return isinstance(value, str) and len(value) > 0


def _validate_flag(prefix: str, flag: FlagDeclaration) -> list[StructuralError]:
    errors: list[StructuralError] = []
    where = f'{prefix}, flag "{flag.name}"'
    if not _non_empty_str(flag.name):
        errors.append(StructuralError(f"{where} name must be a string of non-zero length"))
    if not _non_empty_str(flag.description):
        errors.append(StructuralError(f"{where} description is required and must be a string of non-zero length"))
    if flag.type not in FLAG_TYPES:
        errors.append(StructuralError(f'{where} type is required and must have the value "boolean" or "string"'))
    alias = flag.alias
    if not isinstance(alias, (str, list, tuple)):
        errors.append(StructuralError(f"{where} alias must be a string or a list"))
    elif isinstance(alias, (list, tuple)) and not all(isinstance(a, str) for a in alias):
        errors.append(StructuralError(f"{where} when alias is a list, all elements must be strings"))
    return errors


def _spellings(flag: FlagDeclaration) -> set[str]:
    """Return every option string the parser will accept for `flag`."""
    spellings: set[str] = set()
    for name in (flag.name, *flag.aliases):
        for option in option_strings(name):
            spellings.add(option)
            if flag.type == "boolean" and option.startswith("--"):
                spellings.add(f"--no-{option[2:]}")
    return spellings


def _check_spellings(prefix: str, flag: FlagDeclaration, owners: dict[str, FlagDeclaration]) -> list[StructuralError]:
    errors: list[StructuralError] = []
    for option in sorted(_spellings(flag)):
        owner = owners.setdefault(option, flag)
        if owner is not flag:
            errors.append(StructuralError(f'{prefix}, flag "{flag.name}" option {option} is already used by flag "{owner.name}"'))
    return errors


def validate_declaration(name: str, declaration: CommandDeclaration) -> list[StructuralError]:
    """Check a leaf command declaration.

    Args:
        name: The command path, used in messages
        declaration: The declaration to check

    Returns:
        One StructuralError per violation (empty if the declaration is valid)
    """
    prefix = f'Command "{name}"'
    errors: list[StructuralError] = []
    if not is_command_logic(declaration.logic):
        errors.append(StructuralError(f"{prefix} logic must be a generator function or async generator function"))
    if not _non_empty_str(declaration.description):
        errors.append(StructuralError(f"{prefix} description is required and must be a string of non-zero length"))
    if declaration.positionals is not None and not isinstance(declaration.positionals, (list, tuple)):
        errors.append(StructuralError(f"{prefix} positionals must be a list"))
    elif declaration.positionals and not all(isinstance(p, str) for p in declaration.positionals):
        errors.append(StructuralError(f"{prefix} positionals must be strings"))
    if not isinstance(declaration.flags, (list, tuple)):
        errors.append(StructuralError(f"{prefix} flags must be a list of flag declarations"))
        return errors
    owners: dict[str, FlagDeclaration] = {}
    for flag in declaration.flags:
        if not isinstance(flag, FlagDeclaration):
            errors.append(StructuralError(f"{prefix} flag {flag!r} is not a flag declaration"))
            continue
        flag_errors = _validate_flag(prefix, flag)
        errors.extend(flag_errors or _check_spellings(prefix, flag, owners))
    return errors


def validate_group(name: str, group: CommandGroup) -> list[StructuralError]:
    """Check a branch of the command tree (only its description)."""
    if not _non_empty_str(group.description):
        return [StructuralError(f'Command group "{name}" is missing a description')]
    return []


def validate_pattern_module(path: str, patterns: Any, actions: Mapping[str, Callable]) -> list[StructuralError]:  # noqa: ANN401
    """Check that patterns and functions of a pattern module pair up by name.

    Args:
        path: The module location, used in messages
        patterns: The `patterns` attribute of the module (must be a mapping)
        actions: The public functions of the module, by name

    Returns:
        One StructuralError per unpaired or malformed entry
    """
    if not isinstance(patterns, Mapping):
        return [StructuralError(f"Pattern module {path} must define a `patterns` mapping")]
    errors: list[StructuralError] = []
    for name in actions:
        if name not in patterns:
            errors.append(StructuralError(f"Pattern module {path} function `{name}` must have a corresponding pattern of the same name in `patterns`"))
    for name, pattern in patterns.items():
        if name not in actions:
            errors.append(StructuralError(f"Pattern module {path} pattern `{name}` must have a corresponding function by the same name"))
        elif not is_pattern(pattern):
            errors.append(StructuralError(f"Pattern module {path} pattern `{name}` must be a mapping or a class"))
    return errors
