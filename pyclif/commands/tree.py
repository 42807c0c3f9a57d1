"""Command tree composition: validate declarations and wire them into a router."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import PATH_SEPARATOR
from ..help import format_group_help
from ..logging_setup import get_logger
from ..models import CompositionError, StructuralError, UnknownCommandError
from ..router import RouteHandler, Router
from .models import CommandDeclaration, CommandGroup, Invocation
from .parsing import FlagConfig, parse_argv
from .validation import validate_declaration, validate_group

if TYPE_CHECKING:
    from ..engine import DispatchEngine, Outcome
    from .models import CommandTree

__all__ = ["compose", "make_command_handler", "make_group_handler"]


def make_command_handler(segments: tuple[str, ...], declaration: CommandDeclaration, engine: DispatchEngine) -> RouteHandler:
    """Return the router handler of a (valid) leaf command.

    The handler parses the remaining argv and runs the command logic.
    """
    config = FlagConfig.from_flags(declaration.flags)
    name = PATH_SEPARATOR.join(segments)
    assert declaration.logic is not None

    async def handle(argv: list[str]) -> Outcome:
        parsed = parse_argv(argv, config, declaration.positionals or ())
        invocation = Invocation(
            inputs=parsed.inputs,
            settings=engine.settings,
            implicits=parsed.implicits,
            posteriors=parsed.posteriors,
            argv=argv,
        )
        return await engine.run(declaration.logic, invocation, name=name)

    return handle


def make_group_handler(segments: tuple[str, ...], group: CommandGroup) -> RouteHandler:
    """Return the router handler of a command group: show the group help."""

    async def handle(argv: list[str]) -> None:
        if argv and not argv[0].startswith("-"):
            raise UnknownCommandError([*segments, *argv])
        print(format_group_help(segments, group))

    return handle


def _check_name(name: object, segments: tuple[str, ...]) -> list[StructuralError]:
    if not isinstance(name, str) or not name or PATH_SEPARATOR in name or name.split() != [name]:
        where = PATH_SEPARATOR.join(str(s) for s in segments)
        return [StructuralError(f'Command name "{where}" must be a single word without "{PATH_SEPARATOR}"')]
    return []


def compose(
    tree: CommandTree,
    *,
    engine: DispatchEngine,
    router: Router | None = None,
    path: tuple[str, ...] = (),
    errors: list[StructuralError] | None = None,
) -> Router:
    """Walk `tree` depth-first and register every valid command.

    Invalid commands are skipped and their errors recorded, the walk goes on
    with their siblings.

    Args:
        tree: Command names to declarations or groups
        engine: Runs the command logic
        router: Router to register into (a new one at the top level)
        path: Segments of the enclosing groups
        errors: Accumulator shared by the recursive calls

    Returns:
        The router holding every valid command

    Raises:
        CompositionError: At the top level, if any structural error was found
    """
    log = get_logger("compose")
    top_level = errors is None
    router = Router() if router is None else router
    errors = [] if errors is None else errors

    for name, node in tree.items():
        segments = (*path, name)
        label = PATH_SEPARATOR.join(str(s) for s in segments)
        name_errors = _check_name(name, segments)
        if name_errors:
            errors.extend(name_errors)
            continue
        if isinstance(node, CommandGroup):
            group_errors = validate_group(label, node)
            errors.extend(group_errors)
            if not group_errors:
                router.register(segments, make_group_handler(segments, node), node)
            compose(node.commands, engine=engine, router=router, path=segments, errors=errors)
        elif isinstance(node, CommandDeclaration):
            command_errors = validate_declaration(label, node)
            if command_errors:
                for err in command_errors:
                    log.error("%s", err)
                errors.extend(command_errors)
                continue
            router.register(segments, make_command_handler(segments, node, engine), node)
            log.debug("Registered %s", label)
        else:
            errors.append(StructuralError(f'Command "{label}" must be a command declaration or a command group'))

    if top_level and errors:
        msg = f"Found {len(errors)} invalid command declaration(s)"
        raise CompositionError(msg, errors)
    return router
