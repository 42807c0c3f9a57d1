"""The application object: registry, command tree and settings of one run."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import os
import signal
import sys
from collections.abc import Callable
from typing import Any, Self

from .commands.discovery import load_patterns, load_structure
from .commands.models import CommandDeclaration, CommandTree
from .commands.parsing import option_strings
from .commands.tree import compose
from .constants import DEFAULT_APP_NAME, HELP_FLAGS, VERSION_FLAGS
from .engine import DispatchEngine, Outcome, normalize_failure
from .help import get_help, get_route_help
from .logging_setup import get_logger
from .matching import is_pattern
from .models import CompositionError, StructuralError, UnknownCommandError
from .registry import Handler, PatternRegistry
from .router import Router
from .version import VERSION

__all__ = ["Clif"]

PathLike = str | os.PathLike[str]
PatternPairs = list[tuple[Any, Handler]] | tuple[tuple[Any, Handler], ...]


def _declared_spellings(node: object) -> set[str]:
    """Return every option string a command declares itself."""
    spellings: set[str] = set()
    if isinstance(node, CommandDeclaration) and isinstance(node.flags, (list, tuple)):
        for flag in node.flags:
            spellings.update(option_strings(flag.name))
            for alias in flag.aliases:
                spellings.update(option_strings(alias))
    return spellings


class Clif:
    """A command line application.

    Owns the pattern registry, the command tree and the settings. Built once,
    run once::

        app = Clif(structure="./commands", patterns="./patterns", settings=config)
        outcome = await app.run(["remote", "add", "origin"])
    """

    def __init__(
        self,
        structure: CommandTree | PathLike,
        patterns: PatternPairs | PathLike = (),
        settings: Any = None,  # noqa: ANN401
        fallthrough: Callable[[list[str]], Any] | None = None,
        name: str = DEFAULT_APP_NAME,
        description: str = "",
    ) -> None:
        """Initialize the application.

        Args:
            structure: The command tree, or a directory of command modules
            patterns: (pattern, handler) pairs, or a directory of pattern modules
            settings: Passed to every handler
            fallthrough: Called with argv when no command matches
            name: Program name used in help and version output
            description: Shown in the main help
        """
        self.name = name
        self.description = description
        self.settings = settings
        self.fallthrough = fallthrough
        self.log = get_logger("pyclif")
        self.registry = PatternRegistry()
        self.registry.register(Exception, normalize_failure, default=True)
        self.cancel = asyncio.Event()
        self.engine = DispatchEngine(self.registry, settings, self.cancel)
        self.router: Router | None = None
        self._structure = structure
        self._patterns = patterns
        self._started = False
        self._task: asyncio.Task | None = None

    def register(self, pattern: Any, handler: Handler) -> Self:  # noqa: ANN401
        """Add a (pattern, handler) binding, before `run`."""
        self.registry.register(pattern, handler)
        return self

    def _register_patterns(self, errors: list[StructuralError]) -> None:
        patterns = self._patterns
        if isinstance(patterns, (str, os.PathLike)):
            patterns = load_patterns(patterns, errors)
        if not isinstance(patterns, (list, tuple)) or not all(isinstance(p, (list, tuple)) and len(p) == 2 for p in patterns):
            errors.append(StructuralError("The patterns input must be a directory or a list of (pattern, handler) pairs"))
            return
        for pattern, handler in patterns:
            if not is_pattern(pattern):
                errors.append(StructuralError(f"Pattern {pattern!r} must be a mapping or a class"))
            elif not callable(handler):
                errors.append(StructuralError(f"All pattern actions must be functions, got {handler!r} for {pattern!r}"))
            else:
                self.registry.register(pattern, handler)

    def build(self) -> Router:
        """Load and compose patterns and commands (once).

        Raises:
            CompositionError: Every structural error found in patterns and commands
        """
        if self.router is not None:
            return self.router
        errors: list[StructuralError] = []
        self._register_patterns(errors)
        structure = self._structure
        if isinstance(structure, (str, os.PathLike)):
            structure = load_structure(structure, errors)
        router = compose(structure, engine=self.engine, errors=errors)
        if errors:
            msg = f"Found {len(errors)} structural error(s)"
            raise CompositionError(msg, errors)
        self.router = router
        return router

    def interrupt(self) -> None:
        """Stop the running command at its next suspension point."""
        self.cancel.set()
        if self._task is not None:
            self._task.cancel()

    async def run(self, argv: list[str] | None = None, handle_signals: bool = False) -> Outcome:
        """Route `argv` to its command and run it.

        Args:
            argv: Command line, defaults to sys.argv[1:]
            handle_signals: Interrupt the command on SIGINT

        Returns:
            The command outcome (value None for help, version and group listings)

        Raises:
            CompositionError: Invalid declarations, nothing was run
            UnknownCommandError: No command matches and there is no fallthrough
            Exception: An unrecovered error of the command logic
        """
        if self._started:
            msg = "A Clif application runs only once"
            raise RuntimeError(msg)
        self._started = True
        argv = list(sys.argv[1:] if argv is None else argv)
        router = self.build()
        self.registry.freeze()

        loop = asyncio.get_running_loop()
        if handle_signals:
            self._task = asyncio.current_task()
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(signal.SIGINT, self.interrupt)
        try:
            return await self._dispatch(router, argv)
        finally:
            if handle_signals:
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.remove_signal_handler(signal.SIGINT)
                self._task = None

    async def _dispatch(self, router: Router, argv: list[str]) -> Outcome:
        match = router.resolve(argv)
        if match is None:
            if not argv or argv[0] in HELP_FLAGS:
                print(get_help(router, self.name, self.description))
                return Outcome(value=None)
            if argv[0] in VERSION_FLAGS:
                print(f"{self.name} {VERSION}")
                return Outcome(value=None)
            if self.fallthrough is None:
                raise UnknownCommandError(argv)
            result = self.fallthrough(argv)
            if inspect.isawaitable(result):
                result = await result
            return Outcome(value=result)

        own = _declared_spellings(match.route.node)
        options = match.argv[: match.argv.index("--")] if "--" in match.argv else match.argv
        if any(arg in HELP_FLAGS and arg not in own for arg in options):
            print(get_route_help(match.route))
            return Outcome(value=None)
        if any(arg in VERSION_FLAGS and arg not in own for arg in options):
            print(f"{self.name} {VERSION}")
            return Outcome(value=None)

        self.log.debug("Running %s %s", match.route.path, match.argv)
        result = await match.route.handler(match.argv)
        return result if isinstance(result, Outcome) else Outcome(value=result)
