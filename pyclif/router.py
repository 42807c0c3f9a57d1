"""Router: map a command line to one registered command handler.

Nested commands are reachable two ways, `remote add origin` (space
separated tokens) and `remote:add origin` (a single colon-joined token,
exact match required). The longest registered path wins.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .constants import PATH_SEPARATOR

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .commands.models import CommandDeclaration, CommandGroup

__all__ = ["Match", "Route", "Router"]

RouteHandler = Callable[[list[str]], Awaitable[Any]]


@dataclass(frozen=True)
class Route:
    """A registered command path."""

    path: str  # "remote:add" (strict) or "remote add"
    handler: RouteHandler
    segments: tuple[str, ...]
    strict: bool = False
    node: CommandDeclaration | CommandGroup | None = None

    def consumes(self, argv: list[str]) -> int:
        """Return how many argv tokens this route consumes, 0 if it does not match."""
        if self.strict:
            return 1 if argv and argv[0] == self.path else 0
        size = len(self.segments)
        return size if argv[:size] == list(self.segments) else 0


@dataclass(frozen=True)
class Match:
    """A resolved route and the arguments left for its handler."""

    route: Route
    argv: list[str]


class Router:
    """Registered command paths, resolved by longest prefix."""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}

    def __contains__(self, path: str) -> bool:
        return path in self.routes

    def __len__(self) -> int:
        return len(self.routes)

    def register(
        self,
        segments: tuple[str, ...] | list[str],
        handler: RouteHandler,
        node: CommandDeclaration | CommandGroup | None = None,
    ) -> None:
        """Register a command under its path.

        Top level commands get a single name, nested ones both the strict
        colon-joined form and the space-joined form.
        """
        segments = tuple(segments)
        if len(segments) == 1:
            self._add(Route(segments[0], handler, segments, node=node))
            return
        self._add(Route(PATH_SEPARATOR.join(segments), handler, segments, strict=True, node=node))
        self._add(Route(" ".join(segments), handler, segments, node=node))

    def _add(self, route: Route) -> None:
        if route.path in self.routes:
            msg = f"Command path registered twice: {route.path}"
            raise ValueError(msg)
        self.routes[route.path] = route

    def resolve(self, argv: list[str]) -> Match | None:
        """Find the route matching the longest prefix of `argv`."""
        best: Route | None = None
        best_len = 0
        best_segments = 0
        for route in self.routes.values():
            consumed = route.consumes(argv)
            if consumed and len(route.segments) > best_segments:
                best, best_len, best_segments = route, consumed, len(route.segments)
        if best is None:
            return None
        return Match(best, argv[best_len:])

    async def dispatch(self, argv: list[str]) -> Any:  # noqa: ANN401
        """Run the handler matching `argv` with the remaining arguments.

        Returns:
            The handler result, or `argv` itself (same object) if nothing matched
        """
        match = self.resolve(argv)
        if match is None:
            return argv
        return await match.route.handler(match.argv)

    def commands(self) -> Iterator[Route]:
        """Yield one route per command, in registration order (space form)."""
        for route in self.routes.values():
            if not route.strict:
                yield route
