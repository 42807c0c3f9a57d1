"""Pattern registry: ordered (pattern, handler) bindings with specificity lookup."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .matching import Pattern, freeze, matches, specificity
from .models import RegistryFrozenError

__all__ = ["Entry", "Handler", "PatternRegistry"]

Handler = Callable[..., Any]


@dataclass(frozen=True)
class Entry:
    """A registered binding."""

    pattern: Pattern
    handler: Handler
    order: int  # registration rank, lower registered first
    default: bool = False  # fallback entry, never counts as a recovery handler
    rank: tuple[int, int] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rank", specificity(self.pattern))

    def sort_key(self) -> tuple[int, int, int]:
        """Most specific first, then first registered."""
        return (-self.rank[0], -self.rank[1], self.order)


class PatternRegistry:
    """Insertion-ordered collection of patterns resolved by specificity.

    When several patterns match a candidate, the one with the most keys (then
    the deepest) wins; equally specific patterns resolve to the first
    registered. Lookups never call the handlers.
    """

    def __init__(self) -> None:
        self._entries: list[Entry] = []
        self._counter = itertools.count()
        self._frozen = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    @property
    def frozen(self) -> bool:
        """True once dispatch started."""
        return self._frozen

    def freeze(self) -> None:
        """Refuse any further registration."""
        self._frozen = True

    def register(self, pattern: Pattern, handler: Handler, *, default: bool = False) -> PatternRegistry:
        """Bind `handler` to `pattern`.

        Args:
            pattern: A mapping or a class, copied on registration
            handler: Called with (intent, settings) by the dispatch engine
            default: Mark a fallback entry

        Returns:
            The registry itself, to chain registrations
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {pattern!r}: dispatch already started")
        self._entries.append(Entry(freeze(pattern), handler, next(self._counter), default))
        return self

    def resolve_all(self, candidate: object) -> Iterator[Entry]:
        """Yield every matching entry, most specific first."""
        found = [entry for entry in self._entries if matches(entry.pattern, candidate)]
        yield from sorted(found, key=Entry.sort_key)

    def resolve_sequence(self, candidate: object) -> Iterator[Handler]:
        """Yield the handlers of every matching entry, most specific first."""
        for entry in self.resolve_all(candidate):
            yield entry.handler

    def resolve(self, candidate: object) -> Handler | None:
        """Return the handler of the best matching entry, if any."""
        return next(self.resolve_sequence(candidate), None)
