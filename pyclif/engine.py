"""Dispatch engine: runs the logic of one command.

The logic of a command is a generator function. Every value it yields is an
*intent*, resolved against the pattern registry; the handler result is sent
back into the generator at the same `yield`::

    def run(invocation):
        text = yield {"ns": "io", "op": "read", "path": invocation.inputs["file"]}
        yield {"ns": "print", "text": text.upper()}
        return len(text)

Intents are resolved one at a time, in the order they are produced. An error
raised by a handler is thrown into the generator at its `yield`; an error
escaping the generator is looked up in the registry as well and absorbed by
the first matching recovery handler, or re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .logging_setup import get_logger
from .models import CommandInterrupted, Fail

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Generator

    from .commands.models import Invocation
    from .registry import PatternRegistry

__all__ = ["CommandRun", "DispatchEngine", "Outcome", "RunState", "normalize_failure"]


class RunState(StrEnum):
    """States of a command run."""

    RUNNING = "running"
    AWAITING_RESOLUTION = "awaiting_resolution"
    RECOVERING = "recovering"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    # RUNNING/AWAITING_RESOLUTION -> FAILED: cancellation and non-recoverable exits
    RunState.RUNNING: frozenset({RunState.AWAITING_RESOLUTION, RunState.DONE, RunState.RECOVERING, RunState.FAILED}),
    RunState.AWAITING_RESOLUTION: frozenset({RunState.RUNNING, RunState.RECOVERING, RunState.FAILED}),
    RunState.RECOVERING: frozenset({RunState.DONE, RunState.FAILED}),
    RunState.DONE: frozenset(),
    RunState.FAILED: frozenset(),
}


def normalize_failure(err: BaseException, _settings: Any = None) -> Fail:  # noqa: ANN401
    """Default entry of every registry: give any error the `Fail` shape."""
    return Fail.from_error(err)


class CommandRun:
    """State machine of one run, used for logging and sanity checks."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = RunState.RUNNING
        self.intents = 0
        self.log = get_logger("engine")

    @property
    def finished(self) -> bool:
        """True in a terminal state."""
        return self.state in (RunState.DONE, RunState.FAILED)

    def transition(self, state: RunState) -> None:
        """Move to `state`.

        Raises:
            RuntimeError: The transition is not allowed (eg: leaving a terminal state)
        """
        if state not in _TRANSITIONS[self.state]:
            msg = f"{self.name}: illegal transition {self.state} -> {state}"
            raise RuntimeError(msg)
        self.log.debug("[%s] %s -> %s", self.name, self.state, state)
        self.state = state


@dataclass
class Outcome:
    """Result of a successful run."""

    value: Any  # returned by the logic, or by the recovery handler
    state: RunState = RunState.DONE
    recovered: BaseException | None = None  # the absorbed error, if any
    intents: int = 0  # number of intents resolved


class _Procedure:
    """Uniform async driver over generators and async generators."""

    def __init__(self, iterator: Generator | AsyncGenerator) -> None:
        self._iterator = iterator
        self._is_async = inspect.isasyncgen(iterator)

    async def send(self, value: Any) -> tuple[bool, Any]:  # noqa: ANN401
        """Resume with `value`, return (finished, intent or final value)."""
        try:
            if self._is_async:
                return False, await self._iterator.asend(value)  # type: ignore[union-attr]
            return False, self._iterator.send(value)  # type: ignore[union-attr]
        except StopIteration as e:
            return True, e.value
        except StopAsyncIteration:
            return True, None

    async def throw(self, err: BaseException) -> tuple[bool, Any]:
        """Raise `err` at the current `yield`, same return value as `send`."""
        try:
            if self._is_async:
                return False, await self._iterator.athrow(err)  # type: ignore[union-attr]
            return False, self._iterator.throw(err)  # type: ignore[union-attr]
        except StopIteration as e:
            return True, e.value
        except StopAsyncIteration:
            return True, None

    async def close(self) -> None:
        if self._is_async:
            await self._iterator.aclose()  # type: ignore[union-attr]
        else:
            self._iterator.close()  # type: ignore[union-attr]


class DispatchEngine:
    """Resolve the intents of command procedures through a pattern registry."""

    def __init__(self, registry: PatternRegistry, settings: Any = None, cancel: asyncio.Event | None = None) -> None:  # noqa: ANN401
        """Initialize the engine.

        Args:
            registry: The patterns, a default error normalizer is added if missing
            settings: Passed by reference to every handler
            cancel: When set, runs stop at their next suspension point
        """
        self.registry = registry
        self.settings = settings
        self.cancel = cancel
        self.log = get_logger("engine")
        if not any(entry.default for entry in registry):
            registry.register(Exception, normalize_failure, default=True)

    def _check_cancelled(self, run: CommandRun) -> None:
        if self.cancel is not None and self.cancel.is_set():
            msg = f"{run.name} interrupted"
            raise CommandInterrupted(msg)

    async def resolve(self, intent: Any) -> Any:  # noqa: ANN401
        """Run the best callable handler for `intent`.

        Returns:
            The handler result, None when no callable handler matches
        """
        for handler in self.registry.resolve_sequence(intent):
            if not callable(handler):
                self.log.debug("Skipping non callable handler %r", handler)
                continue
            result = handler(intent, self.settings)
            if inspect.isawaitable(result):
                result = await result
            return result
        self.log.debug("Unresolved intent: %r", intent)
        return None

    async def run(self, logic: Callable[..., Any], invocation: Invocation, name: str = "") -> Outcome:
        """Run `logic` to completion.

        Args:
            logic: A generator function (or async generator function)
            invocation: The parsed inputs, given to `logic`
            name: Command path, for logs and messages

        Returns:
            The outcome, its value being the value returned by the generator
            (always None for async generators) or the recovery handler result

        Raises:
            Exception: An error escaping `logic` with no recovery handler, unchanged
            CommandInterrupted: The cancellation event was set
        """
        run = CommandRun(name or getattr(logic, "__name__", "command"))
        try:
            procedure = _Procedure(logic(invocation))
        except Exception as err:  # noqa: BLE001
            return await self._recover(run, err)

        value: Any = None
        pending: Exception | None = None
        try:
            while True:
                self._check_cancelled(run)
                try:
                    if pending is None:
                        finished, intent = await procedure.send(value)
                    else:
                        error, pending = pending, None
                        finished, intent = await procedure.throw(error)
                except Exception as err:  # noqa: BLE001
                    return await self._recover(run, err)

                if finished:
                    run.transition(RunState.DONE)
                    return Outcome(value=intent, intents=run.intents)

                run.transition(RunState.AWAITING_RESOLUTION)
                self.log.debug("[%s] intent %r", run.name, intent)
                try:
                    value = await self.resolve(intent)
                except Exception as err:  # noqa: BLE001
                    self.log.debug("[%s] handler failed: %s", run.name, err)
                    pending = err
                run.intents += 1
                self._check_cancelled(run)
                run.transition(RunState.RUNNING)
        except BaseException:
            if not run.finished:
                run.transition(RunState.FAILED)
            raise
        finally:
            await procedure.close()

    async def _recover(self, run: CommandRun, err: Exception) -> Outcome:
        """Absorb `err` with the first matching recovery handler, or re-raise it."""
        run.transition(RunState.RECOVERING)
        failure: Fail | None = None
        try:
            for entry in self.registry.resolve_all(err):
                if not callable(entry.handler):
                    continue
                if entry.default:
                    failure = failure or entry.handler(err, self.settings)
                    continue
                self.log.info("[%s] recovering from %s", run.name, type(err).__name__)
                result = entry.handler(err, self.settings)
                if inspect.isawaitable(result):
                    result = await result
                run.transition(RunState.DONE)
                return Outcome(value=result, recovered=err, intents=run.intents)
        except BaseException:
            if not run.finished:
                run.transition(RunState.FAILED)
            raise
        run.transition(RunState.FAILED)
        if failure is not None:
            self.log.debug("[%s] unrecovered failure: %s", run.name, failure.fields)
        raise err
