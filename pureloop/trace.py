"""
Dispatch observers for the main loop.

An observer is any callable ``observer(iteration, event, step)``. The driver
calls observers on the main-loop thread right after each dispatch, before the
new effects run. Observers must not mutate the state they are shown.

Example usage:
    recorder = TraceRecorder()
    error = Driver(observers=[recorder]).run(MyInit())
    for entry in recorder.entries:
        print(entry.iteration, entry.event_type, entry.waiter_index)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from pureloop.dispatch import Step
from pureloop.types import Event


class Observer(Protocol):
    def __call__(self, iteration: int, event: Event, step: Step) -> None: ...


@dataclass(frozen=True)
class TraceEntry:
    """What happened during one iteration of the main loop.

    Attributes:
        iteration: Zero-based dispatch counter.
        event_type: Class name of the dispatched event.
        waiter_index: Position of the claiming waiter, ``None`` for the
            event's own transition.
        effect_count: Number of effects the transition produced.
        fatal: Whether the new state carries a fatal error.
    """

    iteration: int
    event_type: str
    waiter_index: int | None
    effect_count: int
    fatal: bool

    @classmethod
    def from_step(cls, iteration: int, event: Event, step: Step) -> TraceEntry:
        return cls(
            iteration=iteration,
            event_type=type(event).__name__,
            waiter_index=None if step.route is None else step.route.index,
            effect_count=len(step.effects),
            fatal=step.state.fatal_error() is not None,
        )


class TraceRecorder:
    """Observer that keeps a ``TraceEntry`` per dispatch."""

    def __init__(self) -> None:
        self._entries: list[TraceEntry] = []
        self._lock = threading.Lock()

    def __call__(self, iteration: int, event: Event, step: Step) -> None:
        entry = TraceEntry.from_step(iteration, event, step)
        with self._lock:
            self._entries.append(entry)

    @property
    def entries(self) -> list[TraceEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LoggingObserver:
    """Observer emitting one loguru debug record per dispatch."""

    def __init__(self, component: str = "pureloop.trace") -> None:
        self._log = logger.bind(component=component)

    def __call__(self, iteration: int, event: Event, step: Step) -> None:
        entry = TraceEntry.from_step(iteration, event, step)
        target = "default" if entry.waiter_index is None else f"waiter #{entry.waiter_index}"
        self._log.debug(
            "dispatch {} {} -> {} ({} effects{})",
            entry.iteration,
            entry.event_type,
            target,
            entry.effect_count,
            ", fatal" if entry.fatal else "",
        )


__all__ = ["LoggingObserver", "Observer", "TraceEntry", "TraceRecorder"]
