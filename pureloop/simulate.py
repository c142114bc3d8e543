"""Thread-free simulation of the main loop for testing program logic.

The simulation applies the same dispatch as the driver but never runs an
effect. Effects are collected; registered mocks answer them with events,
everything else stays outstanding for the test to inspect.

Example usage:
    sim = Simulation(MyInit())
    sim.mock(ReadFile, lambda effect: [FileRead(effect.path, b"data")])
    sim.settle()
    assert sim.state.get("contents") == b"data"
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from typing import Any

from pureloop.dispatch import Step, step
from pureloop.driver import InitializerLike, initialize
from pureloop.errors import SimulationError
from pureloop.types import Effect, Event, State

Responder = Callable[[Any], Iterable[Event]]


class Simulation:
    def __init__(self, initializer: InitializerLike) -> None:
        self.state: State
        self.state, effects = initialize(initializer)
        self.history: list[tuple[Event, Step]] = []
        self._mocks: dict[type, Responder] = {}
        self._effects: deque[Effect] = deque(effects)
        self._outstanding: list[Effect] = []
        self._events: deque[Event] = deque()

    @property
    def fatal_error(self) -> Any:
        return self.state.fatal_error()

    @property
    def outstanding(self) -> list[Effect]:
        """Effects produced so far that no mock answered."""
        return [*self._outstanding, *(e for e in self._effects if self._lookup(e) is None)]

    def mock(self, effect_type: type, responder: Responder) -> Simulation:
        """Answer effects of ``effect_type`` (or a subclass) with ``responder(effect)``."""
        self._mocks[effect_type] = responder
        return self

    def _lookup(self, effect: Effect) -> Responder | None:
        for base in type(effect).__mro__:
            if base in self._mocks:
                return self._mocks[base]
        return None

    def feed(self, event: Event) -> Step:
        """Dispatch one event, as the driver would after receiving it."""
        result = step(self.state, event)
        self.history.append((event, result))
        self.state = result.state
        self._effects.extend(result.effects)
        return result

    def settle(self, max_steps: int = 1000) -> int:
        """Answer mocked effects and dispatch the resulting events FIFO.

        Stops when nothing is left to dispatch or the state turns fatal, and
        returns the number of dispatches performed.
        """
        dispatched = 0
        while self.state.fatal_error() is None:
            self._answer_effects()
            if not self._events:
                break
            if dispatched >= max_steps:
                raise SimulationError(f"simulation did not settle within {max_steps} steps")
            self.feed(self._events.popleft())
            dispatched += 1
        return dispatched

    def _answer_effects(self) -> None:
        while self._effects:
            effect = self._effects.popleft()
            responder = self._lookup(effect)
            if responder is None:
                self._outstanding.append(effect)
                continue
            self._events.extend(responder(effect))


__all__ = ["Responder", "Simulation"]
