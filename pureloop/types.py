"""
Core contracts shared by the dispatcher, the driver and collaborators.

This module contains:
- State: protocol for the single program-state container
- Event: something observed from the outside world
- Effect: something to do to the outside world
- Waiter: a multi-step process waiting for a future event
- Ready: a waiter matched with the event it was waiting for
- Conduit: write-only sink effects emit events into
- Initializer: source of the initial state and effects

Concrete events, effects and waiters are expected to be frozen dataclasses
subclassing the abstract bases below. Transitions are pure: they never do
IO, not even reading the clock or generating a random number.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, TypeAlias, runtime_checkable


@runtime_checkable
class State(Protocol):
    """The whole program state.

    The core only relies on two facets; everything else belongs to the
    program.
    """

    def waiters(self) -> Sequence[Waiter]:
        """Pending processes, in the order they should be offered events."""
        ...

    def fatal_error(self) -> Any:
        """``None`` while healthy; any other value ends the main loop."""
        ...


Transition: TypeAlias = "tuple[State, Sequence[Effect]]"


@runtime_checkable
class Conduit(Protocol):
    """Write-only end of the event channel handed to ``Effect.io``."""

    def send(self, event: Event) -> bool:
        """Deliver an event, blocking while the channel is full.

        Returns ``False`` when the main loop has already shut down.
        """
        ...


class Event(ABC):
    """A message from the outside world, e.g. the result of an IO action.

    Each incoming event is first offered to the waiters in the state. If none
    of them claims it, ``update`` computes the next state.
    """

    def route(self, waiter: Waiter) -> Ready | None:
        """Claim-test from the event's side; ``None`` means not for ``waiter``."""
        return None

    @abstractmethod
    def update(self, state: State) -> Transition:
        """Pure transition used when no waiter claims this event."""


class Effect(ABC):
    """An instruction to the outside world: read a file, start a timer, ...

    ``fast`` effects are cheap enough to run inline on the main loop; all
    others run concurrently and report back through the conduit.
    """

    fast = False

    @abstractmethod
    def io(self, conduit: Conduit) -> None:
        """Perform the action, sending any resulting events down ``conduit``.

        Keep this as short as possible and let the pure transitions do the
        logic.
        """


class Waiter(ABC):
    """A stage in a sequential process waiting for a message to continue."""

    def expected(self, event: Event) -> Ready | None:
        """Return a ``Ready`` if this waiter claims ``event``, else ``None``.

        Must be a pure predicate. The default asks the event.
        """
        return event.route(self)


class Ready(ABC):
    """A waiter together with the event it was waiting for."""

    @abstractmethod
    def update(self, state: State) -> Transition:
        """Pure transition continuing the sequential process.

        Responsible for removing or replacing the waiter in the returned
        state.
        """


@runtime_checkable
class Initializer(Protocol):
    """Produces the initial state and effects without performing IO."""

    def init_state(self) -> State: ...

    def init_effects(self) -> Sequence[Effect]: ...


__all__ = [
    "Conduit",
    "Effect",
    "Event",
    "Initializer",
    "Ready",
    "State",
    "Transition",
    "Waiter",
]
