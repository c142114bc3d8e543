"""Pure event routing.

Each new event is first offered to the waiters in the order the state lists
them. The first one that claims it gets to continue its sequential process;
if none does, the event's own transition runs. Nothing here does IO or keeps
references to the state between calls.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pureloop.errors import TransitionError
from pureloop.types import Effect, Event, Ready, State, Transition, Waiter


@dataclass(frozen=True)
class Route:
    """The waiter that claimed an event and the resulting ``Ready``."""

    index: int
    waiter: Waiter
    ready: Ready


@dataclass(frozen=True)
class Step:
    """Outcome of dispatching one event."""

    state: State
    effects: tuple[Effect, ...]
    route: Route | None = None

    @property
    def claimed(self) -> bool:
        return self.route is not None


def route(state: State, event: Event) -> Route | None:
    """Find the first waiter claiming ``event``; later waiters are not asked."""
    for index, waiter in enumerate(state.waiters()):
        ready = waiter.expected(event)
        if ready is not None:
            return Route(index=index, waiter=waiter, ready=ready)
    return None


def step(state: State, event: Event) -> Step:
    found = route(state, event)
    if found is None:
        transition = event.update(state)
        source = f"{type(event).__name__}.update"
    else:
        transition = found.ready.update(state)
        source = f"{type(found.ready).__name__}.update (waiter #{found.index})"
    new_state, effects = _check_transition(transition, source)
    return Step(state=new_state, effects=effects, route=found)


def dispatch(state: State, event: Event) -> Transition:
    """Compute the next state and effects for ``event``."""
    result = step(state, event)
    return result.state, result.effects


def _check_transition(transition: Any, source: str) -> tuple[State, tuple[Effect, ...]]:
    if not isinstance(transition, tuple) or len(transition) != 2:
        raise TransitionError(
            f"{source} must return a (state, effects) pair, got {type(transition).__name__}"
        )
    new_state, effects = transition
    if not isinstance(new_state, State):
        raise TransitionError(
            f"{source} returned {type(new_state).__name__}, which lacks waiters()/fatal_error()"
        )
    return new_state, normalize_effects(effects, source)


def normalize_effects(effects: Iterable[Effect] | None, source: str) -> tuple[Effect, ...]:
    if effects is None:
        return ()
    if isinstance(effects, (str, bytes)) or not isinstance(effects, Iterable):
        raise TransitionError(f"{source} returned non-iterable effects: {effects!r}")
    normalized = tuple(effects)
    for effect in normalized:
        if not callable(getattr(effect, "io", None)):
            raise TransitionError(
                f"{source} returned {type(effect).__name__}, which has no io()"
            )
    return normalized


__all__ = ["Route", "Step", "dispatch", "normalize_effects", "route", "step"]
