"""Type-matched waiters for request/response style sequences."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pureloop.errors import TransitionError
from pureloop.types import Event, Ready, State, Transition, Waiter

Continuation = Callable[[State, "Await", Event], Transition]


def _normalize_event_types(event_types: Any) -> tuple[type[Any], ...]:
    if isinstance(event_types, type):
        event_types = (event_types,)
    if not event_types:
        raise ValueError("Await requires at least one event type")

    normalized: list[type[Any]] = []
    for event_type in event_types:
        if not isinstance(event_type, type):
            raise TypeError(
                f"Await event types must be type objects, got {type(event_type).__name__}"
            )
        if event_type not in normalized:
            normalized.append(event_type)
    return tuple(normalized)


@dataclass(frozen=True)
class Resolution(Ready):
    """An ``Await`` matched with its event; runs the waiter's continuation."""

    waiter: Await
    event: Event

    def update(self, state: State) -> Transition:
        if self.waiter.once:
            remove_waiter = getattr(state, "remove_waiter", None)
            if remove_waiter is None:
                raise TransitionError(
                    "Await(once=True) needs a state with remove_waiter(); "
                    f"{type(state).__name__} has none"
                )
            state = remove_waiter(self.waiter)
        return self.waiter.then(state, self.waiter, self.event)


@dataclass(frozen=True)
class Await(Waiter):
    """Wait for the next event that is an instance of one of ``event_types``.

    ``where`` narrows the match further, e.g. to a request id. With
    ``once=True`` the waiter removes itself from a ``ProgramState`` before
    ``then`` runs; otherwise ``then`` decides what happens to it.

    Example:
        Await(Response, then=on_response, where=lambda r: r.request_id == 7)
    """

    event_types: tuple[type[Any], ...]
    then: Continuation
    where: Callable[[Any], bool] | None = None
    once: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_types", _normalize_event_types(self.event_types))

    def expected(self, event: Event) -> Ready | None:
        if isinstance(event, self.event_types) and (self.where is None or self.where(event)):
            return Resolution(waiter=self, event=event)
        return super().expected(event)


__all__ = ["Await", "Resolution"]
