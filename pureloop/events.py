"""Events produced by the main loop itself."""

from __future__ import annotations

from dataclasses import dataclass

from pureloop.errors import EffectFailure
from pureloop.types import Effect, Event, State, Transition


@dataclass(frozen=True)
class EffectFailed(Event):
    """An effect's ``io`` raised instead of reporting through an event.

    Waiters may claim it, e.g. to schedule a retry. Unclaimed, it is fatal.
    """

    effect: Effect
    error: Exception

    def update(self, state: State) -> Transition:
        failure = EffectFailure(self.effect, self.error)
        fail = getattr(state, "fail", None)
        if fail is None:
            raise failure
        return fail(failure), ()


__all__ = ["EffectFailed"]
