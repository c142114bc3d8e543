"""Small reusable effects.

Programs usually define their own effects, but these cover the common cases:

- Emit: feed a ready-made event back into the loop
- Call: run a blocking callable and translate its outcome into an event
- Sleep: deliver an event after a delay
- GetTime: read the clock
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from frozendict import frozendict

from pureloop.types import Conduit, Effect, Event


@dataclass(frozen=True)
class Emit(Effect):
    """Send ``event`` as-is. Fast by default."""

    event: Event
    fast: bool = True

    def io(self, conduit: Conduit) -> None:
        conduit.send(self.event)


@dataclass(frozen=True)
class Call(Effect):
    """Run ``fn(*args, **kwargs)`` and report the outcome.

    ``on_success`` maps the return value to an event, ``on_error`` maps a
    raised exception. Either may return ``None`` to send nothing. Without
    ``on_error`` the exception escapes and the loop reports ``EffectFailed``.
    """

    fn: Callable[..., Any]
    on_success: Callable[[Any], Event | None]
    on_error: Callable[[Exception], Event | None] | None = None
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=frozendict)
    fast: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.kwargs, frozendict):
            object.__setattr__(self, "kwargs", frozendict(self.kwargs))

    def io(self, conduit: Conduit) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:
            if self.on_error is None:
                raise
            event = self.on_error(exc)
        else:
            event = self.on_success(result)
        if event is not None:
            conduit.send(event)


@dataclass(frozen=True)
class Sleep(Effect):
    """Wait ``seconds`` on a worker thread, then send ``then``."""

    seconds: float
    then: Event

    def io(self, conduit: Conduit) -> None:
        time.sleep(max(0.0, self.seconds))
        conduit.send(self.then)


@dataclass(frozen=True)
class GetTime(Effect):
    """Read ``clock`` and send ``then(now)``. Reading the clock is IO."""

    then: Callable[[float], Event]
    clock: Callable[[], float] = time.time
    fast = True

    def io(self, conduit: Conduit) -> None:
        conduit.send(self.then(self.clock()))


__all__ = ["Call", "Emit", "GetTime", "Sleep"]
