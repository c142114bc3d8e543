from __future__ import annotations

from typing import Any


class PureloopError(Exception):
    """Base class for errors raised by pureloop itself."""


class TransitionError(PureloopError, TypeError):
    """Raised when a transition returns something other than ``(state, effects)``."""


class InitializerError(PureloopError, TypeError):
    """Raised when an initializer cannot produce the initial state and effects."""


class EffectFailure(PureloopError):
    """An exception escaped from an effect's ``io``.

    Stored in the fatal-error slot when nothing claims the corresponding
    ``EffectFailed`` event.
    """

    def __init__(self, effect: Any, cause: BaseException) -> None:
        self.effect = effect
        self.cause = cause
        super().__init__(
            f"{type(effect).__name__} failed: {type(cause).__name__}: {cause}"
        )
        self.__cause__ = cause


class ChannelClosed(PureloopError):
    """Raised when receiving from a closed, drained event channel."""


class ChannelTimeout(PureloopError):
    """Raised when no event arrives before the receive timeout elapses."""


class SimulationError(PureloopError):
    """Raised when a simulation does not settle within its step bound."""


__all__ = [
    "ChannelClosed",
    "ChannelTimeout",
    "EffectFailure",
    "InitializerError",
    "PureloopError",
    "SimulationError",
    "TransitionError",
]
