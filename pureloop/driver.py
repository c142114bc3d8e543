"""The main loop.

On each pass the loop runs the effects it has been given, takes in one new
event from the outside world and dispatches it to compute the next state and
effects. It runs until the state reports a fatal error, which it returns.

- Fast effects run inline; events they send from the loop thread skip the
  capacity bound and are received ahead of queued slow events.
- Slow effects run on the executor and report back through the bounded
  channel, blocking while it is full.
- Exceptions escaping ``Effect.io`` come back as ``EffectFailed`` events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from pureloop.channel import EventChannel
from pureloop.config import LoopConfig
from pureloop.dispatch import Step, normalize_effects, step
from pureloop.errors import InitializerError
from pureloop.events import EffectFailed
from pureloop.executor import EffectExecutor, create_executor
from pureloop.trace import LoggingObserver, Observer
from pureloop.types import Conduit, Effect, Event, State

logger = logging.getLogger(__name__)

InitializerLike = Any


def initialize(initializer: InitializerLike) -> tuple[State, tuple[Effect, ...]]:
    """Obtain the initial state and effects without running any effect.

    Accepts an object with ``init_state()``/``init_effects()`` (a class
    providing them is instantiated without arguments) or a zero-argument
    callable returning ``(state, effects)``.
    """
    if isinstance(initializer, type) and hasattr(initializer, "init_state"):
        initializer = initializer()
    init_state = getattr(initializer, "init_state", None)
    init_effects = getattr(initializer, "init_effects", None)
    if callable(init_state) and callable(init_effects):
        state, effects = init_state(), init_effects()
    elif callable(initializer):
        produced = initializer()
        if not isinstance(produced, tuple) or len(produced) != 2:
            raise InitializerError(
                f"{_describe(initializer)} must return a (state, effects) pair, "
                f"got {type(produced).__name__}"
            )
        state, effects = produced
    else:
        raise InitializerError(
            f"{_describe(initializer)} is neither an Initializer nor a callable"
        )

    if not isinstance(state, State):
        raise InitializerError(
            f"{_describe(initializer)} produced {type(state).__name__}, "
            "which lacks waiters()/fatal_error()"
        )
    return state, normalize_effects(effects, _describe(initializer))


def _describe(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or type(obj).__name__


def is_fast(effect: Effect) -> bool:
    return bool(getattr(effect, "fast", False))


def perform(effect: Effect, conduit: Conduit) -> None:
    """Run ``effect.io``, turning an escaping exception into ``EffectFailed``."""
    try:
        effect.io(conduit)
    except Exception as exc:
        logger.debug("Effect %r raised", effect, exc_info=True)
        conduit.send(EffectFailed(effect=effect, error=exc))


class Driver:
    """Runs programs built from an initializer until a fatal error.

    Example:
        error = Driver(LoopConfig(channel_capacity=8)).run(MyInit())
        raise SystemExit(str(error))
    """

    def __init__(
        self,
        config: LoopConfig | None = None,
        *,
        executor: EffectExecutor | None = None,
        observers: Sequence[Observer] = (),
    ) -> None:
        self.config = config or LoopConfig()
        self._executor = executor
        self._observers: list[Observer] = list(observers)
        if self.config.trace:
            self._observers.append(LoggingObserver())

    def run(self, initializer: InitializerLike) -> Any:
        state, effects = initialize(initializer)
        channel = EventChannel(self.config.channel_capacity)
        executor = self._executor or create_executor(self.config)
        owns_executor = self._executor is None
        iteration = 0

        logger.debug(
            "Main loop starting: capacity=%d strategy=%s",
            channel.capacity,
            self.config.strategy,
        )
        try:
            while state.fatal_error() is None:
                self._start(effects, channel, executor)
                event = channel.receive()
                result = step(state, event)
                self._notify(iteration, event, result)
                state, effects = result.state, result.effects
                iteration += 1
        finally:
            channel.close()
            if owns_executor:
                executor.shutdown(cancel=self.config.cancel_on_exit)

        logger.debug("Main loop stopped after %d dispatches", iteration)
        return state.fatal_error()

    def _start(
        self,
        effects: Sequence[Effect],
        channel: EventChannel,
        executor: EffectExecutor,
    ) -> None:
        writer = channel.writer()
        inline = channel.loop_writer()
        for effect in effects:
            if is_fast(effect):
                perform(effect, inline)
            else:
                executor.submit(partial(perform, effect, writer))

    def _notify(self, iteration: int, event: Event, result: Step) -> None:
        for observer in self._observers:
            observer(iteration, event, result)


def run(
    initializer: InitializerLike,
    *,
    config: LoopConfig | None = None,
    observers: Sequence[Callable[..., None]] = (),
) -> Any:
    """Run the main loop and return the fatal error that stopped it."""
    return Driver(config, observers=observers).run(initializer)


__all__ = ["Driver", "initialize", "is_fast", "perform", "run"]
