"""
pureloop - pure event-driven programs with IO pushed to the edges.

All program state lives in one value. Events from the outside world are
routed by a pure dispatcher, either to a waiting multi-step process or to the
event's own transition, which returns the next state and the effects to run.
The driver runs those effects, fast ones inline and slow ones on worker
threads, and loops until the state reports a fatal error.

Example:
    >>> from dataclasses import dataclass
    >>> from pureloop import Emit, Event, ProgramState, run
    >>>
    >>> @dataclass(frozen=True)
    ... class Stop(Event):
    ...     def update(self, state):
    ...         return state.fail("stopped"), ()
    >>>
    >>> run(lambda: (ProgramState(), [Emit(Stop())]))
    'stopped'
"""

from pureloop.channel import ChannelWriter, EventChannel, LoopWriter
from pureloop.config import LoopConfig
from pureloop.dispatch import Route, Step, dispatch, route, step
from pureloop.driver import Driver, initialize, run
from pureloop.effects import Call, Emit, GetTime, Sleep
from pureloop.errors import (
    ChannelClosed,
    ChannelTimeout,
    EffectFailure,
    InitializerError,
    PureloopError,
    SimulationError,
    TransitionError,
)
from pureloop.events import EffectFailed
from pureloop.executor import (
    EffectExecutor,
    PooledEffectExecutor,
    ThreadPerEffectExecutor,
    create_executor,
)
from pureloop.simulate import Simulation
from pureloop.state import ProgramState
from pureloop.trace import LoggingObserver, TraceEntry, TraceRecorder
from pureloop.types import (
    Conduit,
    Effect,
    Event,
    Initializer,
    Ready,
    State,
    Transition,
    Waiter,
)
from pureloop.waiters import Await, Resolution

__version__ = "0.1.0"

__all__ = [
    "Await",
    "Call",
    "ChannelClosed",
    "ChannelTimeout",
    "ChannelWriter",
    "Conduit",
    "Driver",
    "Effect",
    "EffectExecutor",
    "EffectFailed",
    "EffectFailure",
    "Emit",
    "Event",
    "EventChannel",
    "GetTime",
    "Initializer",
    "InitializerError",
    "LoggingObserver",
    "LoopConfig",
    "LoopWriter",
    "PooledEffectExecutor",
    "ProgramState",
    "PureloopError",
    "Ready",
    "Resolution",
    "Route",
    "Simulation",
    "SimulationError",
    "Sleep",
    "State",
    "Step",
    "ThreadPerEffectExecutor",
    "TraceEntry",
    "TraceRecorder",
    "Transition",
    "Waiter",
    "create_executor",
    "dispatch",
    "initialize",
    "route",
    "run",
    "step",
]
