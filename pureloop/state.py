"""Default immutable program-state container."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from frozendict import frozendict

from pureloop.types import Waiter

S = TypeVar("S", bound="ProgramState")


@dataclass(frozen=True)
class ProgramState:
    """Frozen state value implementing the ``State`` protocol.

    Subclass it as a frozen dataclass to add typed fields; every helper goes
    through ``dataclasses.replace`` so the subclass survives.

    Example:
        >>> @dataclass(frozen=True)
        ... class Counter(ProgramState):
        ...     count: int = 0
        >>> Counter().fail("boom").fatal_error()
        'boom'
    """

    pending: tuple[Waiter, ...] = ()
    fatal: Any = None
    data: frozendict[str, Any] = field(default_factory=frozendict)

    def __post_init__(self) -> None:
        if not isinstance(self.pending, tuple):
            object.__setattr__(self, "pending", tuple(self.pending))
        if not isinstance(self.data, frozendict):
            object.__setattr__(self, "data", frozendict(self.data))

    def waiters(self) -> Sequence[Waiter]:
        return self.pending

    def fatal_error(self) -> Any:
        return self.fatal

    @property
    def healthy(self) -> bool:
        return self.fatal is None

    # Free-form data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self: S, key: str, value: Any) -> S:
        return replace(self, data=self.data.set(key, value))

    def discard(self: S, key: str) -> S:
        if key not in self.data:
            return self
        return replace(self, data=self.data.delete(key))

    # Waiters

    def add_waiter(self: S, waiter: Waiter) -> S:
        return replace(self, pending=(*self.pending, waiter))

    def remove_waiter(self: S, waiter: Waiter) -> S:
        for index, candidate in enumerate(self.pending):
            if candidate == waiter:
                return replace(
                    self, pending=self.pending[:index] + self.pending[index + 1 :]
                )
        return self

    def replace_waiter(self: S, old: Waiter, new: Waiter) -> S:
        for index, candidate in enumerate(self.pending):
            if candidate == old:
                return replace(
                    self,
                    pending=(*self.pending[:index], new, *self.pending[index + 1 :]),
                )
        return self.add_waiter(new)

    # Failure

    def fail(self: S, error: Any) -> S:
        """Fill the fatal-error slot. The first fatal error wins."""
        if error is None:
            raise ValueError("fatal error must not be None")
        if self.fatal is not None:
            return self
        return replace(self, fatal=error)


__all__ = ["ProgramState"]
