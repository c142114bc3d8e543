"""Main-loop configuration, optionally read from ``PURELOOP_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal

Strategy = Literal["thread", "pooled"]

ENV_PREFIX = "PURELOOP_"
STRATEGIES: tuple[str, ...] = ("thread", "pooled")

_TRUE = ("1", "true", "yes")
_FALSE = ("0", "false", "no", "")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be one of {_TRUE + _FALSE[:-1]}, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class LoopConfig:
    """Settings for ``Driver``.

    Attributes:
        channel_capacity: Size of the shared event channel (at least 1).
        strategy: ``"thread"`` starts one thread per slow effect,
            ``"pooled"`` runs slow effects on a thread pool.
        max_workers: Pool size for the pooled strategy, ``None`` for the
            ``ThreadPoolExecutor`` default.
        cancel_on_exit: Drop slow effects that have not started yet when the
            loop ends.
        trace: Log every dispatch through ``LoggingObserver``.
    """

    channel_capacity: int = 1
    strategy: Strategy = "thread"
    max_workers: int | None = None
    cancel_on_exit: bool = True
    trace: bool = False

    def __post_init__(self) -> None:
        if self.channel_capacity < 1:
            raise ValueError(
                f"channel_capacity must be at least 1, got {self.channel_capacity}"
            )
        if self.strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {self.strategy!r}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LoopConfig:
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        raw = env.get(f"{ENV_PREFIX}CHANNEL_CAPACITY")
        if raw is not None:
            values["channel_capacity"] = _parse_int(f"{ENV_PREFIX}CHANNEL_CAPACITY", raw)

        raw = env.get(f"{ENV_PREFIX}STRATEGY")
        if raw is not None:
            values["strategy"] = raw.strip().lower()

        raw = env.get(f"{ENV_PREFIX}MAX_WORKERS")
        if raw is not None and raw.strip():
            values["max_workers"] = _parse_int(f"{ENV_PREFIX}MAX_WORKERS", raw)

        raw = env.get(f"{ENV_PREFIX}CANCEL_ON_EXIT")
        if raw is not None:
            values["cancel_on_exit"] = _parse_bool(f"{ENV_PREFIX}CANCEL_ON_EXIT", raw)

        raw = env.get(f"{ENV_PREFIX}TRACE")
        if raw is not None:
            values["trace"] = _parse_bool(f"{ENV_PREFIX}TRACE", raw)

        return cls(**values)

    def with_overrides(self, **changes: Any) -> LoopConfig:
        """Copy with the given fields replaced; ``None`` values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = ["ENV_PREFIX", "STRATEGIES", "LoopConfig", "Strategy"]
