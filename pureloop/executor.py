"""Executors that run slow effects off the main-loop thread."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from pureloop.config import LoopConfig


class EffectExecutor(Protocol):
    def submit(self, job: Callable[[], None]) -> None: ...

    def shutdown(self, *, cancel: bool = False) -> None: ...


class ThreadPerEffectExecutor:
    """Starts a dedicated daemon thread for every slow effect.

    Threads cannot be interrupted; ``shutdown`` only stops accepting work.
    Running effects finish on their own and find the channel closed.
    """

    def __init__(self, name_prefix: str = "pureloop-effect") -> None:
        self._name_prefix = name_prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._live: set[threading.Thread] = set()
        self._shutdown = False

    def submit(self, job: Callable[[], None]) -> None:
        with self._lock:
            if self._shutdown:
                raise RuntimeError("executor has been shut down")
            thread = threading.Thread(
                target=self._run,
                args=(job,),
                name=f"{self._name_prefix}-{next(self._counter)}",
                daemon=True,
            )
            self._live.add(thread)
        thread.start()

    def _run(self, job: Callable[[], None]) -> None:
        try:
            job()
        finally:
            with self._lock:
                self._live.discard(threading.current_thread())

    @property
    def live_threads(self) -> int:
        with self._lock:
            return len(self._live)

    def shutdown(self, *, cancel: bool = False) -> None:
        with self._lock:
            self._shutdown = True


class PooledEffectExecutor:
    """Runs slow effects on a shared ``ThreadPoolExecutor``."""

    def __init__(self, max_workers: int | None = None) -> None:
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="pureloop-pool",
        )

    def submit(self, job: Callable[[], None]) -> None:
        self._pool.submit(job)

    def shutdown(self, *, cancel: bool = False) -> None:
        self._pool.shutdown(wait=False, cancel_futures=cancel)


def create_executor(config: LoopConfig) -> EffectExecutor:
    match config.strategy:
        case "thread":
            return ThreadPerEffectExecutor()
        case "pooled":
            return PooledEffectExecutor(max_workers=config.max_workers)
        case _:
            raise ValueError(f"Unknown strategy: {config.strategy!r}")


__all__ = [
    "EffectExecutor",
    "PooledEffectExecutor",
    "ThreadPerEffectExecutor",
    "create_executor",
]
