"""
Pytest configuration for pureloop tests.

Provides a fixture that runs the main loop on a background thread so that a
loop which never reaches a fatal error fails the test instead of hanging the
suite.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from pureloop import Driver, LoopConfig

RunDriver = Callable[..., Any]


class _LoopThread(threading.Thread):
    def __init__(self, driver: Driver, initializer: Any) -> None:
        super().__init__(name="test-main-loop", daemon=True)
        self._driver = driver
        self._initializer = initializer
        self.result: Any = None
        self.error: BaseException | None = None

    def run(self) -> None:
        try:
            self.result = self._driver.run(self._initializer)
        except BaseException as exc:  # noqa: BLE001 - re-raised on the test thread
            self.error = exc


@pytest.fixture
def run_driver() -> RunDriver:
    """Run ``Driver(...).run(initializer)`` with a timeout.

    Exceptions raised by the loop are re-raised in the test.
    """

    def _run(
        initializer: Any,
        *,
        config: LoopConfig | None = None,
        observers: Sequence[Any] = (),
        executor: Any = None,
        timeout: float = 5.0,
    ) -> Any:
        driver = Driver(config, executor=executor, observers=observers)
        thread = _LoopThread(driver, initializer)
        thread.start()
        thread.join(timeout)
        if thread.is_alive():
            pytest.fail(f"main loop did not finish within {timeout} seconds")
        if thread.error is not None:
            raise thread.error
        return thread.result

    return _run
