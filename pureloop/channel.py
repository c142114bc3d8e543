"""Bounded event channel shared by every effect execution.

Producers block while the channel is full instead of dropping events. Closing
the channel releases blocked producers: their ``send`` returns ``False``.

Events sent from the main-loop thread itself (by fast effects) bypass the
capacity bound and are received before anything queued by other threads: the
loop is the only reader, so blocking it on a full channel would never end.
"""

from __future__ import annotations

import threading
import time
from collections import deque

from pureloop.errors import ChannelClosed, ChannelTimeout
from pureloop.types import Event


class EventChannel:
    """FIFO queue of events with a fixed capacity.

    Thread Safety:
        - send() may be called from any number of threads
        - send_inline() and receive() are meant for the single main-loop thread
        - close() is idempotent
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError(f"channel capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._items: deque[Event] = deque()
        self._inline: deque[Event] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._inline) + len(self._items)

    def send(self, event: Event) -> bool:
        with self._not_full:
            while len(self._items) >= self._capacity and not self._closed:
                self._not_full.wait()
            if self._closed:
                return False
            self._items.append(event)
            self._not_empty.notify()
            return True

    def send_inline(self, event: Event) -> bool:
        """Queue ``event`` ahead of bounded traffic without ever blocking."""
        with self._lock:
            if self._closed:
                return False
            self._inline.append(event)
            self._not_empty.notify()
            return True

    def receive(self, timeout: float | None = None) -> Event:
        """Take the next event, blocking until one is available.

        Inline events come first, then bounded events in FIFO order.

        Raises:
            ChannelClosed: If the channel is closed and drained
            ChannelTimeout: If ``timeout`` seconds pass without an event
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._not_empty:
            while not self._inline and not self._items:
                if self._closed:
                    raise ChannelClosed("event channel is closed")
                if deadline is None:
                    self._not_empty.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ChannelTimeout(f"no event within {timeout} seconds")
                self._not_empty.wait(remaining)
            if self._inline:
                return self._inline.popleft()
            event = self._items.popleft()
            self._not_full.notify()
            return event

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._not_full.notify_all()
            self._not_empty.notify_all()

    def writer(self) -> ChannelWriter:
        return ChannelWriter(self)

    def loop_writer(self) -> LoopWriter:
        """Conduit for fast effects, bound to the calling (main-loop) thread."""
        return LoopWriter(self, threading.current_thread())


class ChannelWriter:
    """Write-only view of an ``EventChannel``, handed to slow effects."""

    __slots__ = ("_channel",)

    def __init__(self, channel: EventChannel) -> None:
        self._channel = channel

    def send(self, event: Event) -> bool:
        return self._channel.send(event)

    def __repr__(self) -> str:
        return f"ChannelWriter(capacity={self._channel.capacity})"


class LoopWriter:
    """Write-only view handed to fast effects.

    Sends made on the owning thread go through ``send_inline``. A fast effect
    may keep its conduit and send later from a thread of its own (a listener,
    say); those sends take the bounded path like any slow effect's.
    """

    __slots__ = ("_channel", "_owner")

    def __init__(self, channel: EventChannel, owner: threading.Thread) -> None:
        self._channel = channel
        self._owner = owner

    def send(self, event: Event) -> bool:
        if threading.current_thread() is self._owner:
            return self._channel.send_inline(event)
        return self._channel.send(event)

    def __repr__(self) -> str:
        return f"LoopWriter(owner={self._owner.name!r})"


__all__ = ["ChannelWriter", "EventChannel", "LoopWriter"]
