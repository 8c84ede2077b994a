"""Clock feed: wall-clock timestamps published at a fixed interval."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from livefeed._constants import CLOCK_INTERVAL
from livefeed.state.store import ReactiveStore, SetValue, Subscriber, Unsubscribe

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ClockFeed:
    """Store of the current time, ticking only while someone listens.

    The first subscriber schedules a repeating timer on the event loop;
    the last unsubscribe cancels it before returning.  Subscribing needs a
    running loop unless one is passed explicitly.
    """

    def __init__(
        self,
        interval: float = CLOCK_INTERVAL,
        *,
        now: Callable[[], datetime] = _utcnow,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._now = now
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._store: ReactiveStore[datetime] = ReactiveStore(now(), start=self._start)

    @classmethod
    def create(
        cls,
        interval: float = CLOCK_INTERVAL,
        *,
        now: Callable[[], datetime] = _utcnow,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> ClockFeed:
        return cls(interval, now=now, loop=loop)

    @property
    def store(self) -> ReactiveStore[datetime]:
        return self._store

    @property
    def value(self) -> datetime:
        return self._store.value

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        """Whether a tick is currently scheduled."""
        return self._handle is not None

    def subscribe(self, callback: Subscriber[datetime]) -> Unsubscribe:
        return self._store.subscribe(callback)

    def _start(self, set_value: SetValue[datetime]) -> Callable[[], None]:
        loop = self._loop or asyncio.get_running_loop()
        deadline = loop.time() + self._interval

        def tick() -> None:
            nonlocal deadline
            # The next tick must be scheduled before set_value runs its subscribers.
            deadline += self._interval
            if deadline <= loop.time():
                deadline = loop.time() + self._interval
            self._handle = loop.call_at(deadline, tick)
            set_value(self._now())

        self._handle = loop.call_at(deadline, tick)
        _logger.debug("Clock started interval=%.3fs", self._interval)
        return self._cancel

    def _cancel(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
            _logger.debug("Clock stopped")
