"""Minimal observable value container.

Subscribers are called synchronously, in subscription order, every time
the value is replaced.  A store can carry a start hook that acquires a
resource while at least one subscriber is attached.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from livefeed.exceptions import SubscriberError

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]
SetValue = Callable[[T], None]
StartHook = Callable[[SetValue[T]], Callable[[], None] | None]
ErrorHandler = Callable[[SubscriberError], None]


def _log_subscriber_error(error: SubscriberError) -> None:
    _logger.warning("%s", error, exc_info=error.__cause__)


@dataclass(eq=False, slots=True)
class _Subscription:
    callback: Callable[[Any], None]
    active: bool = True


class ReactiveStore(Generic[T]):
    """Observable container holding a current value.

    Parameters
    ----------
    initial
        Value held until the first :meth:`set`.
    start
        Optional hook run when the subscriber count goes from 0 to 1.  It
        receives :meth:`set` and may return a cleanup callable, which runs
        when the count drops back to 0.
    on_error
        Called with a :class:`SubscriberError` when a subscriber raises.
        Defaults to logging a warning.  Other subscribers are still
        notified either way.
    """

    def __init__(
        self,
        initial: T,
        start: StartHook[T] | None = None,
        *,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self._value = initial
        self._start = start
        self._stop: Callable[[], None] | None = None
        self._on_error = on_error or _log_subscriber_error
        self._subscriptions: list[_Subscription] = []

    @classmethod
    def create(cls, initial: T, start: StartHook[T] | None = None) -> ReactiveStore[T]:
        return cls(initial, start)

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def set(self, value: T) -> None:
        """Replace the value and notify every current subscriber."""
        self._value = value
        for subscription in tuple(self._subscriptions):
            # Unsubscribed by an earlier callback in this same round.
            if subscription.active:
                self._notify(subscription.callback, value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def subscribe(self, callback: Subscriber[T]) -> Unsubscribe:
        """Register *callback* and call it once with the current value.

        Returns a function that deregisters the callback.  Calling it more
        than once is a no-op.
        """
        # The hook runs with no subscriber registered: a value it sets is
        # delivered once, by the replay below.  If it raises, nothing is registered.
        if not self._subscriptions and self._start is not None:
            self._stop = self._start(self.set) or None
        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)
        self._notify(callback, self._value)

        def unsubscribe() -> None:
            if not subscription.active:
                return
            subscription.active = False
            self._subscriptions.remove(subscription)
            if not self._subscriptions and self._stop is not None:
                stop, self._stop = self._stop, None
                stop()

        return unsubscribe

    def _notify(self, callback: Subscriber[T], value: T) -> None:
        try:
            callback(value)
        except Exception as exc:
            error = SubscriberError(f"Store subscriber {callback!r} failed: {exc!r}", callback=callback)
            error.__cause__ = exc
            self._on_error(error)
