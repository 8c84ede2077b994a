"""Reconnect policies for feed connections.

Feeds never reconnect unless given a policy.  A policy maps the number of
consecutive failed attempts to the delay before the next one, or ``None``
to give up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from livefeed.config import FeedConfig


class ReconnectPolicy(Protocol):
    """Structural interface for reconnect policies."""

    def delay(self, attempt: int) -> float | None:
        ...


@dataclass(frozen=True)
class ExponentialBackoff:
    """Delay doubles (by *factor*) per attempt, capped at *maximum*.

    *max_attempts* of ``0`` retries forever.
    """

    initial: float = 1.0
    factor: float = 2.0
    maximum: float = 30.0
    max_attempts: int = 0

    def delay(self, attempt: int) -> float | None:
        if self.max_attempts and attempt >= self.max_attempts:
            return None
        try:
            delay = self.initial * (self.factor**attempt)
        except OverflowError:
            return self.maximum
        return min(self.maximum, delay)

    @classmethod
    def from_config(cls, config: FeedConfig) -> ExponentialBackoff | None:
        """Policy described by *config*, or ``None`` when reconnect is disabled."""
        if not config.reconnect_enabled:
            return None
        return cls(
            initial=config.reconnect_initial_delay,
            maximum=config.reconnect_max_delay,
            max_attempts=config.reconnect_max_attempts,
        )
