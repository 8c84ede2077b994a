"""Client configuration for livefeed."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from livefeed._constants import CLOCK_INTERVAL, EVENTS_URL, MONITOR_URL
from livefeed.exceptions import LiveFeedConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise LiveFeedConfigError(f"{name} must be a number, got {value!r}") from exc


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise LiveFeedConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class FeedConfig:
    """Feed configuration.

    Parameters
    ----------
    events_url : str
        WebSocket endpoint of the generic event dashboard feed.
    monitor_url : str
        WebSocket endpoint of the pipeline monitor feed.
    clock_interval : float
        Seconds between two clock ticks.
    receive_timeout : float or None
        Seconds to wait for the next frame before treating the connection
        as dead.  ``None`` waits forever.
    heartbeat : float or None
        WebSocket ping interval in seconds.  ``None`` disables pings.
    reconnect_enabled : bool
        Reconnect with exponential backoff after the connection drops.
        Disabled by default: a dropped feed keeps its last known state.
    reconnect_initial_delay : float
        First backoff delay in seconds.
    reconnect_max_delay : float
        Upper bound for a single backoff delay.
    reconnect_max_attempts : int
        Consecutive failed attempts before giving up.  ``0`` means unlimited.
    """

    events_url: str = EVENTS_URL
    monitor_url: str = MONITOR_URL
    clock_interval: float = CLOCK_INTERVAL
    receive_timeout: float | None = None
    heartbeat: float | None = None
    reconnect_enabled: bool = False
    reconnect_initial_delay: float = 1.0
    reconnect_max_delay: float = 30.0
    reconnect_max_attempts: int = 0

    def __post_init__(self) -> None:
        for name in ("events_url", "monitor_url"):
            url = getattr(self, name)
            if not isinstance(url, str) or not url.startswith(("ws://", "wss://")):
                raise LiveFeedConfigError(f"{name} must be a ws:// or wss:// URL, got {url!r}")
        if self.clock_interval <= 0:
            raise LiveFeedConfigError(f"clock_interval must be positive, got {self.clock_interval}")
        if self.receive_timeout is not None and self.receive_timeout <= 0:
            raise LiveFeedConfigError(f"receive_timeout must be positive, got {self.receive_timeout}")
        if self.heartbeat is not None and self.heartbeat <= 0:
            raise LiveFeedConfigError(f"heartbeat must be positive, got {self.heartbeat}")
        if self.reconnect_initial_delay < 0 or self.reconnect_max_delay < self.reconnect_initial_delay:
            raise LiveFeedConfigError("reconnect delays must satisfy 0 <= initial <= max")
        if self.reconnect_max_attempts < 0:
            raise LiveFeedConfigError("reconnect_max_attempts must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedConfig:
        """Create configuration from environment variables.

        Reads ``LIVEFEED_EVENTS_URL``, ``LIVEFEED_MONITOR_URL`` and the
        optional ``LIVEFEED_*`` tuning variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FeedConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "LIVEFEED_EVENTS_URL": "events_url",
            "LIVEFEED_MONITOR_URL": "monitor_url",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        _ENV_FLOAT_MAP = {
            "LIVEFEED_CLOCK_INTERVAL": "clock_interval",
            "LIVEFEED_RECEIVE_TIMEOUT": "receive_timeout",
            "LIVEFEED_HEARTBEAT": "heartbeat",
            "LIVEFEED_RECONNECT_INITIAL_DELAY": "reconnect_initial_delay",
            "LIVEFEED_RECONNECT_MAX_DELAY": "reconnect_max_delay",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        attempts_env = env.get("LIVEFEED_RECONNECT_MAX_ATTEMPTS")
        if attempts_env is not None and "reconnect_max_attempts" not in overrides:
            config_kwargs["reconnect_max_attempts"] = _env_int("LIVEFEED_RECONNECT_MAX_ATTEMPTS", attempts_env)

        if "reconnect_enabled" not in overrides:
            config_kwargs["reconnect_enabled"] = _env_bool(env.get("LIVEFEED_RECONNECT_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
