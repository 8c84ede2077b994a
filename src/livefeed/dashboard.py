"""Composition root for the dashboard feeds and clock."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from livefeed.clock import ClockFeed
from livefeed.config import FeedConfig
from livefeed.feed import KeyedMergeFeed
from livefeed.models.pipeline import seed_stage_records
from livefeed.reconnect import ExponentialBackoff

_logger = logging.getLogger(__name__)


def create_event_feed(
    config: FeedConfig,
    *,
    session: aiohttp.ClientSession | None = None,
) -> KeyedMergeFeed:
    """Generic event feed, starting from an empty collection."""
    return KeyedMergeFeed.create(
        config.events_url,
        (),
        session=session,
        reconnect=ExponentialBackoff.from_config(config),
        receive_timeout=config.receive_timeout,
        heartbeat=config.heartbeat,
    )


def create_monitor_feed(
    config: FeedConfig,
    *,
    session: aiohttp.ClientSession | None = None,
) -> KeyedMergeFeed:
    """Pipeline monitor feed, seeded with one idle record per stage."""
    return KeyedMergeFeed.create(
        config.monitor_url,
        seed_stage_records(),
        session=session,
        reconnect=ExponentialBackoff.from_config(config),
        receive_timeout=config.receive_timeout,
        heartbeat=config.heartbeat,
    )


def create_clock(config: FeedConfig) -> ClockFeed:
    return ClockFeed.create(config.clock_interval)


class Dashboard:
    """Both feeds and the clock, started and stopped together.

    Usage::

        async with Dashboard(FeedConfig.from_env()) as dashboard:
            dashboard.monitor.subscribe(render_stages)
            dashboard.clock.subscribe(render_clock)

    Subscribing before :meth:`start` is fine: stores exist from
    construction.  A session passed in is shared by both feeds and left
    open on stop; otherwise each feed owns its own.
    """

    def __init__(
        self,
        config: FeedConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or FeedConfig()
        self._events = create_event_feed(self._config, session=session)
        self._monitor = create_monitor_feed(self._config, session=session)
        self._clock = create_clock(self._config)

    async def __aenter__(self) -> Dashboard:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def config(self) -> FeedConfig:
        return self._config

    @property
    def events(self) -> KeyedMergeFeed:
        return self._events

    @property
    def monitor(self) -> KeyedMergeFeed:
        return self._monitor

    @property
    def clock(self) -> ClockFeed:
        return self._clock

    async def start(self) -> None:
        """Connect both feeds."""
        _logger.info(
            "Dashboard starting events=%s monitor=%s",
            self._config.events_url,
            self._config.monitor_url,
        )
        await asyncio.gather(self._events.start(), self._monitor.start())

    async def stop(self) -> None:
        """Disconnect both feeds.  Snapshots and clock subscribers are untouched."""
        await asyncio.gather(self._events.stop(), self._monitor.stop())
        _logger.info("Dashboard stopped")
