"""Keyed merge feed: a WebSocket stream folded into an ordered snapshot store."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import aiohttp

from livefeed._redact import truncate_for_log
from livefeed._ws import WebSocketRuntime
from livefeed.exceptions import ParseError
from livefeed.ingestion.records import parse_record
from livefeed.models.record import Record
from livefeed.reconnect import ReconnectPolicy
from livefeed.state.collection import RecordCollection
from livefeed.state.store import ReactiveStore, Subscriber, Unsubscribe

_logger = logging.getLogger(__name__)


class KeyedMergeFeed:
    """Latest known record per id, kept in sync with one endpoint.

    Usage::

        async with KeyedMergeFeed.create("ws://localhost:8080/api/v1/ws") as feed:
            unsubscribe = feed.subscribe(render)
            ...

    Every inbound frame is parsed and merged by id into the current
    :class:`RecordCollection`; the new snapshot is then pushed to the
    feed's store.  Frames that do not parse are logged and dropped.  When
    the connection drops the last snapshot stays in place.
    """

    def __init__(
        self,
        endpoint: str,
        initial: Iterable[Record | Mapping[str, Any]] = (),
        *,
        session: aiohttp.ClientSession | None = None,
        reconnect: ReconnectPolicy | None = None,
        receive_timeout: float | None = None,
        heartbeat: float | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._store: ReactiveStore[RecordCollection] = ReactiveStore(RecordCollection(initial))
        self._runtime = WebSocketRuntime(
            endpoint=endpoint,
            on_frame=self.on_record,
            session=session,
            reconnect=reconnect,
            receive_timeout=receive_timeout,
            heartbeat=heartbeat,
            logger=_logger,
        )

    @classmethod
    def create(
        cls,
        endpoint: str,
        initial: Iterable[Record | Mapping[str, Any]] = (),
        **kwargs: Any,
    ) -> KeyedMergeFeed:
        return cls(endpoint, initial, **kwargs)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> KeyedMergeFeed:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Open the connection and begin merging frames."""
        await self._runtime.start()

    async def stop(self) -> None:
        """Close the connection.  The current snapshot is kept."""
        await self._runtime.stop()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def store(self) -> ReactiveStore[RecordCollection]:
        return self._store

    @property
    def snapshot(self) -> RecordCollection:
        return self._store.value

    @property
    def runtime(self) -> WebSocketRuntime:
        return self._runtime

    def subscribe(self, callback: Subscriber[RecordCollection]) -> Unsubscribe:
        """Receive the current snapshot now and every new one after a merge."""
        return self._store.subscribe(callback)

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def on_record(self, raw: str | bytes) -> None:
        """Merge one raw frame.  Malformed frames leave the snapshot untouched."""
        try:
            record = parse_record(raw)
        except ParseError as exc:
            _logger.warning("Dropping frame from %s: %s (raw=%s)", self._endpoint, exc, truncate_for_log(raw))
            return
        self.apply(record)

    def apply(self, record: Record) -> None:
        """Merge an already parsed record and publish the new snapshot."""
        self._store.set(self._store.value.merge(record))
