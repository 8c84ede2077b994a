from __future__ import annotations

# pylint: disable=redefined-outer-name

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from livefeed.feed import KeyedMergeFeed
from livefeed.reconnect import ExponentialBackoff
from livefeed.state.collection import RecordCollection


@dataclass
class FakeDashboardServer:
    """WebSocket endpoint that replays scripted frames per connection.

    ``scripts[n]`` is the list of frames sent on the n-th connection.  After
    the frames are sent the socket is closed, unless ``hold_open`` is set
    for the last scripted connection, in which case the server keeps
    reading until the client goes away.
    """

    scripts: list[list[str | bytes]]
    hold_open: bool = False
    connections: int = 0
    received: list[Any] = field(default_factory=list)

    async def handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        index = min(self.connections, len(self.scripts) - 1)
        self.connections += 1
        for frame in self.scripts[index]:
            if isinstance(frame, bytes):
                await ws.send_bytes(frame)
            else:
                await ws.send_str(frame)
        if self.hold_open and index == len(self.scripts) - 1:
            async for msg in ws:
                self.received.append(msg.data)
        await ws.close()
        return ws


@contextlib.asynccontextmanager
async def _serve(backend: FakeDashboardServer) -> AsyncIterator[str]:
    app = web.Application()
    app.router.add_get("/api/v1/ws", backend.handler)
    async with TestServer(app) as server:
        yield f"ws://{server.host}:{server.port}/api/v1/ws"


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


def _frame(**data: Any) -> str:
    return json.dumps(data)


# ------------------------------------------------------------------
# Merge without a network
# ------------------------------------------------------------------


def test_on_record_appends_and_replaces() -> None:
    feed = KeyedMergeFeed.create("ws://unused", [{"id": 1}, {"id": 2}, {"id": 3}])

    feed.on_record(_frame(id=2, state=5))
    feed.on_record(_frame(id=9, state=1))

    assert feed.snapshot.to_list() == [{"id": 1}, {"id": 2, "state": 5}, {"id": 3}, {"id": 9, "state": 1}]


def test_malformed_frame_between_valid_frames_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    with_noise = KeyedMergeFeed("ws://unused")
    clean = KeyedMergeFeed("ws://unused")

    with caplog.at_level("WARNING", logger="livefeed.feed"):
        with_noise.on_record(_frame(id=1, state=1))
        with_noise.on_record("{not json")
        with_noise.on_record('{"state": 3}')
        with_noise.on_record(_frame(id=2, state=2))
    clean.on_record(_frame(id=1, state=1))
    clean.on_record(_frame(id=2, state=2))

    assert with_noise.snapshot == clean.snapshot
    assert "Dropping frame" in caplog.text


def test_deeply_nested_frame_is_dropped(caplog: pytest.LogCaptureFixture) -> None:
    feed = KeyedMergeFeed("ws://unused", [{"id": 1, "state": 0}])
    raw = '{"id": 1, "x": ' + "[" * 100000 + "]" * 100000 + "}"

    with caplog.at_level("WARNING", logger="livefeed.feed"):
        feed.on_record(raw)

    assert feed.snapshot.to_list() == [{"id": 1, "state": 0}]
    assert "nested too deeply" in caplog.text


def test_malformed_frame_does_not_notify() -> None:
    feed = KeyedMergeFeed("ws://unused")
    seen: list[RecordCollection] = []
    feed.subscribe(seen.append)

    feed.on_record(b"\x00garbage")

    assert len(seen) == 1


def test_subscriber_gets_post_update_snapshot() -> None:
    feed = KeyedMergeFeed("ws://unused")
    for i in range(3):
        feed.on_record(_frame(id=i, state=i))

    seen: list[RecordCollection] = []
    feed.subscribe(seen.append)

    assert [c.ids() for c in seen] == [(0, 1, 2)]


def test_snapshots_seen_by_subscribers_are_not_mutated_later() -> None:
    feed = KeyedMergeFeed("ws://unused")
    seen: list[RecordCollection] = []
    feed.subscribe(seen.append)

    feed.on_record(_frame(id=1, state=1))
    feed.on_record(_frame(id=1, state=2))

    assert [c.to_list() for c in seen] == [[], [{"id": 1, "state": 1}], [{"id": 1, "state": 2}]]


# ------------------------------------------------------------------
# Against a live WebSocket endpoint
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_frames_are_merged_in_arrival_order() -> None:
    backend = FakeDashboardServer(
        scripts=[
            [
                _frame(id=1, state=0, description="file-001"),
                _frame(id=2, state=0, description="file-002"),
                _frame(id=1, state=1, description="file-001").encode(),
                "garbage",
                _frame(id=3, state=0),
            ]
        ],
        hold_open=True,
    )
    async with _serve(backend) as url:
        feed = KeyedMergeFeed.create(url)
        snapshots: list[RecordCollection] = []
        feed.subscribe(snapshots.append)
        async with feed:
            await _wait_for(lambda: len(feed.snapshot) == 3)

    assert feed.snapshot.to_list() == [
        {"id": 1, "state": 1, "description": "file-001"},
        {"id": 2, "state": 0, "description": "file-002"},
        {"id": 3, "state": 0},
    ]
    # initial + four valid frames
    assert len(snapshots) == 5
    assert backend.received == []


@pytest.mark.asyncio
async def test_server_close_keeps_last_snapshot() -> None:
    backend = FakeDashboardServer(scripts=[[_frame(id=4, state=2)]])
    async with _serve(backend) as url:
        feed = KeyedMergeFeed(url)
        await feed.start()
        try:
            await _wait_for(lambda: not feed.runtime.is_running)
        finally:
            await feed.stop()

    assert feed.snapshot.to_list() == [{"id": 4, "state": 2}]
    assert backend.connections == 1


@pytest.mark.asyncio
async def test_connection_refused_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    seed = [{"id": 1, "state": 100, "description": "File receiver"}]
    feed = KeyedMergeFeed(f"ws://127.0.0.1:{unused_port()}/api/v1/mon", seed)

    with caplog.at_level("WARNING", logger="livefeed.feed"):
        await feed.start()
        await _wait_for(lambda: not feed.runtime.is_running)
        await feed.stop()

    assert feed.snapshot.to_list() == seed
    assert "failed" in caplog.text


@pytest.mark.asyncio
async def test_reconnect_policy_resumes_merging() -> None:
    backend = FakeDashboardServer(
        scripts=[
            [_frame(id=1, state=1)],
            [_frame(id=1, state=2), _frame(id=2, state=0)],
        ],
        hold_open=True,
    )
    async with _serve(backend) as url:
        feed = KeyedMergeFeed(url, reconnect=ExponentialBackoff(initial=0.01, maximum=0.05))
        async with feed:
            await _wait_for(lambda: len(feed.snapshot) == 2)
            assert feed.runtime.is_running

    assert backend.connections == 2
    assert feed.snapshot.to_list() == [{"id": 1, "state": 2}, {"id": 2, "state": 0}]


@pytest.mark.asyncio
async def test_reconnect_gives_up_after_max_attempts(caplog: pytest.LogCaptureFixture) -> None:
    feed = KeyedMergeFeed(
        f"ws://127.0.0.1:{unused_port()}/api/v1/ws",
        reconnect=ExponentialBackoff(initial=0.01, maximum=0.01, max_attempts=2),
    )

    with caplog.at_level("INFO", logger="livefeed.feed"):
        await feed.start()
        await _wait_for(lambda: not feed.runtime.is_running)
        await feed.stop()

    assert "giving up after 2 reconnect attempts" in caplog.text
    failures = [r for r in caplog.records if r.getMessage().startswith("Connection to ")]
    assert len(failures) == 3


@pytest.mark.asyncio
async def test_external_session_is_left_open() -> None:
    backend = FakeDashboardServer(scripts=[[_frame(id=1)]], hold_open=True)
    async with _serve(backend) as url:
        async with aiohttp.ClientSession() as session:
            feed = KeyedMergeFeed(url, session=session)
            async with feed:
                await _wait_for(lambda: len(feed.snapshot) == 1)
            assert not session.closed
            assert not feed.runtime.is_running


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent() -> None:
    backend = FakeDashboardServer(scripts=[[]], hold_open=True)
    async with _serve(backend) as url:
        feed = KeyedMergeFeed(url)
        await feed.start()
        await feed.start()
        assert await feed.runtime.wait_connected(timeout=2.0)
        await feed.stop()
        await feed.stop()

    assert backend.connections == 1
    assert not feed.runtime.is_connected


class _BrokenPolicy:
    def delay(self, attempt: int) -> float | None:
        raise RuntimeError("policy exploded")


@pytest.mark.asyncio
async def test_unexpected_reader_error_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    feed = KeyedMergeFeed(f"ws://127.0.0.1:{unused_port()}/api/v1/ws", reconnect=_BrokenPolicy())

    with caplog.at_level("ERROR", logger="livefeed.feed"):
        await feed.start()
        await _wait_for(lambda: not feed.runtime.is_running)
        await feed.stop()

    assert "Feed reader crashed" in caplog.text
    assert "policy exploded" in caplog.text
