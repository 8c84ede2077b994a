"""Internal WebSocket runtime: connection, read loop and teardown."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

import aiohttp

from livefeed._redact import truncate_for_log
from livefeed.exceptions import FeedConnectionError
from livefeed.reconnect import ReconnectPolicy

FrameHandler = Callable[[str | bytes], None]

_CLOSING_TYPES = frozenset({aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED})


class WebSocketRuntime:
    """Receive-only WebSocket reader that hands every frame to *on_frame*.

    Frames are delivered one at a time from a single asyncio task, in the
    order they arrive.  Nothing is ever sent to the server.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        on_frame: FrameHandler,
        session: aiohttp.ClientSession | None = None,
        reconnect: ReconnectPolicy | None = None,
        receive_timeout: float | None = None,
        heartbeat: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._on_frame = on_frame
        self._http = session
        self._owns_session = session is None
        self._reconnect = reconnect
        self._receive_timeout = receive_timeout
        self._heartbeat = heartbeat
        self._logger = logger or logging.getLogger(__name__)
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._task: asyncio.Task[None] | None = None
        self._connected = asyncio.Event()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def is_running(self) -> bool:
        """Whether the read loop task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def wait_connected(self, timeout: float | None = None) -> bool:
        """Wait until the socket is open; ``False`` on timeout."""
        try:
            await asyncio.wait_for(self._connected.wait(), timeout)
            return True
        except TimeoutError:
            return False

    async def start(self) -> None:
        """Spawn the read loop.  No-op when already running."""
        if self.is_running:
            return
        if self._http is None:
            self._http = aiohttp.ClientSession()
            self._owns_session = True
        self._logger.debug("Feed runtime start requested endpoint=%s", self._endpoint)
        self._task = asyncio.create_task(self._run(), name=f"livefeed:{self._endpoint}")

    async def stop(self) -> None:
        """Cancel the read loop, close the socket and any owned session."""
        task = self._task
        self._task = None
        try:
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            ws = self._ws
            self._ws = None
            if ws is not None and not ws.closed:
                await ws.close()
        finally:
            if self._owns_session and self._http is not None:
                await self._http.close()
                self._http = None
            self._connected.clear()
            self._logger.debug("Feed runtime stopped endpoint=%s", self._endpoint)

    async def _run(self) -> None:
        try:
            await self._read_loop()
        except Exception:
            self._logger.error("Feed reader crashed endpoint=%s", self._endpoint, exc_info=True)

    async def _read_loop(self) -> None:
        attempt = 0
        while True:
            try:
                await self._connect_and_read()
            except FeedConnectionError as exc:
                self._logger.warning("%s", exc)
            if self._connected.is_set():
                attempt = 0
                self._connected.clear()

            if self._reconnect is None:
                self._logger.info("Feed ended without reconnect endpoint=%s", self._endpoint)
                return
            delay = self._reconnect.delay(attempt)
            if delay is None:
                self._logger.warning(
                    "Feed giving up after %d reconnect attempts endpoint=%s",
                    attempt,
                    self._endpoint,
                )
                return
            attempt += 1
            self._logger.info(
                "Feed reconnecting in %.1fs (attempt %d) endpoint=%s",
                delay,
                attempt,
                self._endpoint,
            )
            await asyncio.sleep(delay)

    async def _connect_and_read(self) -> None:
        assert self._http is not None  # noqa: S101
        try:
            ws = await self._http.ws_connect(self._endpoint, heartbeat=self._heartbeat)
        except (aiohttp.ClientError, OSError) as exc:
            raise FeedConnectionError(
                f"Connection to {self._endpoint} failed: {exc}",
                endpoint=self._endpoint,
            ) from exc

        self._ws = ws
        self._connected.set()
        self._logger.info("Feed connected endpoint=%s", self._endpoint)
        try:
            while True:
                try:
                    msg = await ws.receive(timeout=self._receive_timeout)
                except TimeoutError as exc:
                    raise FeedConnectionError(
                        f"No frame from {self._endpoint} within {self._receive_timeout}s",
                        endpoint=self._endpoint,
                    ) from exc

                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._logger.debug("Frame received endpoint=%s data=%s", self._endpoint, truncate_for_log(msg.data))
                    self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise FeedConnectionError(
                        f"WebSocket error on {self._endpoint}: {ws.exception()}",
                        endpoint=self._endpoint,
                    )
                elif msg.type in _CLOSING_TYPES:
                    self._logger.info("Feed closed endpoint=%s code=%s", self._endpoint, ws.close_code)
                    return
        finally:
            self._ws = None
            if not ws.closed:
                await ws.close()

    def _dispatch(self, data: str | bytes) -> None:
        try:
            self._on_frame(data)
        except Exception:
            self._logger.warning("Frame handler failed endpoint=%s", self._endpoint, exc_info=True)
