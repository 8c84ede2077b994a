"""Custom exception hierarchy for livefeed."""

from __future__ import annotations


class LiveFeedError(Exception):
    """Base exception for all livefeed errors."""


class LiveFeedConfigError(LiveFeedError):
    """Invalid or missing configuration."""


class ParseError(LiveFeedError, ValueError):
    """Inbound frame is not a well-formed record.

    Raised for frames that are not JSON objects or that lack a usable
    integer ``id``.  Feeds drop the frame and keep their collection as is.
    """

    def __init__(self, message: str, *, raw: str | bytes | None = None) -> None:
        self.raw = raw
        super().__init__(message)


class FeedConnectionError(LiveFeedError):
    """Transport-level failure (connect refused, socket error, abnormal close)."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class SubscriberError(LiveFeedError):
    """A store subscriber raised while being notified."""

    def __init__(self, message: str, *, callback: object = None) -> None:
        self.callback = callback
        super().__init__(message)
