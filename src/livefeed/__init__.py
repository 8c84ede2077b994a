"""livefeed - Async client-side state sync for real-time monitoring dashboards."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("livefeed")
except PackageNotFoundError:
    __version__ = "0+local"
from livefeed.clock import ClockFeed
from livefeed.config import FeedConfig
from livefeed.dashboard import Dashboard, create_clock, create_event_feed, create_monitor_feed
from livefeed.exceptions import (
    FeedConnectionError,
    LiveFeedConfigError,
    LiveFeedError,
    ParseError,
    SubscriberError,
)
from livefeed.feed import KeyedMergeFeed
from livefeed.ingestion import parse_record
from livefeed.models import PipelineStage, Record, seed_stage_records
from livefeed.reconnect import ExponentialBackoff, ReconnectPolicy
from livefeed.state import ReactiveStore, RecordCollection, Unsubscribe

__all__ = [
    "__version__",
    "ClockFeed",
    "Dashboard",
    "ExponentialBackoff",
    "FeedConfig",
    "FeedConnectionError",
    "KeyedMergeFeed",
    "LiveFeedConfigError",
    "LiveFeedError",
    "ParseError",
    "PipelineStage",
    "ReactiveStore",
    "Record",
    "RecordCollection",
    "ReconnectPolicy",
    "SubscriberError",
    "Unsubscribe",
    "create_clock",
    "create_event_feed",
    "create_monitor_feed",
    "parse_record",
    "seed_stage_records",
]
