"""State layer.

This package is the single place where incoming records are merged into
ordered snapshots and published to subscribers.
"""

from livefeed.state.collection import RecordCollection
from livefeed.state.store import ReactiveStore, Unsubscribe

__all__ = ["ReactiveStore", "RecordCollection", "Unsubscribe"]
