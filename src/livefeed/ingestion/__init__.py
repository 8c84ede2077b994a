"""Ingestion layer.

This package turns raw WebSocket frames into validated records.  Only the
state layer is allowed to merge them.
"""

from livefeed.ingestion.records import parse_record

__all__ = ["parse_record"]
