"""Helpers for safe debug logging.

Frames arrive from an untrusted server and may be arbitrarily large or
not even text.  This module shortens them before they reach a log line.
"""

from __future__ import annotations

from livefeed._constants import LOG_FRAME_LIMIT


def truncate_for_log(frame: str | bytes | bytearray, *, max_string: int = LOG_FRAME_LIMIT) -> str:
    """Return a shortened text form of *frame* suitable for log lines."""
    if isinstance(frame, (bytes, bytearray)):
        try:
            frame = bytes(frame).decode("utf-8")
        except UnicodeDecodeError:
            return f"<bytes:{len(frame)}b>"
    if len(frame) > max_string:
        return f"{frame[:max_string]}…<truncated>"
    return frame
