"""Frame parsing for inbound status records."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from livefeed.exceptions import ParseError
from livefeed.models.record import Record


def _decode_json(raw: str | bytes | bytearray) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Frame is not valid JSON: {exc}", raw=raw) from exc
    except RecursionError as exc:
        raise ParseError("Frame is nested too deeply", raw=raw) from exc
    except TypeError as exc:
        raise ParseError(f"Unsupported frame type {type(raw).__name__}", raw=raw) from exc


def parse_record(raw: str | bytes | bytearray) -> Record:
    """Parse one frame into a :class:`Record`.

    Raises :class:`ParseError` when the frame is not a JSON object or has
    no integer ``id``.
    """
    payload = _decode_json(raw)
    if not isinstance(payload, dict):
        raise ParseError(
            f"Frame is not a JSON object: got {type(payload).__name__}",
            raw=raw,
        )
    try:
        return Record.model_validate(payload)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
        )
        raise ParseError(f"Frame is not a usable record: {errors}", raw=raw) from exc
    except RecursionError as exc:
        raise ParseError("Frame is nested too deeply", raw=raw) from exc
