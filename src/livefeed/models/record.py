"""Status update record pushed by the dashboard server."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt

_OPTIONAL_FIELDS: tuple[str, ...] = ("state", "description")


class Record(BaseModel):
    """One keyed status update.

    Only ``id`` is required.  ``state`` and ``description`` are the fields
    every server message carries, but they are not validated: the record
    is an opaque value object and any extra keys are kept as received.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: StrictInt
    state: Any = None
    description: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return exactly the fields that were received.

        ``state``/``description`` defaults are not injected, so a record
        built from ``{"id": 2, "state": 9}`` dumps back to that mapping.
        """
        dumped = self.model_dump()
        for name in _OPTIONAL_FIELDS:
            if name not in self.model_fields_set:
                dumped.pop(name, None)
        return dumped
