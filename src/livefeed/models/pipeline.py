"""Pipeline monitor stages and their seeded idle records."""

from __future__ import annotations

import enum

from livefeed._constants import IDLE_STATE
from livefeed.models.record import Record


class PipelineStage(enum.IntEnum):
    """Stages of the file-processing pipeline, keyed by record id.

    The monitor endpoint reports one record per stage.  On the event
    endpoint, a file record's ``state`` is the value of the last stage
    that processed it (``0`` means received by the source, not yet
    processed).
    """

    FILE_RECEIVER = 1
    DATA_INTEGRITY = 2
    DATA_DISPATCHER = 3
    FILE_MAKER = 4
    DATA_ARCHIVING = 5
    FILE_SENDER = 6

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS: dict[PipelineStage, str] = {
    PipelineStage.FILE_RECEIVER: "File receiver",
    PipelineStage.DATA_INTEGRITY: "Data integrity",
    PipelineStage.DATA_DISPATCHER: "Data dispatcher",
    PipelineStage.FILE_MAKER: "File maker",
    PipelineStage.DATA_ARCHIVING: "Data archiving",
    PipelineStage.FILE_SENDER: "File sender",
}


def seed_stage_records() -> tuple[Record, ...]:
    """Idle record for every stage, in pipeline order."""
    return tuple(
        Record(id=int(stage), state=IDLE_STATE, description=stage.description) for stage in PipelineStage
    )
