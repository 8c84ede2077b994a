"""Record models exchanged with the dashboard server."""

from livefeed.models.pipeline import PipelineStage, seed_stage_records
from livefeed.models.record import Record

__all__ = [
    "PipelineStage",
    "Record",
    "seed_stage_records",
]
