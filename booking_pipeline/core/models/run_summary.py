"""
RunSummary model reported by one "run pipeline increment" invocation.
"""

from enum import IntEnum
from typing import Literal

from pydantic import BaseModel, Field


class ExitStatus(IntEnum):
    """Process exit codes understood by the scheduler."""

    CLEAN = 0
    FATAL = 1
    REJECTIONS = 2


class RunSummary(BaseModel):
    """
    Counters for a pipeline increment.

    Attributes:
        batch_id: Raw batch processed, None for every pending raw record
        total_records: Raw records considered by this run
        promoted: Records newly inserted into the curated store
        rejected: Records newly marked as rejected
        skipped: Records whose identifier was already marked (re-runs, duplicates)
        conflicting_duplicates: Skipped records whose payload differs from the promoted one
        rejections_by_reason: Hard violation counts over newly rejected records
        violations_by_kind: Every violation tag counted over newly evaluated records
        aggregation: Which recompute scope refreshed the aggregates
        duration_seconds: Wall time of the run
    """

    batch_id: str | None = None
    total_records: int = 0
    promoted: int = 0
    rejected: int = 0
    skipped: int = 0
    conflicting_duplicates: int = 0
    rejections_by_reason: dict[str, int] = Field(default_factory=dict)
    violations_by_kind: dict[str, int] = Field(default_factory=dict)
    aggregation: Literal["incremental", "full", "none"] = "none"
    duration_seconds: float = 0.0

    @property
    def exit_status(self) -> ExitStatus:
        if self.rejected > 0:
            return ExitStatus.REJECTIONS
        return ExitStatus.CLEAN

    class Config:
        json_schema_extra = {
            "example": {
                "batch_id": "bookings_2026-01-11",
                "total_records": 120,
                "promoted": 111,
                "rejected": 7,
                "skipped": 2,
                "conflicting_duplicates": 1,
                "rejections_by_reason": {"INVALID_DATE": 4, "DATE_ORDER_INVALID": 3},
                "violations_by_kind": {"INVALID_EMAIL": 9, "NEGATIVE_AMOUNT": 2},
                "aggregation": "incremental",
                "duration_seconds": 0.42,
            }
        }
