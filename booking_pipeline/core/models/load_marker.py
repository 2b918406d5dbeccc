"""
LoadMarker model recording that a raw identifier has already been evaluated.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .validation_outcome import HARD_VIOLATIONS, ViolationKind


class LoadMarker(BaseModel):
    """
    Promotion bookkeeping for a single record identifier.

    A marker is written exactly once, the first time an identifier is
    evaluated. Later runs consult it instead of re-evaluating the record.

    Attributes:
        record_id: Record identifier (PK)
        status: "promoted" or "rejected"
        violations: Every violation found at evaluation time (soft ones included)
        batch_id: Raw batch the winning occurrence came from
        checksum: Fingerprint of the winning raw payload
        marked_at: When the marker was written
    """

    record_id: str = Field(..., min_length=1)
    status: Literal["promoted", "rejected"]
    violations: list[ViolationKind] = Field(default_factory=list)
    batch_id: str | None = None
    checksum: str | None = None
    marked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_rejection_has_reason(self) -> "LoadMarker":
        """A rejected marker must carry at least one hard violation."""
        if self.status == "rejected" and not any(kind in HARD_VIOLATIONS for kind in self.violations):
            raise ValueError("rejected marker requires a hard violation")
        return self

    @property
    def promoted(self) -> bool:
        return self.status == "promoted"

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "record_id": "BK1002",
                "status": "rejected",
                "violations": ["DATE_ORDER_INVALID"],
                "batch_id": "bookings_2026-01-11",
                "checksum": "a3b2c1d4e5f6...",
            }
        }
