"""
RawRecord model representing a booking row exactly as it was received (bronze layer).
"""

import hashlib
import json
from datetime import datetime, timezone

from pydantic import BaseModel, Field

# Column layout delivered by the staging layer
RAW_FIELDS = (
    "booking_id",
    "hotel_id",
    "hotel_city",
    "customer_id",
    "customer_name",
    "customer_email",
    "check_in_date",
    "check_out_date",
    "room_type",
    "num_guests",
    "total_amount",
    "currency",
    "booking_status",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RawRecord(BaseModel):
    """
    A booking row as received, untyped and unvalidated.

    RawRecords are immutable once stored and retained indefinitely as the
    system of record. The same booking_id may appear more than once in the
    raw store; the load tracker decides which occurrence is promoted.

    Attributes:
        booking_id: Record identifier (trimmed booking_id column)
        batch_id: Ingestion batch the row arrived in
        sequence: Monotonic ingestion position, defines first-seen order
        payload: Every raw column as text (missing columns become "")
        ingested_at: When the row entered the raw store
    """

    booking_id: str = Field(..., min_length=1)
    batch_id: str
    sequence: int = Field(0, ge=0)
    payload: dict[str, str]
    ingested_at: datetime = Field(default_factory=_utcnow)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "booking_id": "BK1001",
                "batch_id": "bookings_2026-01-11",
                "sequence": 42,
                "payload": {
                    "booking_id": "BK1001",
                    "hotel_city": "  new york ",
                    "customer_email": "invalid-email",
                    "check_in_date": "1/11/2026",
                    "check_out_date": "2026-01-14",
                    "total_amount": "-252.49",
                    "booking_status": "confirmeeed",
                },
            }
        }

    def field(self, name: str) -> str:
        """Return a raw column value, "" when the column is absent."""
        return self.payload.get(name) or ""

    def checksum(self) -> str:
        """MD5 fingerprint of the payload, used to spot conflicting duplicates."""
        data_str = json.dumps(self.payload, sort_keys=True)
        return hashlib.md5(data_str.encode()).hexdigest()
