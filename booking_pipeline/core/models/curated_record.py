"""
CuratedRecord model representing a validated, normalized booking (silver layer).
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from booking_pipeline.utils.parsing import MAX_INT, MIN_INT


class CuratedRecord(BaseModel):
    """
    Typed, normalized projection of a raw record that passed validation.

    Curated records are created once per eligible raw record and never patched
    in place.

    Attributes:
        booking_id: Record identifier (PK)
        hotel_id: Hotel identifier, passed through
        customer_id: Customer identifier, passed through
        hotel_city: Title-cased city, None when blank
        customer_name: Title-cased name, None when blank
        customer_email: Lowercased email, None when it failed the email pattern
        check_in_date: Parsed check-in date
        check_out_date: Parsed check-out date, never before check_in_date
        room_type: Passed through
        num_guests: Integer guest count, None when not numeric or out of INTEGER range
        total_amount: Non-negative amount in cents precision, None when unparseable or too large
        currency: Passed through
        booking_status: Canonical status, or the source value when unknown
        batch_id: Raw batch the record was promoted from
        promoted_at: When the record entered the curated store
    """

    booking_id: str = Field(..., min_length=1)
    hotel_id: str | None = None
    customer_id: str | None = None
    hotel_city: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    check_in_date: date
    check_out_date: date
    room_type: str | None = None
    num_guests: int | None = Field(None, ge=MIN_INT, le=MAX_INT)
    total_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: str | None = None
    booking_status: str | None = None
    batch_id: str | None = None
    promoted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_date_order(self) -> "CuratedRecord":
        if self.check_out_date < self.check_in_date:
            raise ValueError(
                f"check_out_date ({self.check_out_date}) is before "
                f"check_in_date ({self.check_in_date})"
            )
        return self

    def as_row(self) -> dict:
        """Column mapping used by the clean record view (excludes bookkeeping)."""
        return self.model_dump(exclude={"batch_id", "promoted_at"})

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "booking_id": "BK1001",
                "hotel_id": "H042",
                "customer_id": "C7781",
                "hotel_city": "New York",
                "customer_name": "Ana Lima",
                "customer_email": None,
                "check_in_date": "2026-01-11",
                "check_out_date": "2026-01-14",
                "room_type": "Deluxe",
                "num_guests": 2,
                "total_amount": "252.49",
                "currency": "USD",
                "booking_status": "Confirmed",
            }
        }
