"""
Aggregate row models for the gold layer views.
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class DailyAggregate(BaseModel):
    """
    Bookings grouped by check-in date.

    Attributes:
        date: Check-in date (grouping key)
        total_bookings: Number of curated records with this check-in date
        total_revenue: Sum of their non-null amounts
    """

    date: datetime.date
    total_bookings: int = Field(0, ge=0)
    total_revenue: Decimal = Decimal("0")

    class Config:
        frozen = True


class CityAggregate(BaseModel):
    """
    Revenue grouped by normalized hotel city.

    Attributes:
        city: Normalized city (grouping key, never blank)
        total_revenue: Sum of non-null amounts booked in the city
    """

    city: str = Field(..., min_length=1)
    total_revenue: Decimal = Decimal("0")

    class Config:
        frozen = True


class AggregateDrift(BaseModel):
    """Difference between stored aggregates and a fresh full computation."""

    daily_keys: list[datetime.date] = Field(default_factory=list)
    city_keys: list[str] = Field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not self.daily_keys and not self.city_keys
