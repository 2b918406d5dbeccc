"""
Aggregation of curated bookings into daily and city views.
"""

from .aggregator import (
    Aggregator,
    FullRecompute,
    IncrementalRecompute,
    RecomputeScope,
    city_totals,
    daily_totals,
)

__all__ = [
    "Aggregator",
    "FullRecompute",
    "IncrementalRecompute",
    "RecomputeScope",
    "daily_totals",
    "city_totals",
]
