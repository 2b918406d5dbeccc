"""
Core data models for the booking pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .aggregate_row import AggregateDrift, CityAggregate, DailyAggregate
from .curated_record import CuratedRecord
from .load_marker import LoadMarker
from .promotion_result import BatchPromotion, PromotionResult
from .raw_record import RAW_FIELDS, RawRecord
from .run_summary import ExitStatus, RunSummary
from .validation_outcome import HARD_VIOLATIONS, Severity, ValidationOutcome, ViolationKind

__all__ = [
    "RAW_FIELDS",
    "RawRecord",
    "ViolationKind",
    "Severity",
    "HARD_VIOLATIONS",
    "ValidationOutcome",
    "CuratedRecord",
    "LoadMarker",
    "PromotionResult",
    "BatchPromotion",
    "DailyAggregate",
    "CityAggregate",
    "AggregateDrift",
    "RunSummary",
    "ExitStatus",
]
