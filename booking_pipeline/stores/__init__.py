"""
Store interfaces and in-memory implementations.
"""

from .base import (
    AggregateStore,
    CuratedStore,
    IngestResult,
    LoadTracker,
    MarkerClaim,
    PromotionDecision,
    RawStore,
    build_payload,
    row_identifier,
)
from .memory import (
    MemoryAggregateStore,
    MemoryCuratedStore,
    MemoryLoadTracker,
    MemoryRawStore,
    MemoryStores,
)

__all__ = [
    "RawStore",
    "CuratedStore",
    "LoadTracker",
    "AggregateStore",
    "IngestResult",
    "PromotionDecision",
    "MarkerClaim",
    "build_payload",
    "row_identifier",
    "MemoryRawStore",
    "MemoryCuratedStore",
    "MemoryLoadTracker",
    "MemoryAggregateStore",
    "MemoryStores",
]
