"""
Batch pipeline: promotion, orchestration and file readers.
"""

from .pipeline import BookingPipeline
from .promotion import PromotionController

__all__ = [
    "BookingPipeline",
    "PromotionController",
]
