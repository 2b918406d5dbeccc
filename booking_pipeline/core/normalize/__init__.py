"""
Normalization of eligible raw records into curated records.
"""

from .normalizer import Normalizer

__all__ = ["Normalizer"]
