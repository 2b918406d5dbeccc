"""
Batch data source readers.
"""

from .csv_reader import CSVReader, raw_booking_schema
from .file_reader import SUPPORTED_FORMATS, FileReader, rows_from_dataframe

__all__ = [
    "CSVReader",
    "FileReader",
    "SUPPORTED_FORMATS",
    "raw_booking_schema",
    "rows_from_dataframe",
]
