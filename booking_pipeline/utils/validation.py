"""
Input validation utilities for CLI and reporting arguments.

Provides reusable validation functions for identifiers, limits, date ranges
and file paths so that operator input is checked before it reaches a store.
"""

import re
from datetime import date


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_record_id(record_id: str, field_name: str = "booking_id") -> str:
    """
    Validate a booking identifier.

    Identifiers must be non-empty strings containing only alphanumeric
    characters, hyphens, underscores and dots.

    Args:
        record_id: The identifier to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated identifier (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_record_id("BK-1001")
        'BK-1001'
        >>> validate_record_id("invalid id!")  # doctest: +SKIP
        ValidationError: booking_id contains invalid characters
    """
    if not record_id or not isinstance(record_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    record_id = record_id.strip()

    if not record_id:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if not re.match(r'^[a-zA-Z0-9_\-\.]+$', record_id):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Only alphanumeric, hyphens, underscores, and dots are allowed."
        )

    if len(record_id) > 255:
        raise ValidationError(f"{field_name} exceeds maximum length of 255 characters")

    return record_id


def validate_batch_id(batch_id: str, field_name: str = "batch_id") -> str:
    """Batch IDs follow the same rules as record identifiers."""
    return validate_record_id(batch_id, field_name)


def validate_limit(limit: int, field_name: str = "limit", max_limit: int = 10000) -> int:
    """
    Validate a limit parameter for queries (top-N, listing sizes).

    Examples:
        >>> validate_limit(10)
        10
        >>> validate_limit(0)  # doctest: +SKIP
        ValidationError: limit must be a positive integer
    """
    if not isinstance(limit, int):
        raise ValidationError(f"{field_name} must be an integer, got {type(limit).__name__}")

    if limit <= 0:
        raise ValidationError(f"{field_name} must be a positive integer, got {limit}")

    if limit > max_limit:
        raise ValidationError(f"{field_name} exceeds maximum of {max_limit}")

    return limit


def validate_date_range(start: date | None, end: date | None) -> tuple[date | None, date | None]:
    """
    Validate an inclusive date range where either bound may be open.

    Raises:
        ValidationError: If both bounds are given and start is after end
    """
    if start is not None and end is not None and start > end:
        raise ValidationError(f"start date {start} is after end date {end}")
    return start, end


def validate_file_path(file_path: str, field_name: str = "file_path", allow_wildcards: bool = False) -> str:
    """
    Validate an input file path.

    Prevents path traversal and ensures the path is reasonable.

    Examples:
        >>> validate_file_path("/data/bookings.csv")
        '/data/bookings.csv'
        >>> validate_file_path("/data/*.csv", allow_wildcards=True)
        '/data/*.csv'
    """
    if not file_path or not isinstance(file_path, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    file_path = file_path.strip()

    if not file_path:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if ".." in file_path:
        raise ValidationError(f"{field_name} contains path traversal characters (..)")

    if "\x00" in file_path:
        raise ValidationError(f"{field_name} contains null bytes")

    if not allow_wildcards and ("*" in file_path or "?" in file_path):
        raise ValidationError(
            f"{field_name} contains wildcards (* or ?). "
            "If this is intentional, set allow_wildcards=True."
        )

    if len(file_path) > 4096:
        raise ValidationError(f"{field_name} exceeds maximum length of 4096 characters")

    return file_path
