"""
Parsing helpers shared by the validation ruleset and the normalizer.

Every function here is pure and total: unparseable input yields None (or
False) rather than raising, so the ruleset can classify any raw row.
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

# Accepted check-in/check-out layouts, tried in order (first match wins)
DEFAULT_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
)

# Amounts are stored as NUMERIC(12, 2)
AMOUNT_QUANTUM = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")

# Counts are stored as INTEGER
MIN_INT = -(2**31)
MAX_INT = 2**31 - 1

_WORD = re.compile(r"\S+")
_AMOUNT_NOISE = re.compile(r"[\s,$]")


def blank_to_none(value: str | None) -> str | None:
    """Return None for missing or whitespace-only text, else the value unchanged."""
    if value is None or value.strip() == "":
        return None
    return value


def parse_date(value: str | None, formats: Iterable[str] = DEFAULT_DATE_FORMATS) -> date | None:
    """
    Parse a calendar date from any accepted source layout.

    Args:
        value: Raw date text
        formats: strptime layouts, tried in order

    Returns:
        The parsed date, or None when no layout matches

    Examples:
        >>> parse_date("1/19/2026")
        datetime.date(2026, 1, 19)
        >>> parse_date("2026-01-11")
        datetime.date(2026, 1, 11)
        >>> parse_date("yesterday") is None
        True
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: str | None) -> Decimal | None:
    """
    Parse a monetary amount, keeping its sign, rounded half-up to cents.

    Thousands separators, "$" and surrounding whitespace are ignored.
    Non-finite values (NaN, Infinity) and magnitudes above MAX_AMOUNT are
    treated as unparseable.

    Examples:
        >>> parse_amount("-252.49")
        Decimal('-252.49')
        >>> parse_amount("1,200")
        Decimal('1200.00')
        >>> parse_amount("19.995")
        Decimal('20.00')
        >>> parse_amount("1e28") is None
        True
        >>> parse_amount("n/a") is None
        True
    """
    if value is None:
        return None
    text = _AMOUNT_NOISE.sub("", value)
    if not text:
        return None
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    if abs(amount) > MAX_AMOUNT:
        return None
    return amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def parse_int(value: str | None) -> int | None:
    """
    Parse an integer count; "2.0" is accepted, "2.5" and junk are not.

    Values outside the 32-bit signed range are treated as unparseable.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    try:
        number = int(text)
    except ValueError:
        amount = parse_amount(text)
        if amount is None or amount != amount.to_integral_value():
            return None
        number = int(amount)
    if not MIN_INT <= number <= MAX_INT:
        return None
    return number


def matches_email_pattern(value: str | None) -> bool:
    """
    Match the SQL pattern '%@%.%': an "@" followed, anywhere later, by a ".".

    Deliberately loose. "a@b.c", "@." and " x@y.z " all match; "invalid-email"
    and "user@localhost" do not.
    """
    if not value:
        return False
    at = value.find("@")
    if at < 0:
        return False
    return "." in value[at + 1:]


def title_case(value: str | None) -> str | None:
    """
    Trim, then capitalize the first letter of every whitespace-delimited word
    and lowercase the rest. Internal whitespace is preserved.

    Examples:
        >>> title_case("  nEW   york ")
        'New   York'
        >>> title_case("   ") is None
        True
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    return _WORD.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)
