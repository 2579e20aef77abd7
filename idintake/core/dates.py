"""
Utilities for birth-date parsing and age calculation.

Birth dates come straight out of OCR text in whatever shape the card prints,
so parsing is best-effort and returns None instead of raising.
"""

from datetime import date, datetime
from typing import Any, Optional

# Numeric NN/NN/YYYY is read month-first before day-first, matching how a
# generic date parser reads it.
BIRTH_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
)


def parse_birth_date(date_value: Any) -> Optional[date]:
    """
    Parse a birth date string printed on an ID card.

    Args:
      date_value: Raw date value; expected to be a string.

    Returns:
      A ``date`` if any known format matches, otherwise None.

    Example:
        >>> parse_birth_date("1990-06-15")
        datetime.date(1990, 6, 15)
        >>> parse_birth_date("JUNE 15, 1990")
        datetime.date(1990, 6, 15)
        >>> parse_birth_date("15/06/1990")
        datetime.date(1990, 6, 15)
    """
    if not isinstance(date_value, str):
        return None
    cleaned = " ".join(date_value.split())
    if not cleaned:
        return None
    for fmt in BIRTH_DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def calculate_age(birth_date: date, today: Optional[date] = None) -> int:
    """Whole years elapsed since ``birth_date`` as of ``today``."""
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age
