"""Date parsing utilities for extracted bill records."""

from __future__ import annotations

from datetime import date, datetime

# Reasonable date bounds for medical bills
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100


def parse_flexible_date(value: str | date | None) -> date | None:
    """Parse a date of service from the formats extraction commonly emits.

    Supports the following formats:
    - ISO 8601: YYYY-MM-DD (e.g., 2024-01-15)
    - US format: MM/DD/YYYY (e.g., 01/15/2024)
    - Compact: YYYYMMDD (e.g., 20240115)

    Values that are not real calendar dates, or whose year falls outside
    1900-2100, are treated as unknown rather than rejected.

    Args:
        value: Date string, an existing date, or None

    Returns:
        Parsed date, or None if parsing fails or input is None

    Examples:
        >>> parse_flexible_date("2024-01-15")
        datetime.date(2024, 1, 15)
        >>> parse_flexible_date("01/15/2024")
        datetime.date(2024, 1, 15)
        >>> parse_flexible_date("2024-02-30") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    formats = [
        "%Y-%m-%d",  # ISO 8601
        "%m/%d/%Y",  # US format
        "%Y%m%d",  # Compact
    ]

    text = value.strip()
    for fmt in formats:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            # strptime raises ValueError for invalid dates like Feb 30
            continue
        if parsed.year < MIN_VALID_YEAR or parsed.year > MAX_VALID_YEAR:
            continue
        return parsed.date()

    return None
