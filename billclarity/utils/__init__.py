"""Shared utility functions for the BillClarity backend."""

from .currency import (
    ZERO_SAVINGS,
    format_currency,
    format_dollars,
    format_savings,
    sum_amounts,
    to_cents,
)
from .date_parser import parse_flexible_date

__all__ = [
    "ZERO_SAVINGS",
    "format_currency",
    "format_dollars",
    "format_savings",
    "parse_flexible_date",
    "sum_amounts",
    "to_cents",
]
