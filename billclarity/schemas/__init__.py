"""Shared Pydantic schemas for the BillClarity backend.

This module centralizes the bill record models so the rules engine and the
HTTP routes validate input the same way.
"""

from .bill import (
    BillRecord,
    BillSummary,
    DateRange,
    DocumentStatus,
    DocumentType,
    ExtractionConfidence,
    LineItem,
    MalformedBillError,
    PlanType,
    parse_bill_record,
)

__all__ = [
    "BillRecord",
    "BillSummary",
    "DateRange",
    "DocumentStatus",
    "DocumentType",
    "ExtractionConfidence",
    "LineItem",
    "MalformedBillError",
    "PlanType",
    "parse_bill_record",
]
