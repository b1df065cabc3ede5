"""Bill complexity classification.

The profile feeds the routing heuristic and is reused by the prior-auth and
network checks.
"""
from __future__ import annotations

from dataclasses import dataclass

from billclarity.schemas import BillRecord, ExtractionConfidence, LineItem

PRIOR_AUTH_MARKERS = ("co-197", "prior-auth", "prior auth")

SIMPLE_BILL_MAX_LINES = 4


@dataclass(frozen=True)
class ComplexityProfile:
    confidence_tier: ExtractionConfidence
    is_simple: bool
    has_out_of_network: bool
    has_prior_auth_denial: bool

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence_tier == ExtractionConfidence.HIGH


def has_prior_auth_marker(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in PRIOR_AUTH_MARKERS)


def is_out_of_network(item: LineItem) -> bool:
    """Only an explicit ``False`` counts; unknown network status is not evidence."""
    return item.in_network is False


def classify_bill(bill: BillRecord, simple_max_lines: int = SIMPLE_BILL_MAX_LINES) -> ComplexityProfile:
    items = bill.line_items
    return ComplexityProfile(
        confidence_tier=bill.extraction_confidence,
        is_simple=len(items) <= simple_max_lines,
        has_out_of_network=any(is_out_of_network(item) for item in items),
        has_prior_auth_denial=any(
            has_prior_auth_marker(item.adjustment_reason_code) for item in items
        ),
    )
