"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from billclarity.rules import RuleContext, classify_bill
from billclarity.schemas import parse_bill_record

DATE_OF_SERVICE = "2025-03-10"


def build_line(line_number: int = 1, **overrides: Any) -> dict[str, Any]:
    """An in-network office visit line that triggers no check on its own."""
    item = {
        "line_number": line_number,
        "cpt_code": "99213",
        "cpt_modifiers": [],
        "description": "Office visit, established patient",
        "date_of_service": DATE_OF_SERVICE,
        "place_of_service_code": "11",
        "billing_provider": "Riverside Family Medicine",
        "billing_provider_specialty": "Family Medicine",
        "in_network": True,
        "amount_billed": "250.00",
        "amount_allowed": "120.00",
        "plan_paid": "90.00",
        "patient_responsibility": "30.00",
        "adjustment_reason_code": None,
        "adjustment_reason_description": None,
        "zero_payment_flag": False,
    }
    item.update(overrides)
    return item


def build_bill(lines: list[dict[str, Any]], **overrides: Any) -> dict[str, Any]:
    bill = {
        "document_type": "EOB",
        "document_status": "bill",
        "patient_name": "Jane Doe",
        "insurer_name": "Acme Health",
        "date_range": {"from": DATE_OF_SERVICE, "to": DATE_OF_SERVICE},
        "plan_type": "PPO",
        "summary": {},
        "line_items": lines,
        "extraction_notes": [],
        "extraction_confidence": "high",
    }
    bill.update(overrides)
    return bill


@pytest.fixture
def make_line() -> Callable[..., dict[str, Any]]:
    return build_line


@pytest.fixture
def make_bill() -> Callable[..., dict[str, Any]]:
    return build_bill


@pytest.fixture
def make_context() -> Callable[[dict[str, Any]], RuleContext]:
    """Build a RuleContext from a raw bill payload."""

    def _make(payload: dict[str, Any]) -> RuleContext:
        bill = parse_bill_record(payload)
        return RuleContext(bill=bill, profile=classify_bill(bill))

    return _make


@pytest.fixture
def clean_bill() -> dict[str, Any]:
    """Two in-network office lines whose totals reconcile."""
    return build_bill(
        [build_line(1), build_line(2, cpt_code="36415", description="Routine venipuncture")],
        summary={"member_responsibility": "60.00"},
    )


@pytest.fixture
def emergency_bill() -> dict[str, Any]:
    """An ER visit that trips most of the checks at once.

    Lines:
    1. out-of-network ER physician (NSA emergency)
    2. in-network ER facility fee (anchor)
    3. out-of-network radiologist (NSA ancillary)
    4-5. the same lab panel billed twice (duplicate on line 5)
    6. observation care denied for missing prior auth (coverage denial)

    The stated member responsibility does not match the lines (math error)
    and accumulated spending is within 10% of the OOP max (proximity).
    """
    er = {"date_of_service": DATE_OF_SERVICE, "place_of_service_code": "23"}
    lines = [
        build_line(
            1,
            cpt_code="99285",
            description="Emergency department visit, high severity",
            billing_provider="Metro ER Physicians",
            billing_provider_specialty="Emergency Medicine",
            in_network=False,
            patient_responsibility="850.00",
            **er,
        ),
        build_line(
            2,
            cpt_code="0450",
            description="Emergency room facility fee",
            billing_provider="General Hospital",
            billing_provider_specialty="Hospital",
            patient_responsibility="200.00",
            **er,
        ),
        build_line(
            3,
            cpt_code="70450",
            description="CT head without contrast",
            billing_provider="Summit Radiology Partners",
            billing_provider_specialty="Radiology",
            in_network=False,
            patient_responsibility="400.00",
            **er,
        ),
        build_line(
            4,
            cpt_code="80053",
            description="Comprehensive metabolic panel",
            billing_provider="QuickLab",
            billing_provider_specialty="Clinical Laboratory",
            patient_responsibility="25.00",
            **er,
        ),
        build_line(
            5,
            cpt_code="80053",
            description="Comprehensive metabolic panel",
            billing_provider="QuickLab",
            billing_provider_specialty="Clinical Laboratory",
            patient_responsibility="25.00",
            **er,
        ),
        build_line(
            6,
            cpt_code="G0378",
            description="Hospital observation care",
            billing_provider="General Hospital",
            billing_provider_specialty="Hospital",
            plan_paid="0.00",
            patient_responsibility="300.00",
            adjustment_reason_code="CO-197",
            adjustment_reason_description="Precertification/authorization absent",
            zero_payment_flag=True,
            **er,
        ),
    ]
    return build_bill(
        lines,
        summary={
            "member_responsibility": "2500.00",
            "oop_max": "6000.00",
            "oop_accumulated": "5500.00",
        },
    )
