"""Place of Service (POS) rules."""

from __future__ import annotations

from billclarity.rules.keywords import (
    IMAGING_DESCRIPTION,
    IMAGING_SPECIALTY,
    OFFICE_VISIT_DESCRIPTION,
    WRONG_POS_EXEMPT_GROUPS,
    ancillary_group,
    mentions,
)
from billclarity.rules.models import CandidateFlag, Finding, FlagType, RuleContext
from billclarity.schemas import LineItem
from billclarity.utils import format_savings

from .zero_payment_rules import coverage_denial_lines

HOSPITAL_POS = ("21", "22")


def is_imaging_line(item: LineItem) -> bool:
    return mentions(item.description, IMAGING_DESCRIPTION) or mentions(
        item.billing_provider_specialty, IMAGING_SPECIALTY
    )


def wrong_pos_rule(context: RuleContext) -> list[Finding]:
    """Office visits billed with a hospital place of service.

    Hospital POS codes carry facility fees an office visit would not. Lines
    that already carry a coverage denial, and imaging lines, are skipped.
    """
    denied = coverage_denial_lines(context.bill)
    hits: list[Finding] = []

    for item in context.bill.line_items:
        pos = item.place_of_service_code
        if pos not in HOSPITAL_POS:
            continue
        if not mentions(item.description, OFFICE_VISIT_DESCRIPTION):
            continue
        if ancillary_group(item.billing_provider_specialty) in WRONG_POS_EXEMPT_GROUPS:
            continue
        if item.line_number in denied or is_imaging_line(item):
            continue

        setting = "inpatient hospital" if pos == "21" else "outpatient hospital"
        hits.append(
            CandidateFlag(
                flag_type=FlagType.POSSIBLE_WRONG_POS,
                line_references=(item.line_number,),
                potential_savings=format_savings(item.patient_responsibility),
                description=(
                    f"Line {item.line_number} looks like an office visit but was billed "
                    f"as {setting} care (place of service {pos}), which can add facility fees."
                ),
                metadata={"place_of_service_code": pos},
            )
        )
    return hits
