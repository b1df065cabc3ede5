"""Member responsibility reconciliation."""

from __future__ import annotations

from billclarity.rules.models import CandidateFlag, Finding, FlagType, RuleContext, TriageNote
from billclarity.utils import format_currency, format_savings, sum_amounts

MATH_RECONCILED_NOTE = (
    "Math check: patient responsibility total matches line item sum, no discrepancy found."
)


def math_error_rule(context: RuleContext) -> list[Finding]:
    """Compare the stated member responsibility with the sum of the lines."""
    bill = context.bill
    stated = bill.summary.member_responsibility
    items = bill.line_items

    if stated is None or not items:
        return []

    unknown = [item.line_number for item in items if item.patient_responsibility is None]
    if unknown:
        listed = ", ".join(str(n) for n in unknown)
        return [
            TriageNote(
                text=(
                    "Math check skipped: patient responsibility is missing on "
                    f"line(s) {listed}, so the total cannot be reconciled."
                )
            )
        ]

    line_total = sum_amounts(item.patient_responsibility for item in items)
    difference = stated - line_total

    if not context.thresholds.exceeds_math_tolerance(difference):
        return [TriageNote(text=MATH_RECONCILED_NOTE)]

    return [
        CandidateFlag(
            flag_type=FlagType.MATH_ERROR,
            line_references=tuple(sorted(item.line_number for item in items)),
            potential_savings=format_savings(abs(difference)),
            description=(
                f"Your bill says you owe {format_currency(stated)}, but the line items "
                f"add up to {format_currency(line_total)}, a difference of "
                f"{format_currency(abs(difference))}."
            ),
            metadata={
                "member_responsibility": stated,
                "line_item_total": line_total,
                "difference": difference,
            },
        )
    ]
