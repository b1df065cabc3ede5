"""Out-of-pocket maximum rules."""

from __future__ import annotations

from decimal import Decimal

from billclarity.rules.models import CandidateFlag, Finding, FlagType, RuleContext
from billclarity.utils import format_currency, format_dollars

OOP_SAVINGS_TEXT = "Informational — no immediate savings, but important for future claims"


def oop_proximity_rule(context: RuleContext) -> list[Finding]:
    """Raise at most one flag when accumulated spending nears or reaches the OOP max."""
    bill = context.bill
    summary = bill.summary
    oop_max = summary.oop_max
    accumulated = summary.oop_accumulated

    if oop_max is None or accumulated is None or oop_max <= 0:
        return []
    if not bill.line_items:
        return []

    references = tuple(sorted(item.line_number for item in bill.line_items))
    member_owes = summary.member_responsibility
    metadata = {"oop_max": oop_max, "oop_accumulated": accumulated}

    if accumulated >= oop_max and member_owes is not None and member_owes > 0:
        return [
            CandidateFlag(
                flag_type=FlagType.OOP_MAX_VIOLATION,
                line_references=references,
                potential_savings=OOP_SAVINGS_TEXT,
                description=(
                    f"You've reached your {format_dollars(oop_max)} out-of-pocket maximum, "
                    f"but this bill still asks you to pay {format_currency(member_owes)}."
                ),
                metadata={**metadata, "member_responsibility": member_owes},
            )
        ]

    if accumulated >= context.thresholds.oop_proximity_floor(oop_max):
        remaining = max(oop_max - accumulated, Decimal("0"))
        return [
            CandidateFlag(
                flag_type=FlagType.OOP_PROXIMITY,
                line_references=references,
                potential_savings=OOP_SAVINGS_TEXT,
                description=(
                    f"You're {format_dollars(remaining)} away from your "
                    f"{format_dollars(oop_max)} out-of-pocket maximum — "
                    "future care may be fully covered."
                ),
                metadata={**metadata, "remaining": remaining},
            )
        ]

    return []
