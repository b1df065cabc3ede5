"""Duplicate charge detection rules."""

from __future__ import annotations

from collections import defaultdict

from billclarity.rules.keywords import CORRECTION_MARKERS, contains_any
from billclarity.rules.models import CandidateFlag, Finding, FlagType, RuleContext
from billclarity.schemas import LineItem
from billclarity.utils import format_savings


def is_correction(item: LineItem) -> bool:
    """Corrected or replacement claims legitimately repeat a prior line."""
    return contains_any(item.adjustment_reason_code, CORRECTION_MARKERS)


def duplicate_charge_rule(context: RuleContext) -> list[Finding]:
    """Detect the same service billed twice by the same provider on the same day.

    Lines match on CPT code, date of service, billing provider and modifier
    set. Each later line is paired with the earliest earlier line in its group
    where neither side is a correction; the flag points at the later line.
    """
    groups: dict[tuple, list[LineItem]] = defaultdict(list)
    for item in context.bill.line_items:
        if not (item.cpt_code and item.date_of_service and item.billing_provider):
            continue
        key = (
            item.cpt_code,
            item.date_of_service,
            item.billing_provider,
            item.cpt_modifiers,
        )
        groups[key].append(item)

    hits: list[Finding] = []
    for (code, dos, provider, _modifiers), items in groups.items():
        if len(items) < 2:
            continue
        ordered = sorted(items, key=lambda i: i.line_number)
        for position, later in enumerate(ordered[1:], start=1):
            if is_correction(later):
                continue
            original = next(
                (earlier for earlier in ordered[:position] if not is_correction(earlier)),
                None,
            )
            if original is None:
                continue
            hits.append(
                CandidateFlag(
                    flag_type=FlagType.DUPLICATE_CHARGE,
                    line_references=(later.line_number,),
                    potential_savings=format_savings(later.patient_responsibility),
                    description=(
                        f"{provider} billed {code} twice on {dos.isoformat()} "
                        f"(lines {original.line_number} and {later.line_number})."
                    ),
                    metadata={
                        "duplicate_of": original.line_number,
                        "cpt_code": code,
                        "billing_provider": provider,
                        "date_of_service": dos,
                    },
                )
            )
    return hits
