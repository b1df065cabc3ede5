"""No Surprises Act rules: emergency, ancillary and air ambulance billing.

Emergency and ancillary checks partition lines by specialty: an ancillary
specialty (anesthesia, radiology, pathology, laboratory) always goes to the
ancillary check, even at an emergency room place of service. Flags are
grouped per billing provider, and providers are never merged.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from billclarity.rules.complexity import is_out_of_network
from billclarity.rules.keywords import (
    EMERGENCY_DESCRIPTION,
    EMERGENCY_SPECIALTY,
    ancillary_group,
    mentions,
)
from billclarity.rules.models import CandidateFlag, Finding, FlagType, RuleContext
from billclarity.schemas import LineItem
from billclarity.utils import format_savings, sum_amounts

EMERGENCY_POS = "23"
ANCHOR_POS = ("21", "22", "23")
AIR_AMBULANCE_CODES = frozenset({"A0430", "A0431", "A0435", "A0436"})

UNKNOWN_PROVIDER = "Unknown provider"


def _provider_label(provider: str | None) -> str:
    return provider or UNKNOWN_PROVIDER


def _group_by(items: Iterable[LineItem], key) -> dict:
    groups: dict = defaultdict(list)
    for item in items:
        groups[key(item)].append(item)
    return groups


def _line_savings(items: list[LineItem]) -> str:
    return format_savings(sum_amounts(item.patient_responsibility for item in items))


def _references(items: list[LineItem]) -> tuple[int, ...]:
    return tuple(sorted(item.line_number for item in items))


def is_emergency_line(item: LineItem) -> bool:
    return mentions(item.billing_provider_specialty, EMERGENCY_SPECIALTY) or mentions(
        item.description, EMERGENCY_DESCRIPTION
    )


def nsa_emergency_rule(context: RuleContext) -> list[Finding]:
    """Out-of-network emergency care billed at an emergency room place of service."""
    eligible = [
        item
        for item in context.bill.line_items
        if item.place_of_service_code == EMERGENCY_POS
        and is_out_of_network(item)
        and ancillary_group(item.billing_provider_specialty) is None
        and is_emergency_line(item)
    ]

    hits: list[Finding] = []
    for provider, items in _group_by(eligible, lambda i: i.billing_provider).items():
        label = _provider_label(provider)
        hits.append(
            CandidateFlag(
                flag_type=FlagType.NSA_EMERGENCY_VIOLATION,
                line_references=_references(items),
                potential_savings=_line_savings(items),
                description=(
                    f"{label} billed emergency care as out-of-network; emergency care "
                    "is protected from out-of-network charges under the No Surprises Act."
                ),
                group_key=provider,
                metadata={"billing_provider": label},
            )
        )
    return hits


def has_in_network_anchor(items: Iterable[LineItem]) -> bool:
    """An in-network facility line at an inpatient, outpatient or ER setting."""
    return any(
        item.in_network is True and item.place_of_service_code in ANCHOR_POS
        for item in items
    )


def nsa_ancillary_rule(context: RuleContext) -> list[Finding]:
    """Out-of-network ancillary providers at an in-network facility visit."""
    items = context.bill.line_items
    if not has_in_network_anchor(items):
        return []

    eligible = [
        item
        for item in items
        if is_out_of_network(item) and ancillary_group(item.billing_provider_specialty)
    ]
    groups = _group_by(
        eligible,
        lambda i: (i.billing_provider, ancillary_group(i.billing_provider_specialty)),
    )

    hits: list[Finding] = []
    for (provider, group), provider_items in groups.items():
        label = _provider_label(provider)
        hits.append(
            CandidateFlag(
                flag_type=FlagType.NSA_ANCILLARY_VIOLATION,
                line_references=_references(provider_items),
                potential_savings=_line_savings(provider_items),
                description=(
                    f"{label} ({group}) billed out-of-network for care at an in-network "
                    "facility, which the No Surprises Act generally does not allow."
                ),
                group_key=f"{provider or ''}|{group}",
                metadata={"billing_provider": label, "specialty_group": group},
            )
        )
    return hits


def nsa_air_ambulance_rule(context: RuleContext) -> list[Finding]:
    """Out-of-network air ambulance transport; ground ambulance codes never match."""
    eligible = [
        item
        for item in context.bill.line_items
        if item.cpt_code in AIR_AMBULANCE_CODES and is_out_of_network(item)
    ]

    hits: list[Finding] = []
    for provider, items in _group_by(eligible, lambda i: i.billing_provider).items():
        label = _provider_label(provider)
        codes = ", ".join(sorted({item.cpt_code for item in items}))
        hits.append(
            CandidateFlag(
                flag_type=FlagType.NSA_AIR_AMBULANCE,
                line_references=_references(items),
                potential_savings=_line_savings(items),
                description=(
                    f"{label} billed out-of-network air ambulance transport ({codes}); "
                    "the No Surprises Act limits you to in-network cost sharing."
                ),
                group_key=provider,
                metadata={"billing_provider": label, "cpt_codes": codes},
            )
        )
    return hits
