"""Flag assembly: deduplication, ordering, confidence and savings.

Confidence and priority come from fixed tables keyed by flag type. Ordering
and totals are derived from the set of findings alone, so the order in which
checks ran never shows up in the result.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from billclarity.schemas import BillRecord, DocumentStatus, ExtractionConfidence
from billclarity.utils import format_savings, sum_amounts

from .complexity import ComplexityProfile
from .models import (
    BillContext,
    CandidateFlag,
    CleanItem,
    Confidence,
    Finding,
    Flag,
    FlagType,
    TriageNote,
    TriageOutcome,
    TriageResult,
    TriageSummary,
)

logger = logging.getLogger(__name__)

CONFIDENCE_BY_FLAG_TYPE: dict[FlagType, Confidence] = {
    FlagType.COVERAGE_DENIAL: Confidence.HIGH,
    FlagType.NSA_EMERGENCY_VIOLATION: Confidence.HIGH,
    FlagType.NSA_ANCILLARY_VIOLATION: Confidence.HIGH,
    FlagType.NSA_AIR_AMBULANCE: Confidence.HIGH,
    FlagType.DUPLICATE_CHARGE: Confidence.HIGH,
    FlagType.MATH_ERROR: Confidence.HIGH,
    FlagType.OOP_MAX_VIOLATION: Confidence.HIGH,
    FlagType.OOP_PROXIMITY: Confidence.MEDIUM,
    FlagType.POSSIBLE_WRONG_POS: Confidence.MEDIUM,
    FlagType.POSSIBLE_PROCESSING_ERROR: Confidence.MEDIUM,
}

# Lower sorts first; both OOP flags share a bucket
PRIORITY_BY_FLAG_TYPE: dict[FlagType, int] = {
    FlagType.COVERAGE_DENIAL: 1,
    FlagType.NSA_EMERGENCY_VIOLATION: 2,
    FlagType.NSA_ANCILLARY_VIOLATION: 3,
    FlagType.NSA_AIR_AMBULANCE: 4,
    FlagType.OOP_MAX_VIOLATION: 5,
    FlagType.OOP_PROXIMITY: 5,
    FlagType.DUPLICATE_CHARGE: 6,
    FlagType.MATH_ERROR: 7,
    FlagType.POSSIBLE_WRONG_POS: 8,
    FlagType.POSSIBLE_PROCESSING_ERROR: 9,
}

SHARED_DATE_POS_MIN_FLAGS = 3

# Flags about bill totals; they reference every line without faulting any one of them
BILL_LEVEL_FLAG_TYPES = frozenset(
    {FlagType.MATH_ERROR, FlagType.OOP_MAX_VIOLATION, FlagType.OOP_PROXIMITY}
)

BALANCE_BILLING_NOTE = (
    "Balance billing: if a provider bills you for the difference between their charge "
    "and what your plan allowed, ask whether the No Surprises Act or your network "
    "contract protects you before paying."
)
DISPUTE_PAYMENT_NOTE = (
    "While a charge is under dispute, you can ask the provider to hold the account so "
    "it is not sent to collections, and pay any undisputed portion on time."
)
CLEAN_LINE_REASON = "No issues found by the triage checks."


def _sort_key(candidate: CandidateFlag) -> tuple:
    return (
        PRIORITY_BY_FLAG_TYPE[candidate.flag_type],
        candidate.line_references,
        candidate.flag_type.value,
        candidate.group_key or "",
        candidate.description,
    )


def order_candidates(candidates: Iterable[CandidateFlag]) -> list[CandidateFlag]:
    """Sort by priority bucket, then line order of first reference, dropping repeats."""
    ordered: list[CandidateFlag] = []
    seen: set[tuple] = set()
    for candidate in sorted(candidates, key=_sort_key):
        identity = (candidate.flag_type, candidate.line_references, candidate.group_key)
        if identity in seen:
            continue
        seen.add(identity)
        ordered.append(candidate)
    return ordered


def build_flags(candidates: Iterable[CandidateFlag]) -> tuple[Flag, ...]:
    flags = []
    for index, candidate in enumerate(order_candidates(candidates), start=1):
        flags.append(
            Flag(
                flag_id=f"FLAG-{index:03d}",
                flag_type=candidate.flag_type,
                confidence=CONFIDENCE_BY_FLAG_TYPE[candidate.flag_type],
                line_references=candidate.line_references,
                potential_savings=candidate.potential_savings,
                description=candidate.description,
                metadata=dict(candidate.metadata),
            )
        )
    return tuple(flags)


def line_level_flags(flags: Iterable[Flag]) -> list[Flag]:
    """Flags that fault specific lines, i.e. everything but the bill-level flags."""
    return [flag for flag in flags if flag.flag_type not in BILL_LEVEL_FLAG_TYPES]


def savings_line_numbers(flags: Iterable[Flag]) -> frozenset[int]:
    """Distinct lines referenced by line-level flags."""
    return frozenset(line for flag in line_level_flags(flags) for line in flag.line_references)


def total_potential_savings(bill: BillRecord, flags: Iterable[Flag]) -> Decimal:
    """Sum patient responsibility from the bill over the lines flags point at.

    A line referenced by several flags counts once. Each flag's own savings
    string is never used.
    """
    lines = savings_line_numbers(flags)
    return sum_amounts(
        item.patient_responsibility for item in bill.line_items if item.line_number in lines
    )


def shared_line_notes(flags: tuple[Flag, ...]) -> list[str]:
    """One ordering note per set of lines that the same two or more line-level flags share."""
    by_line: dict[int, list[Flag]] = defaultdict(list)
    for flag in line_level_flags(flags):
        for line in flag.line_references:
            by_line[line].append(flag)

    lines_by_flag_set: dict[tuple[str, ...], list[int]] = defaultdict(list)
    for line in sorted(by_line):
        if len(by_line[line]) >= 2:
            lines_by_flag_set[tuple(f.flag_id for f in by_line[line])].append(line)

    notes = []
    for flag_ids, lines in sorted(lines_by_flag_set.items(), key=lambda kv: (kv[1][0], kv[0])):
        line_flags = by_line[lines[0]]
        listed = ", ".join(str(n) for n in lines)
        subject = f"Line {listed} shares" if len(lines) == 1 else f"Lines {listed} share"
        types = ", ".join(f.flag_type.value for f in line_flags)
        notes.append(
            f"{subject} {len(flag_ids)} flags ({types}). "
            f"Address them in the order listed, starting with {line_flags[0].flag_type.value}."
        )
    return notes


def shared_visit_notes(bill: BillRecord, flags: tuple[Flag, ...]) -> list[str]:
    """Recommend an insurer-first approach when one visit carries many line-level flags."""
    by_visit: dict[tuple, set[str]] = defaultdict(set)
    for flag in line_level_flags(flags):
        for line in flag.line_references:
            item = bill.line(line)
            if item is None or item.date_of_service is None or not item.place_of_service_code:
                continue
            by_visit[(item.date_of_service, item.place_of_service_code)].add(flag.flag_id)

    notes = []
    for dos, pos in sorted(by_visit):
        count = len(by_visit[(dos, pos)])
        if count < SHARED_DATE_POS_MIN_FLAGS:
            continue
        notes.append(
            f"{count} flags relate to the {dos.isoformat()} visit at place of service {pos}. "
            "Call your insurer first to review them together before contacting each provider."
        )
    return notes


def build_clean_items(
    bill: BillRecord,
    flags: tuple[Flag, ...],
    reported: Iterable[CleanItem],
    notes: Iterable[TriageNote] = (),
) -> tuple[CleanItem, ...]:
    """Lines reported clean by a check, plus every line nothing flagged or noted."""
    excluded = {line for flag in line_level_flags(flags) for line in flag.line_references}
    excluded.update(note.line_number for note in notes if note.line_number is not None)
    reasons: dict[int, str] = {}
    for item in sorted(reported, key=lambda c: (c.line_number, c.reason)):
        if item.line_number not in excluded:
            reasons.setdefault(item.line_number, item.reason)
    for line_item in bill.line_items:
        if line_item.line_number not in excluded:
            reasons.setdefault(line_item.line_number, CLEAN_LINE_REASON)
    return tuple(CleanItem(line_number=n, reason=reasons[n]) for n in sorted(reasons))


def build_notes(bill: BillRecord, flags: tuple[Flag, ...], reported: Iterable[TriageNote]) -> tuple[str, ...]:
    check_notes = sorted(
        {(note.line_number or 0, note.text) for note in reported},
    )
    notes = [text for _, text in check_notes]
    notes.extend(shared_line_notes(flags))
    notes.extend(shared_visit_notes(bill, flags))
    notes.append(BALANCE_BILLING_NOTE)
    notes.append(DISPUTE_PAYMENT_NOTE)
    return tuple(notes)


def determine_outcome(bill: BillRecord, flags: tuple[Flag, ...]) -> TriageOutcome:
    if bill.document_status == DocumentStatus.INFORMATIONAL_ONLY:
        return TriageOutcome.INFORMATIONAL_ONLY
    if not flags:
        return TriageOutcome.CLEAN
    return TriageOutcome.FLAGS_FOUND


def assemble_result(
    bill: BillRecord, findings: Iterable[Finding], profile: ComplexityProfile
) -> TriageResult:
    candidates: list[CandidateFlag] = []
    notes: list[TriageNote] = []
    clean: list[CleanItem] = []
    for finding in findings:
        if isinstance(finding, CandidateFlag):
            candidates.append(finding)
        elif isinstance(finding, TriageNote):
            notes.append(finding)
        elif isinstance(finding, CleanItem):
            clean.append(finding)
        else:
            raise TypeError(f"Unsupported finding type: {type(finding).__name__}")

    flags = build_flags(candidates)
    if len(flags) < len(candidates):
        logger.debug(f"Dropped {len(candidates) - len(flags)} duplicate candidate flags")

    savings_total = total_potential_savings(bill, flags)
    savings_text = format_savings(savings_total)

    high = sum(1 for f in flags if f.confidence == Confidence.HIGH)
    medium = sum(1 for f in flags if f.confidence == Confidence.MEDIUM)

    summary = TriageSummary(
        total_flags=len(flags),
        high_confidence_flags=high,
        medium_confidence_flags=medium,
        total_potential_savings=savings_text,
        total_potential_savings_amount=savings_total,
        recommend_human_review=high > 0 or profile.confidence_tier == ExtractionConfidence.LOW,
        result=determine_outcome(bill, flags),
    )

    return TriageResult(
        flags=flags,
        clean_items=build_clean_items(bill, flags, clean, notes),
        triage_notes=build_notes(bill, flags, notes),
        summary=summary,
        bill_context=BillContext(
            insurer_name=bill.insurer_name,
            patient_name=bill.patient_name,
            primary_date_of_service=bill.primary_date_of_service,
        ),
    )
