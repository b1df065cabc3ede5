"""Zero-payment line rules.

A zero-payment line is one the plan allowed but paid nothing on. The
adjustment reason decides what it means:

- prior authorization / CO-197: a coverage denial that can be appealed
- deductible or copay: expected cost sharing, the line is clean
- not covered: noted for the patient, not flagged
- anything else: a possible processing error
"""

from __future__ import annotations

from datetime import timedelta

from billclarity.rules.complexity import has_prior_auth_marker
from billclarity.rules.keywords import COST_SHARE_MARKERS, NOT_COVERED_MARKERS, contains_any
from billclarity.rules.models import (
    CandidateFlag,
    CleanItem,
    Finding,
    FlagType,
    RuleContext,
    TriageNote,
)
from billclarity.schemas import BillRecord, LineItem
from billclarity.utils import format_savings


def is_coverage_denial(item: LineItem) -> bool:
    return item.zero_payment_flag and has_prior_auth_marker(item.adjustment_text())


def coverage_denial_lines(bill: BillRecord) -> frozenset[int]:
    """Line numbers the zero-payment rule raises a coverage denial on."""
    return frozenset(item.line_number for item in bill.line_items if is_coverage_denial(item))


def _line_label(item: LineItem) -> str:
    return item.description or item.cpt_code or f"line {item.line_number}"


def zero_payment_rule(context: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    appeal_window = timedelta(days=context.thresholds.appeal_window_days)

    for item in context.bill.line_items:
        if not item.zero_payment_flag:
            continue

        adjustment = item.adjustment_text()
        label = _line_label(item)

        if is_coverage_denial(item):
            deadline = item.date_of_service + appeal_window if item.date_of_service else None
            findings.append(
                CandidateFlag(
                    flag_type=FlagType.COVERAGE_DENIAL,
                    line_references=(item.line_number,),
                    potential_savings=format_savings(item.patient_responsibility),
                    description=(
                        f"Your plan paid $0 for {label} because prior authorization was "
                        "not on file; denials like this can be appealed."
                    ),
                    metadata={
                        "adjustment_reason_code": item.adjustment_reason_code,
                        "denial_date": item.date_of_service,
                        "appeal_deadline": deadline,
                    },
                )
            )
        elif contains_any(adjustment, COST_SHARE_MARKERS):
            findings.append(
                CleanItem(
                    line_number=item.line_number,
                    reason="Plan paid $0 because the amount applied to your deductible or copay.",
                )
            )
        elif contains_any(adjustment, NOT_COVERED_MARKERS):
            findings.append(
                TriageNote(
                    text=(
                        f"Line {item.line_number} ({label}) was marked not covered by your plan. "
                        "Check your plan documents to confirm this service is excluded."
                    ),
                    line_number=item.line_number,
                )
            )
        else:
            findings.append(
                CandidateFlag(
                    flag_type=FlagType.POSSIBLE_PROCESSING_ERROR,
                    line_references=(item.line_number,),
                    potential_savings=format_savings(item.patient_responsibility),
                    description=(
                        f"Your plan allowed {label} but paid $0 without a clear reason; "
                        "it may have been processed incorrectly."
                    ),
                    metadata={"adjustment_reason_code": item.adjustment_reason_code},
                )
            )

    return findings
