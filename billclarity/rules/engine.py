"""Core triage evaluation engine."""
from __future__ import annotations

import logging
from typing import Any

from billclarity.schemas import BillRecord, parse_bill_record

from . import ruleset
from .assembler import assemble_result
from .complexity import classify_bill
from .models import Finding, RuleContext, TriageResult
from .registry import CheckRegistry, default_registry
from .thresholds import TriageThresholds

logger = logging.getLogger(__name__)


def evaluate_bill(
    bill: BillRecord | dict[str, Any],
    thresholds: TriageThresholds | None = None,
    registry: CheckRegistry | None = None,
) -> TriageResult:
    """Run every triage check against one bill and assemble the result.

    Accepts either a validated ``BillRecord`` or a raw extraction payload;
    a malformed payload raises ``MalformedBillError``.
    """

    bill = parse_bill_record(bill)
    thresholds = thresholds or TriageThresholds()

    if registry is None:
        # ensure default registry is populated
        ruleset.register_default_checks(default_registry)
        registry = default_registry

    profile = classify_bill(bill, simple_max_lines=thresholds.simple_bill_max_lines)
    context = RuleContext(bill=bill, profile=profile, thresholds=thresholds)

    findings: list[Finding] = []
    for check in registry.active_checks():
        check_findings = check(context)
        logger.debug(f"{check.__name__}: {len(check_findings)} findings")
        findings.extend(check_findings)

    result = assemble_result(bill, findings, profile)
    logger.info(
        f"Triage complete: {result.summary.total_flags} flags, "
        f"result={result.summary.result.value}, "
        f"savings={result.summary.total_potential_savings}"
    )
    return result
