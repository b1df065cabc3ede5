"""Rules engine for medical bill triage."""

from .assembler import CONFIDENCE_BY_FLAG_TYPE, PRIORITY_BY_FLAG_TYPE
from .complexity import ComplexityProfile, classify_bill
from .engine import evaluate_bill
from .models import (
    BillContext,
    CandidateFlag,
    CleanItem,
    Confidence,
    Flag,
    FlagType,
    RuleContext,
    TriageNote,
    TriageOutcome,
    TriageResult,
    TriageSummary,
)
from .thresholds import TriageThresholds

__all__ = [
    "evaluate_bill",
    "classify_bill",
    "BillContext",
    "CandidateFlag",
    "CleanItem",
    "ComplexityProfile",
    "Confidence",
    "CONFIDENCE_BY_FLAG_TYPE",
    "Flag",
    "FlagType",
    "PRIORITY_BY_FLAG_TYPE",
    "RuleContext",
    "TriageNote",
    "TriageOutcome",
    "TriageResult",
    "TriageSummary",
    "TriageThresholds",
]
