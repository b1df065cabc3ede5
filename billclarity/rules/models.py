"""Data models for the triage rules engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from billclarity.schemas import BillRecord

from .complexity import ComplexityProfile
from .thresholds import TriageThresholds


class FlagType(str, Enum):
    """Billing issues the engine can raise."""

    COVERAGE_DENIAL = "coverage_denial"
    NSA_EMERGENCY_VIOLATION = "nsa_emergency_violation"
    NSA_ANCILLARY_VIOLATION = "nsa_ancillary_violation"
    NSA_AIR_AMBULANCE = "nsa_air_ambulance"
    OOP_MAX_VIOLATION = "oop_max_violation"
    OOP_PROXIMITY = "oop_proximity"
    DUPLICATE_CHARGE = "duplicate_charge"
    MATH_ERROR = "math_error"
    POSSIBLE_WRONG_POS = "possible_wrong_pos"
    POSSIBLE_PROCESSING_ERROR = "possible_processing_error"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class TriageOutcome(str, Enum):
    FLAGS_FOUND = "flags_found"
    CLEAN = "clean"
    INFORMATIONAL_ONLY = "informational_only"


@dataclass(frozen=True)
class CandidateFlag:
    """A possible issue raised by one check, before assembly."""

    flag_type: FlagType
    line_references: tuple[int, ...]
    potential_savings: str
    description: str
    group_key: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TriageNote:
    """Advisory text that is not a flag."""

    text: str
    line_number: int | None = None


@dataclass(frozen=True)
class CleanItem:
    """A line that was checked and found unproblematic."""

    line_number: int
    reason: str


Finding = Union[CandidateFlag, TriageNote, CleanItem]


@dataclass(frozen=True)
class Flag:
    """An assembled flag, as returned to callers."""

    flag_id: str
    flag_type: FlagType
    confidence: Confidence
    line_references: tuple[int, ...]
    potential_savings: str
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "flag_id": self.flag_id,
            "flag_type": self.flag_type.value,
            "confidence": self.confidence.value,
            "line_references": list(self.line_references),
            "potential_savings": self.potential_savings,
            "description": self.description,
            "metadata": _jsonable(self.metadata),
        }


@dataclass(frozen=True)
class BillContext:
    """Bill-level details the guidance generator needs alongside a flag."""

    insurer_name: str | None = None
    patient_name: str | None = None
    primary_date_of_service: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "insurer_name": self.insurer_name,
            "patient_name": self.patient_name,
            "primary_date_of_service": _jsonable(self.primary_date_of_service),
        }


@dataclass(frozen=True)
class TriageSummary:
    total_flags: int
    high_confidence_flags: int
    medium_confidence_flags: int
    total_potential_savings: str
    total_potential_savings_amount: Decimal
    recommend_human_review: bool
    result: TriageOutcome

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_flags": self.total_flags,
            "high_confidence_flags": self.high_confidence_flags,
            "medium_confidence_flags": self.medium_confidence_flags,
            "total_potential_savings": self.total_potential_savings,
            "total_potential_savings_amount": _jsonable(self.total_potential_savings_amount),
            "recommend_human_review": self.recommend_human_review,
            "result": self.result.value,
        }


@dataclass(frozen=True)
class TriageResult:
    """Final output of one bill evaluation."""

    flags: tuple[Flag, ...]
    clean_items: tuple[CleanItem, ...]
    triage_notes: tuple[str, ...]
    summary: TriageSummary
    bill_context: BillContext

    def to_dict(self) -> dict[str, Any]:
        return {
            "flags": [f.to_dict() for f in self.flags],
            "clean_items": [
                {"line_number": item.line_number, "reason": item.reason}
                for item in self.clean_items
            ],
            "triage_notes": list(self.triage_notes),
            "summary": self.summary.to_dict(),
            "bill_context": self.bill_context.to_dict(),
        }


@dataclass(frozen=True)
class RuleContext:
    """Inputs required to evaluate the triage checks."""

    bill: BillRecord
    profile: ComplexityProfile
    thresholds: TriageThresholds = field(default_factory=TriageThresholds)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
