"""Pydantic schemas for extracted bill records.

A bill record is what the upstream extraction step produces from a scanned
bill, EOB or statement. The models are frozen: the triage engine only reads
them. Validation rejects structural problems (duplicate line numbers,
negative amounts, wrong types) but never missing optional fields; a null
value means "unknown", never zero.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from billclarity.utils import parse_flexible_date, to_cents


class MalformedBillError(ValueError):
    """Raised when a bill record violates a structural invariant."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class DocumentType(str, Enum):
    EOB = "EOB"
    ITEMIZED_BILL = "itemized_bill"
    PROVIDER_BILL = "provider_bill"
    UNKNOWN = "unknown"


class DocumentStatus(str, Enum):
    BILL = "bill"
    INFORMATIONAL_ONLY = "informational_only"
    UNKNOWN = "unknown"


class PlanType(str, Enum):
    PPO = "PPO"
    HMO = "HMO"
    HDHP = "HDHP"
    EPO = "EPO"
    SELF_FUNDED = "self_funded"
    UNKNOWN = "unknown"


class ExtractionConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Spellings the extraction prompt is known to emit
_DOCUMENT_TYPE_ALIASES = {"itemised_bill": DocumentType.ITEMIZED_BILL}


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Enum:
    """Map free-form extraction output onto an enum, falling back to ``default``."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default
    text = value.strip()
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    return default


def _coerce_money(value: Decimal | None, field_name: str) -> Decimal | None:
    if value is None:
        return None
    if value < 0:
        raise ValueError(f"{field_name} cannot be negative")
    return to_cents(value)


def _clean_text(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


MONEY_SUMMARY_FIELDS = (
    "total_billed",
    "total_allowed",
    "plan_paid",
    "deductible_applied",
    "coinsurance_applied",
    "copay_applied",
    "member_responsibility",
    "oop_max",
    "oop_accumulated",
)

MONEY_LINE_FIELDS = (
    "amount_billed",
    "amount_allowed",
    "plan_paid",
    "patient_responsibility",
)


class DateRange(BaseModel):
    """Service period covered by the document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_date: Optional[date] = Field(None, alias="from")
    to_date: Optional[date] = Field(None, alias="to")

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> date | None:
        return parse_flexible_date(v)


class BillSummary(BaseModel):
    """Document-level totals. Every field is optional."""

    model_config = ConfigDict(frozen=True)

    total_billed: Optional[Decimal] = None
    total_allowed: Optional[Decimal] = None
    plan_paid: Optional[Decimal] = None
    deductible_applied: Optional[Decimal] = None
    coinsurance_applied: Optional[Decimal] = None
    copay_applied: Optional[Decimal] = None
    member_responsibility: Optional[Decimal] = None
    oop_max: Optional[Decimal] = None
    oop_accumulated: Optional[Decimal] = None

    @field_validator(*MONEY_SUMMARY_FIELDS)
    @classmethod
    def validate_money(cls, v: Decimal | None, info) -> Decimal | None:
        return _coerce_money(v, info.field_name)


class LineItem(BaseModel):
    """A single charge line; the unit every flag references."""

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(..., description="1-based line number, unique within a bill", ge=1)
    cpt_code: Optional[str] = Field(None, description="CPT or HCPCS code")
    cpt_modifiers: frozenset[str] = Field(default_factory=frozenset)
    description: Optional[str] = None
    date_of_service: Optional[date] = None
    place_of_service_code: Optional[str] = Field(None, description="Two-digit place of service code")
    billing_provider: Optional[str] = None
    billing_provider_specialty: Optional[str] = None
    in_network: Optional[bool] = Field(None, description="None when network status is unknown")
    amount_billed: Optional[Decimal] = None
    amount_allowed: Optional[Decimal] = None
    plan_paid: Optional[Decimal] = None
    patient_responsibility: Optional[Decimal] = None
    adjustment_reason_code: Optional[str] = None
    adjustment_reason_description: Optional[str] = None
    zero_payment_flag: bool = False

    @field_validator("cpt_code", mode="before")
    @classmethod
    def normalize_cpt_code(cls, v: Any) -> Any:
        v = _clean_text(v)
        return v.upper() if isinstance(v, str) else v

    @field_validator("cpt_modifiers", mode="before")
    @classmethod
    def normalize_modifiers(cls, v: Any) -> Any:
        """Normalize modifiers to an upper-cased set; null means none."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(m.strip().upper() for m in v if isinstance(m, str) and m.strip())

    @field_validator(
        "description",
        "billing_provider",
        "billing_provider_specialty",
        "adjustment_reason_code",
        "adjustment_reason_description",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _clean_text(v)

    @field_validator("place_of_service_code", mode="before")
    @classmethod
    def normalize_place_of_service(cls, v: Any) -> Any:
        """Extraction sometimes emits POS as a number (``23``) or unpadded (``2``)."""
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        v = _clean_text(v)
        if isinstance(v, str) and v.isdigit() and len(v) == 1:
            return v.zfill(2)
        return v

    @field_validator("date_of_service", mode="before")
    @classmethod
    def parse_date_of_service(cls, v: Any) -> date | None:
        return parse_flexible_date(v)

    @field_validator("zero_payment_flag", mode="before")
    @classmethod
    def default_zero_payment(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator(*MONEY_LINE_FIELDS)
    @classmethod
    def validate_money(cls, v: Decimal | None, info) -> Decimal | None:
        return _coerce_money(v, info.field_name)

    def adjustment_text(self) -> str:
        """Lower-cased adjustment code and description, for keyword matching."""
        parts = [self.adjustment_reason_code or "", self.adjustment_reason_description or ""]
        return " ".join(p for p in parts if p).lower()


class BillRecord(BaseModel):
    """A complete extracted bill: patient, plan, totals and itemized charges."""

    model_config = ConfigDict(frozen=True)

    document_type: DocumentType = DocumentType.UNKNOWN
    document_status: DocumentStatus = DocumentStatus.UNKNOWN
    patient_name: Optional[str] = None
    insurer_name: Optional[str] = None
    date_range: Optional[DateRange] = None
    plan_type: PlanType = PlanType.UNKNOWN
    summary: BillSummary = Field(default_factory=BillSummary)
    line_items: tuple[LineItem, ...] = ()
    extraction_notes: tuple[str, ...] = ()
    extraction_confidence: ExtractionConfidence = ExtractionConfidence.LOW

    @field_validator("document_type", mode="before")
    @classmethod
    def coerce_document_type(cls, v: Any) -> DocumentType:
        if isinstance(v, str) and v.strip().lower() in _DOCUMENT_TYPE_ALIASES:
            return _DOCUMENT_TYPE_ALIASES[v.strip().lower()]
        return _coerce_enum(DocumentType, v, DocumentType.UNKNOWN)

    @field_validator("document_status", mode="before")
    @classmethod
    def coerce_document_status(cls, v: Any) -> DocumentStatus:
        return _coerce_enum(DocumentStatus, v, DocumentStatus.UNKNOWN)

    @field_validator("plan_type", mode="before")
    @classmethod
    def coerce_plan_type(cls, v: Any) -> PlanType:
        return _coerce_enum(PlanType, v, PlanType.UNKNOWN)

    @field_validator("extraction_confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, v: Any) -> ExtractionConfidence:
        return _coerce_enum(ExtractionConfidence, v, ExtractionConfidence.LOW)

    @field_validator("patient_name", "insurer_name", mode="before")
    @classmethod
    def strip_names(cls, v: Any) -> Any:
        return _clean_text(v)

    @field_validator("summary", mode="before")
    @classmethod
    def default_summary(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("line_items", "extraction_notes", mode="before")
    @classmethod
    def default_sequence(cls, v: Any) -> Any:
        return () if v is None else v

    @model_validator(mode="after")
    def check_unique_line_numbers(self) -> "BillRecord":
        seen: set[int] = set()
        duplicates: list[int] = []
        for item in self.line_items:
            if item.line_number in seen:
                duplicates.append(item.line_number)
            seen.add(item.line_number)
        if duplicates:
            listed = ", ".join(str(n) for n in sorted(set(duplicates)))
            raise ValueError(f"Duplicate line numbers: {listed}")
        return self

    def line(self, line_number: int) -> LineItem | None:
        for item in self.line_items:
            if item.line_number == line_number:
                return item
        return None

    @property
    def primary_date_of_service(self) -> date | None:
        """Earliest date of service on the bill."""
        dates = [item.date_of_service for item in self.line_items if item.date_of_service]
        return min(dates) if dates else None


def parse_bill_record(payload: Any) -> BillRecord:
    """Validate an extraction payload into a ``BillRecord``.

    Raises:
        MalformedBillError: if the payload is not an object or violates a
            structural invariant.
    """
    if isinstance(payload, BillRecord):
        return payload
    if not isinstance(payload, dict):
        raise MalformedBillError("Bill record must be a JSON object")

    try:
        return BillRecord.model_validate(payload)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or 'bill'}: {err['msg']}"
            for err in e.errors()
        ]
        raise MalformedBillError("Malformed bill record", errors=errors) from e
