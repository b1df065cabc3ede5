"""Default bill triage checks."""

from __future__ import annotations

from .categories import (
    duplicate_charge_rule,
    math_error_rule,
    nsa_air_ambulance_rule,
    nsa_ancillary_rule,
    nsa_emergency_rule,
    oop_proximity_rule,
    wrong_pos_rule,
    zero_payment_rule,
)
from .models import FlagType
from .registry import CheckRegistry, TriageCheck

# Flag types each check can raise, for the check catalogue
CHECK_FLAG_TYPES: dict[TriageCheck, tuple[FlagType, ...]] = {
    zero_payment_rule: (FlagType.COVERAGE_DENIAL, FlagType.POSSIBLE_PROCESSING_ERROR),
    math_error_rule: (FlagType.MATH_ERROR,),
    oop_proximity_rule: (FlagType.OOP_MAX_VIOLATION, FlagType.OOP_PROXIMITY),
    duplicate_charge_rule: (FlagType.DUPLICATE_CHARGE,),
    nsa_emergency_rule: (FlagType.NSA_EMERGENCY_VIOLATION,),
    nsa_ancillary_rule: (FlagType.NSA_ANCILLARY_VIOLATION,),
    nsa_air_ambulance_rule: (FlagType.NSA_AIR_AMBULANCE,),
    wrong_pos_rule: (FlagType.POSSIBLE_WRONG_POS,),
}


def register_default_checks(registry: CheckRegistry) -> None:
    """Register the eight triage checks.

    The wrong place of service check recomputes the zero-payment coverage
    denials itself, so registration order never changes the result.
    """
    registry.extend(CHECK_FLAG_TYPES)
