"""Bill triage checks organized by category."""

from __future__ import annotations

from .duplicate_rules import duplicate_charge_rule
from .math_rules import math_error_rule
from .nsa_rules import (
    nsa_air_ambulance_rule,
    nsa_ancillary_rule,
    nsa_emergency_rule,
)
from .oop_rules import oop_proximity_rule
from .pos_rules import wrong_pos_rule
from .zero_payment_rules import zero_payment_rule

__all__ = [
    # Totals
    "math_error_rule",
    "oop_proximity_rule",
    # Line level
    "duplicate_charge_rule",
    # No Surprises Act
    "nsa_emergency_rule",
    "nsa_ancillary_rule",
    "nsa_air_ambulance_rule",
    # Place of service
    "wrong_pos_rule",
    # Zero payment
    "zero_payment_rule",
]
