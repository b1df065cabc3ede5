"""Threshold configuration for the triage checks."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TriageThresholds:
    # Rounding differences up to this amount are normal insurer arithmetic
    math_tolerance: Decimal = Decimal("1.00")
    oop_proximity_ratio: Decimal = Decimal("0.9")
    simple_bill_max_lines: int = 4
    appeal_window_days: int = 180

    def exceeds_math_tolerance(self, difference: Decimal) -> bool:
        """Exactly the tolerance does not count as a discrepancy."""
        return abs(difference) > self.math_tolerance

    def oop_proximity_floor(self, oop_max: Decimal) -> Decimal:
        return oop_max * self.oop_proximity_ratio
