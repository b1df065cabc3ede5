"""Keyword patterns for matching free-text specialty and description fields."""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

# Ancillary specialty groups, checked in this order
ANCILLARY_GROUPS: dict[str, tuple[str, ...]] = {
    "anesthesia": (r"anesthes", r"anaesthes", r"\bcrna\b"),
    "radiology": (r"radiolog",),
    "pathology": (r"patholog",),
    "laboratory": (r"laborator", r"\blabs?\b"),
}

EMERGENCY_SPECIALTY = (r"emergency", r"urgent care")
EMERGENCY_DESCRIPTION = (
    r"emergency (department|room|care|visit|services?)",
    r"\bed visit\b",
    r"urgent care",
)

OFFICE_VISIT_DESCRIPTION = (r"office visit", r"follow[- ]?up")
IMAGING_DESCRIPTION = (r"x-?ray", r"radiolog", r"imaging", r"\bct\b", r"\bmri\b", r"\bscans?\b")
IMAGING_SPECIALTY = (r"radiolog", r"imaging")

# Specialties that legitimately bill office-style codes in a hospital setting
WRONG_POS_EXEMPT_GROUPS = ("radiology", "pathology", "anesthesia")

CORRECTION_MARKERS = ("corrected", "ma130", "n522")
COST_SHARE_MARKERS = ("deductible", "copay", "co-pay")
NOT_COVERED_MARKERS = ("not covered", "non-covered", "noncovered")


@lru_cache(maxsize=None)
def _pattern(expr: str) -> re.Pattern[str]:
    return re.compile(expr, re.IGNORECASE)


def mentions(text: str | None, patterns: Iterable[str]) -> bool:
    """True if any pattern occurs in ``text`` (case-insensitive)."""
    if not text:
        return False
    return any(_pattern(expr).search(text) for expr in patterns)


def contains_any(text: str | None, markers: Iterable[str]) -> bool:
    """Plain case-insensitive substring test."""
    lowered = (text or "").lower()
    return any(marker in lowered for marker in markers)


def ancillary_group(specialty: str | None) -> str | None:
    """Return the ancillary group a specialty belongs to, if any."""
    for group, patterns in ANCILLARY_GROUPS.items():
        if mentions(specialty, patterns):
            return group
    return None
