"""Model tier selection for bill processing.

Cheap bills (high-confidence extraction, a handful of lines, nothing out of
network, no prior-auth denial) go to the fast tier; everything else goes to
the thorough tier. The choice only affects cost and latency of model calls,
never which flags the rules engine raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from billclarity.config import FAST_TIER_MODEL, THOROUGH_TIER_MODEL
from billclarity.rules.complexity import ComplexityProfile

logger = logging.getLogger(__name__)

FAST_TIER = "fast"
THOROUGH_TIER = "thorough"


@dataclass(frozen=True)
class TierSelection:
    tier: str
    model: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"tier": self.tier, "model": self.model, "reason": self.reason}


def select_tier(
    profile: ComplexityProfile,
    fast_model: str = FAST_TIER_MODEL,
    thorough_model: str = THOROUGH_TIER_MODEL,
) -> TierSelection:
    if (
        profile.is_high_confidence
        and profile.is_simple
        and not profile.has_out_of_network
        and not profile.has_prior_auth_denial
    ):
        selection = TierSelection(FAST_TIER, fast_model, "simple bill, high confidence")
    elif profile.has_out_of_network:
        selection = TierSelection(THOROUGH_TIER, thorough_model, "OON providers detected")
    elif not profile.is_high_confidence:
        selection = TierSelection(
            THOROUGH_TIER, thorough_model, "low/medium extraction confidence"
        )
    elif profile.has_prior_auth_denial:
        selection = TierSelection(THOROUGH_TIER, thorough_model, "prior auth denial detected")
    else:
        selection = TierSelection(THOROUGH_TIER, thorough_model, "complex bill (5+ line items)")

    logger.info(f"Triage model selected: {selection.model} (reason: {selection.reason})")
    return selection
