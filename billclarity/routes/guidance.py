"""Per-flag guidance routes."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from billclarity.claude_client import get_flag_guidance
from billclarity.config import FAST_TIER_MODEL, GUIDANCE_RATE_LIMIT, THOROUGH_TIER_MODEL
from billclarity.rate_limit import limiter
from billclarity.routing import FAST_TIER, THOROUGH_TIER
from billclarity.rules import FlagType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/flag-guidance", tags=["guidance"])

TIER_MODELS = {FAST_TIER: FAST_TIER_MODEL, THOROUGH_TIER: THOROUGH_TIER_MODEL}

_KNOWN_FLAG_TYPES = {flag_type.value for flag_type in FlagType}


class GuidanceRequest(BaseModel):
    """Request body: one flag from a triage result plus its bill context."""

    flag: dict[str, Any] | None = None
    bill_context: dict[str, Any] | None = None
    tier: str | None = None


@router.post("")
@limiter.limit(GUIDANCE_RATE_LIMIT)
def flag_guidance(request: Request, body: GuidanceRequest):
    """Generate call scripts and next steps for one flag."""
    flag = body.flag
    if not flag or flag.get("flag_type") not in _KNOWN_FLAG_TYPES:
        raise HTTPException(status_code=400, detail="Invalid flag data.")
    if body.tier is not None and body.tier not in TIER_MODELS:
        raise HTTPException(status_code=400, detail=f"Unknown tier: {body.tier}")

    model = TIER_MODELS[body.tier] if body.tier else None
    return get_flag_guidance(flag, body.bill_context, model=model)
