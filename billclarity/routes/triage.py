"""Bill triage routes.

The triage endpoint takes an extracted bill record, runs the rules engine and
returns the assembled flags together with the model tier the routing
heuristic picked for follow-up generation.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Request

from billclarity.config import TRIAGE_RATE_LIMIT
from billclarity.rate_limit import limiter
from billclarity.routing import select_tier
from billclarity.rules import CONFIDENCE_BY_FLAG_TYPE, PRIORITY_BY_FLAG_TYPE, classify_bill, evaluate_bill
from billclarity.rules.registry import default_registry
from billclarity.rules.ruleset import CHECK_FLAG_TYPES, register_default_checks
from billclarity.schemas import parse_bill_record

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/triage", tags=["triage"])


@router.post("")
@limiter.limit(TRIAGE_RATE_LIMIT)
async def triage_bill(request: Request, payload: dict[str, Any] = Body(...)):
    """Evaluate one extracted bill.

    Returns the triage result (flags, clean items, notes, summary, bill
    context) plus a ``routing`` block describing the selected model tier.
    Malformed bills are rejected with 422 by the application error handler.
    """
    bill = parse_bill_record(payload)
    routing = select_tier(classify_bill(bill))
    result = evaluate_bill(bill)

    response = result.to_dict()
    response["routing"] = routing.to_dict()
    return response


@router.get("/checks")
async def get_check_catalog():
    """List registered checks with the flag types they raise.

    Each flag type carries its fixed priority and confidence.
    """
    register_default_checks(default_registry)

    checks = []
    for check in default_registry.active_checks():
        doc = check.__doc__ or ""
        checks.append(
            {
                "check_id": check.__name__.upper(),
                "name": check.__name__.replace("_", " ").title(),
                "description": doc.strip().split("\n")[0] if doc else "",
                "flag_types": [
                    {
                        "flag_type": flag_type.value,
                        "priority": PRIORITY_BY_FLAG_TYPE[flag_type],
                        "confidence": CONFIDENCE_BY_FLAG_TYPE[flag_type].value,
                    }
                    for flag_type in CHECK_FLAG_TYPES.get(check, ())
                ],
            }
        )

    return {"checks": checks, "total_checks": len(checks)}
