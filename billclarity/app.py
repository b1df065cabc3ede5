"""FastAPI backend for BillClarity bill triage."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from billclarity import __version__
from billclarity.config import CORS_ORIGINS, configure_logging
from billclarity.rate_limit import limiter
from billclarity.routes import guidance_router, triage_router
from billclarity.rules.registry import default_registry
from billclarity.rules.ruleset import register_default_checks
from billclarity.schemas import MalformedBillError

# Configure logging
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and load the default checks on startup."""
    configure_logging()
    register_default_checks(default_registry)
    logger.info(f"BillClarity triage ready with {len(default_registry)} checks")
    yield


app = FastAPI(
    title="BillClarity",
    description="Rule-based triage of extracted medical bills",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting configuration
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(triage_router)
app.include_router(guidance_router)


@app.exception_handler(MalformedBillError)
async def malformed_bill_handler(request: Request, exc: MalformedBillError):
    logger.warning(f"Rejected malformed bill: {len(exc.errors)} error(s)")
    return JSONResponse(
        status_code=422,
        content={"detail": {"message": str(exc), "errors": exc.errors}},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks_loaded": len(default_registry),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
