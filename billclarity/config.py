"""Shared configuration for the BillClarity backend.

This module centralizes environment variable access and default values
to prevent drift between modules.
"""

import logging
import os

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Model tiers chosen by the routing heuristic
FAST_TIER_MODEL = os.getenv("FAST_TIER_MODEL", "claude-haiku-4-5-20251001")
THOROUGH_TIER_MODEL = os.getenv("THOROUGH_TIER_MODEL", "claude-sonnet-4-5")

# Flag guidance generation
GUIDANCE_MODEL = os.getenv("GUIDANCE_MODEL", FAST_TIER_MODEL)
GUIDANCE_MAX_TOKENS = int(os.getenv("GUIDANCE_MAX_TOKENS", "1500"))
# LLM endpoints are rate limited per client (costly API calls)
GUIDANCE_RATE_LIMIT = os.getenv("GUIDANCE_RATE_LIMIT", "10/minute")
TRIAGE_RATE_LIMIT = os.getenv("TRIAGE_RATE_LIMIT", "100/minute")

# Comma-separated list of allowed browser origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
