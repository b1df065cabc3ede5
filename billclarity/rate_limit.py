"""Shared slowapi limiter.

Rate limiting configuration:
LLM endpoints: GUIDANCE_RATE_LIMIT (costly API calls)
Standard endpoints: TRIAGE_RATE_LIMIT
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
