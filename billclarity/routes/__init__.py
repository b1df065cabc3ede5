"""API route modules for BillClarity.

This package contains focused routers that are registered with the main FastAPI app.

Routers:
- triage: Bill evaluation and the check catalogue
- guidance: Per-flag call scripts and next steps
"""

from .guidance import router as guidance_router
from .triage import router as triage_router

__all__ = ["guidance_router", "triage_router"]
