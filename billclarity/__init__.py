"""BillClarity backend package.

This package triages extracted medical bills for patients:

- Complexity classification and model tier routing
- Deterministic rule checks over line items
- Flag assembly into a prioritized triage result
- Claude-generated call scripts for individual flags

Usage:
    # Development:
    uvicorn billclarity.app:app --reload --port 8080

Modules:
    app: FastAPI application entry point
    rules: Triage rules engine
    routing: Model tier selection
    claude_client: Claude API integration for flag guidance
    guidance_config: Guidance persona and prompts
"""

__version__ = "0.1.0"
