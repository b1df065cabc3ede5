"""Claude API client for per-flag action guidance.

The rules engine's flags are complete on their own. Guidance is prose layered
on top: when the API key is missing, the call fails, or the reply cannot be
parsed, a deterministic fallback built from the flag is returned instead.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

import anthropic

from billclarity.guidance_config import (
    FLAG_TYPE_PROMPTS,
    GUIDANCE_CONFIG,
    GUIDANCE_SYSTEM_PROMPT,
    GuidanceConfig,
)
from billclarity.rules import BillContext, Flag

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not available"

GUIDANCE_FIELDS = (
    "call_script",
    "pushback_script",
    "next_steps",
    "educational_note",
    "retaliation_note",
)

RETALIATION_NOTE = (
    "Disputing a billing error is not the same as filing a claim; your insurer "
    "cannot raise your premiums or drop your coverage because you asked."
)


def parse_structured_response(text: str) -> dict[str, Any] | None:
    """Parse a JSON object out of a model reply.

    Handles markdown code blocks, raw JSON, and JSON surrounded by prose.

    Args:
        text: The raw response text from Claude

    Returns:
        Parsed JSON dictionary or None if parsing fails
    """
    if not text:
        return None

    candidates = []
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    if fenced:
        candidates.append(fenced.group(1).strip())
    candidates.append(text.strip())
    braces = re.search(r"\{[\s\S]*\}", text)
    if braces:
        candidates.append(braces.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    return None


def _as_flag_dict(flag: Flag | dict[str, Any]) -> dict[str, Any]:
    return flag.to_dict() if isinstance(flag, Flag) else dict(flag)


def _as_context_dict(bill_context: BillContext | dict[str, Any] | None) -> dict[str, Any]:
    if bill_context is None:
        return {}
    if isinstance(bill_context, BillContext):
        return bill_context.to_dict()
    return dict(bill_context)


def find_banned_terms(guidance: dict[str, Any], banned_terms: list[str]) -> list[str]:
    """Return banned words that appear anywhere in the guidance text."""
    text = json.dumps(guidance).lower()
    return [term for term in banned_terms if re.search(rf"\b{re.escape(term)}\b", text)]


def build_guidance_prompt(
    flag: Flag | dict[str, Any],
    bill_context: BillContext | dict[str, Any] | None = None,
) -> str:
    """Build the user prompt for one flag.

    Args:
        flag: The assembled flag (or its dict form from an API request)
        bill_context: Insurer, patient and primary date of service

    Returns:
        Formatted prompt string
    """
    flag_data = _as_flag_dict(flag)
    context = _as_context_dict(bill_context)
    flag_type = flag_data.get("flag_type", "")

    focus = ""
    if flag_type in FLAG_TYPE_PROMPTS:
        focus = f"""
## Flag-Specific Guidance
{FLAG_TYPE_PROMPTS[flag_type]}
"""

    metadata = flag_data.get("metadata") or {}
    appeal_deadline = metadata.get("appeal_deadline")
    deadline_line = f"\nAppeal Deadline: {appeal_deadline}" if appeal_deadline else ""

    return f"""Flag type: {flag_type}
Confidence: {flag_data.get("confidence", "")}
Description: {flag_data.get("description", "")}
Potential Savings: {flag_data.get("potential_savings", "")}
Line References: {json.dumps(flag_data.get("line_references") or [])}{deadline_line}

Bill Context:
- Insurer: {context.get("insurer_name") or NOT_AVAILABLE}
- Patient: {context.get("patient_name") or NOT_AVAILABLE}
- Date of Service: {context.get("primary_date_of_service") or NOT_AVAILABLE}
{focus}
Generate detailed action guidance for this billing flag. Respond with ONLY valid JSON."""


def fallback_guidance(
    flag: Flag | dict[str, Any],
    bill_context: BillContext | dict[str, Any] | None,
    config: GuidanceConfig,
    model: str,
    explanation: str,
) -> dict[str, Any]:
    """Deterministic guidance used whenever generated text is unavailable."""
    flag_data = _as_flag_dict(flag)
    context = _as_context_dict(bill_context)
    insurer = context.get("insurer_name") or "your insurer"
    patient = context.get("patient_name") or "the patient"
    lines = ", ".join(str(n) for n in flag_data.get("line_references") or [])
    description = flag_data.get("description") or "a possible billing issue"

    dos = context.get("primary_date_of_service")
    visit = f" for care on {dos}" if dos else ""

    call_script = (
        f"Hello, my name is {patient} and I'm calling about a claim{visit}. "
        f"I'd like to ask about line(s) {lines or 'on my bill'}: {description} "
        f"Could you please review and reprocess this if it is incorrect? {config.closing_line}"
    )

    return {
        "call_script": call_script,
        "pushback_script": (
            "I understand. Could you tell me the specific reason this is correct, "
            "and send me that explanation in writing? I'd also like a reference number for this call."
        ),
        "next_steps": [
            f"Call {insurer} first and reference the line numbers above.",
            "Write down the date, the representative's name and a reference number.",
            "If you hear nothing within 30 days, follow up in writing.",
            "Ask the provider to hold the account from collections while it is reviewed.",
        ][: config.max_next_steps],
        "educational_note": description,
        "retaliation_note": RETALIATION_NOTE,
        "model": model,
        "tokens_used": 0,
        "agent": config.name,
        "structured": None,
        "explanation": explanation,
    }


def _normalize_guidance(structured: dict[str, Any], config: GuidanceConfig) -> dict[str, Any]:
    next_steps = structured.get("next_steps") or []
    if isinstance(next_steps, str):
        next_steps = [next_steps]
    call_script = str(structured.get("call_script") or "").strip()
    if call_script and not call_script.endswith(config.closing_line):
        call_script = f"{call_script} {config.closing_line}"
    return {
        "call_script": call_script,
        "pushback_script": str(structured.get("pushback_script") or ""),
        "next_steps": [str(step) for step in next_steps][: config.max_next_steps],
        "educational_note": str(structured.get("educational_note") or ""),
        "retaliation_note": str(structured.get("retaliation_note") or RETALIATION_NOTE),
    }


def get_flag_guidance(
    flag: Flag | dict[str, Any],
    bill_context: BillContext | dict[str, Any] | None = None,
    config: GuidanceConfig | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """Generate call scripts and next steps for one flag.

    Args:
        flag: The flag to explain
        bill_context: Insurer, patient and primary date of service
        config: Optional guidance configuration (uses GUIDANCE_CONFIG if not provided)
        model: Optional model override, e.g. the tier chosen by the router

    Returns:
        Dictionary containing:
        - call_script, pushback_script, next_steps, educational_note,
          retaliation_note: the guidance itself
        - model: The Claude model used ("none" or "error" for fallbacks)
        - tokens_used: Total tokens consumed
        - agent: Generator name
        - structured: Parsed JSON response (if available)
    """
    if config is None:
        config = GUIDANCE_CONFIG
    model = model or config.model

    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        return fallback_guidance(
            flag,
            bill_context,
            config,
            model="none",
            explanation="Guidance generator not available - Anthropic API key not configured.",
        )

    client = anthropic.Anthropic(api_key=api_key)
    user_prompt = build_guidance_prompt(flag, bill_context)
    flag_type = _as_flag_dict(flag).get("flag_type", "unknown")
    logger.info(f"Flag guidance requested: {flag_type}")

    try:
        response = client.messages.create(
            model=model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            system=GUIDANCE_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": user_prompt}],
        )
    except anthropic.APIError as e:
        logger.warning(f"Guidance generation failed for {flag_type}: {e!s}")
        return fallback_guidance(
            flag,
            bill_context,
            config,
            model="error",
            explanation=f"Guidance generator encountered an API error: {e!s}.",
        )

    content = response.content[0].text if response.content else ""
    structured = parse_structured_response(content)
    if structured is None:
        logger.warning(f"Unparseable guidance response for {flag_type}")
        return fallback_guidance(
            flag,
            bill_context,
            config,
            model="error",
            explanation="Guidance generator returned a response that could not be parsed.",
        )

    banned = find_banned_terms(structured, config.banned_terms)
    if banned:
        logger.warning(f"Guidance for {flag_type} used banned terms: {', '.join(banned)}")
        return fallback_guidance(
            flag,
            bill_context,
            config,
            model="error",
            explanation="Guidance generator response was rejected by the wording policy.",
        )

    logger.info(f"Flag guidance complete: {flag_type}")
    return {
        **_normalize_guidance(structured, config),
        "model": model,
        "tokens_used": response.usage.input_tokens + response.usage.output_tokens,
        "agent": config.name,
        "structured": structured,
        "explanation": "",
    }
