"""Flag guidance generator configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from billclarity.config import GUIDANCE_MAX_TOKENS, GUIDANCE_MODEL


@dataclass
class GuidanceConfig:
    """Configuration for the per-flag guidance generator.

    The generator plays a patient billing advocate. It turns one flag plus
    bill context into a call script, pushback lines and next steps.
    """

    # Agent Identity
    name: str = "BillClarity Advocate"
    role: str = "Medical Billing Advocate"

    # Model Settings
    model: str = GUIDANCE_MODEL
    max_tokens: int = GUIDANCE_MAX_TOKENS
    # Some variety in phrasing is fine for scripts
    temperature: float = 0.3

    # Response Settings
    min_next_steps: int = 3
    max_next_steps: int = 5
    closing_line: str = "Can you please confirm that in writing?"

    # Words the guidance must never use
    banned_terms: list[str] = field(
        default_factory=lambda: ["fraud", "illegal", "criminal", "lawsuit", "sue"]
    )


# System prompt for the guidance generator
GUIDANCE_SYSTEM_PROMPT = """You are a medical billing advocate. Generate detailed action guidance for one billing flag raised on a patient's bill.

Given the flag type, its description and the bill context, produce:

1. call_script: A phone script the patient reads verbatim to call their insurer or provider.
   - Opening: identify yourself and the claim
   - State the issue clearly in one sentence
   - Legal basis if applicable (No Surprises Act, appeal rights)
   - Specific request (reprocess, appeal, remove the charge)
   - Closing: "Can you please confirm that in writing?"

2. pushback_script: 2-3 firm but polite responses if the representative pushes back.

3. next_steps: Ordered list of 3-5 concrete actions:
   - Who to call first
   - What to reference on the call
   - What to do if there is no response within 30 days
   - Escalation path if needed
   - Collections protection note if relevant

4. educational_note: 2-3 short paragraphs in plain English explaining why this may be a billing issue and what the law says. No jargon.

5. retaliation_note: One sentence reminding the patient that disputing a billing error is not the same as filing a claim; insurers cannot raise premiums or drop coverage for disputing a bill.

## Response Format (REQUIRED JSON)
Respond with ONLY valid JSON, no markdown, no preamble:
```json
{
  "call_script": "string",
  "pushback_script": "string",
  "next_steps": ["string"],
  "educational_note": "string",
  "retaliation_note": "string"
}
```

Never use: fraud, illegal, criminal, lawsuit, sue.
Always end call_script with: "Can you please confirm that in writing?"
Use the patient's name and insurer name from the context where provided.
"""

# Flag-specific prompt templates
FLAG_TYPE_PROMPTS = {
    "coverage_denial": """Focus the guidance on appealing a prior authorization denial:
1. Request the denial letter and the specific reason code
2. Ask the provider's office whether they submitted or can retroactively submit authorization
3. File an internal appeal before the appeal deadline
4. Mention external review rights if the internal appeal fails""",

    "nsa_emergency_violation": """Focus the guidance on No Surprises Act emergency protections:
1. Emergency care must be billed at in-network cost sharing regardless of network status
2. The provider cannot balance bill for the difference
3. Ask the insurer to reprocess the claim at the in-network rate
4. Mention the federal No Surprises Help Desk as an escalation path""",

    "nsa_ancillary_violation": """Focus the guidance on No Surprises Act ancillary protections:
1. Anesthesia, radiology, pathology and laboratory providers at an in-network facility cannot balance bill
2. The patient cannot be asked to waive these protections for ancillary services
3. Ask the insurer to reprocess at in-network cost sharing
4. Ask the provider to withdraw any balance bill""",

    "nsa_air_ambulance": """Focus the guidance on air ambulance protections:
1. Out-of-network air ambulance transport is limited to in-network cost sharing
2. Ground ambulance is not covered by the same protections
3. Ask the insurer to reprocess the claim under the No Surprises Act""",

    "oop_max_violation": """Focus the guidance on the out-of-pocket maximum:
1. Ask the insurer to confirm the accumulated out-of-pocket amount for the plan year
2. Once the maximum is met, covered in-network care should cost nothing further
3. Request reprocessing of the claim and a refund of any overpayment""",

    "oop_proximity": """Focus the guidance on planning around the out-of-pocket maximum:
1. Confirm the remaining amount with the insurer
2. Explain that covered in-network care may be fully paid once the maximum is reached
3. No dispute is needed; this is for planning future care""",

    "duplicate_charge": """Focus the guidance on a duplicate charge:
1. Ask for an itemized bill listing both charges
2. Ask the provider's billing office to remove the repeated charge
3. Ask the insurer to reprocess if they paid both lines""",

    "math_error": """Focus the guidance on a total that does not match the line items:
1. Ask the billing office to explain how the total was calculated
2. Request a corrected statement
3. Pay only the undisputed amount while the correction is pending""",

    "possible_wrong_pos": """Focus the guidance on place of service coding:
1. Ask whether the visit took place in a hospital-owned outpatient department or a physician office
2. Hospital place of service codes can add facility fees
3. Ask the provider to review the coding and resubmit if incorrect""",

    "possible_processing_error": """Focus the guidance on a claim that was allowed but paid at zero:
1. Ask the insurer why the plan paid nothing on an allowed amount
2. Ask for the claim to be reprocessed
3. Request an updated explanation of benefits""",
}

# Default configuration instance
GUIDANCE_CONFIG = GuidanceConfig()
