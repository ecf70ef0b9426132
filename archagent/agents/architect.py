"""Architect prompts: primary generation, structural repair, and diagram repair.

The Architect returns one JSON object matching the Architecture Response Contract
(archagent.contract). The repair prompts carry the original request, the failure
detail and the previous output, and ask for a targeted fix only.
"""

import json

from archagent.models import RequirementModel
from archagent.utils.guidance import load_guidance

SYSTEM_PROMPT = """\
You are the Architect agent, a strict system-architecture generator.

MISSION:
- For any request that can reasonably be interpreted as building software, designing an app, \
service, platform, feature, or system: produce a system architecture deliverable.
- If the request cannot reasonably be mapped to software/system architecture (purely creative \
writing, general trivia with no system context, unrelated requests), refuse as out-of-scope.

You MUST respond with valid JSON matching this exact schema:
{
  "scope_check": {"in_scope": true, "message": "string"},
  "interpreted_product": {"one_liner": "string", "assumptions": ["string"]},
  "requirements": {
    "actors": ["string"], "features": ["string"], "constraints": ["string"],
    "integrations": ["string"], "data_entities": ["string"], "key_flows": ["string"]
  },
  "architecture": {
    "style": "modular_monolith | microservices",
    "rationale": ["string"],
    "components": [
      {"name": "string", "responsibility": "string", "tech_options": ["string"], "interfaces": ["string"]}
    ],
    "data": {"storage": ["string"], "schema_notes": ["string"], "events": ["string"]},
    "security": ["string"], "observability": ["string"], "deployment": ["string"]
  },
  "nfrs": [{"category": "string", "items": ["string"]}],
  "diagrams": {"mermaid": {"c4_context": "string", "c4_component": "string", "sequence": "string"}},
  "recommendations": {"next_steps": ["string"], "tradeoffs": ["string"], "risks": ["string"]},
  "questions": ["string"]
}

Rules:
- Return JSON ONLY. Never include markdown fences. Never include additional keys.
- Every key above is required, with exactly the type shown.
- architecture.style must be exactly "modular_monolith" or "microservices".
- Keep Mermaid diagrams as raw Mermaid text strings (no fences).
- c4_context and c4_component are Mermaid flowcharts starting with "flowchart" or "graph" and \
containing relationship arrows (-->). sequence starts with "sequenceDiagram" and contains \
message arrows (->>).
- Never emit standalone lines wrapped with |...| in flowchart bodies.
- If in_scope is false: message must say the request is out of scope and suggest asking for \
an app or system; all other fields may be empty.
- If in_scope is true: always provide the full architecture.
- Be concise but complete.
"""

FIX_JSON_SYSTEM_PROMPT = """\
Fix the provided JSON so it exactly matches the required schema.
Rules:
- Return JSON ONLY.
- Keep the same intent as the original.
- Do not add extra keys.
- Ensure all required keys exist with correct types.
"""

FIX_MERMAID_SYSTEM_PROMPT = """\
Fix Mermaid diagram syntax in the provided JSON while keeping the same architecture intent.
Rules:
- Return JSON ONLY.
- Keep all top-level keys exactly as required by schema, and keep every non-diagram field unchanged.
- Fix diagrams.mermaid.c4_context and diagrams.mermaid.c4_component as valid Mermaid \
flowchart/graph syntax.
- Fix diagrams.mermaid.sequence as valid Mermaid sequenceDiagram syntax.
- Do not use markdown fences.
- Do not use standalone lines wrapped with |...| (invalid in Mermaid flowchart bodies).
"""


def system_prompt() -> str:
    """SYSTEM_PROMPT plus the guidance checklist when enabled."""
    guidance = load_guidance()
    if not guidance:
        return SYSTEM_PROMPT
    return (
        SYSTEM_PROMPT
        + "\n## Architectural Design Guidelines\n"
        "Apply the following guidelines WHERE APPLICABLE to the system being designed. "
        "Do not force-fit patterns that don't apply.\n\n"
        f"{guidance}"
    )


def build_user_prompt(model: RequirementModel) -> str:
    """Render a normalized RequirementModel as the user request text."""
    nfrs = "; ".join(f"{k}={v}" for k, v in model.nfrs.items())
    return "\n".join([
        "Design the architecture for the following system.",
        "",
        f"Goal: {model.goal}",
        f"Actors: {', '.join(model.actors)}",
        f"Features: {', '.join(model.features)}",
        f"Integrations: {', '.join(model.integrations)}",
        f"Data Entities: {', '.join(model.data_entities)}",
        f"Constraints: {', '.join(model.constraints)}",
        f"NFR: {nfrs}",
        f"Key Flows: {', '.join(model.key_flows)}",
    ])


def primary_messages(prompt: str) -> list[dict]:
    return [
        {"role": "system", "content": system_prompt()},
        {"role": "user", "content": prompt},
    ]


def structural_repair_messages(prompt: str, failure: str, raw_text: str) -> list[dict]:
    return [
        {"role": "system", "content": system_prompt()},
        {"role": "system", "content": FIX_JSON_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"Original user prompt:\n{prompt}\n\n"
                f"Validation issue:\n{failure}\n\n"
                f"Invalid JSON text:\n{raw_text}"
            ),
        },
    ]


def diagram_repair_messages(prompt: str, violations: list[str], current: dict) -> list[dict]:
    return [
        {"role": "system", "content": system_prompt()},
        {"role": "system", "content": FIX_MERMAID_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"Original user prompt:\n{prompt}\n\n"
                "Mermaid validation issues:\n" + "\n".join(violations) + "\n\n"
                f"Current JSON:\n{json.dumps(current)}"
            ),
        },
    ]
