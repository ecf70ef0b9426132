"""Architecture Response Contract and the validator that enforces it.

Every field is required, no extra keys are allowed and types are strict (no coercion).
A response that fails is discarded whole. It is never partially trusted.
"""

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from archagent.errors import ContractViolationError, StructuralParseError
from archagent.utils.diagrams import flowchart_violations, normalize_diagram, sequence_violations
from archagent.utils.parsing import strip_fences


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class ScopeCheck(_Strict):
    in_scope: bool
    message: str


class InterpretedProduct(_Strict):
    one_liner: str
    assumptions: list[str]


class Requirements(_Strict):
    actors: list[str]
    features: list[str]
    constraints: list[str]
    integrations: list[str]
    data_entities: list[str]
    key_flows: list[str]


class Component(_Strict):
    name: str
    responsibility: str
    tech_options: list[str]
    interfaces: list[str]


class DataDesign(_Strict):
    storage: list[str]
    schema_notes: list[str]
    events: list[str]


class Architecture(_Strict):
    style: Literal["modular_monolith", "microservices"]
    rationale: list[str]
    components: list[Component]
    data: DataDesign
    security: list[str]
    observability: list[str]
    deployment: list[str]


class NfrGroup(_Strict):
    category: str
    items: list[str]


class MermaidDiagrams(_Strict):
    c4_context: str
    c4_component: str
    sequence: str


class Diagrams(_Strict):
    mermaid: MermaidDiagrams


class Recommendations(_Strict):
    next_steps: list[str]
    tradeoffs: list[str]
    risks: list[str]


class ArchitectResponse(_Strict):
    scope_check: ScopeCheck
    interpreted_product: InterpretedProduct
    requirements: Requirements
    architecture: Architecture
    nfrs: list[NfrGroup]
    diagrams: Diagrams
    recommendations: Recommendations
    questions: list[str]


def _inline_refs(node, defs: dict):
    if isinstance(node, dict):
        if "$ref" in node:
            return _inline_refs(defs[node["$ref"].rsplit("/", 1)[-1]], defs)
        return {k: _inline_refs(v, defs) for k, v in node.items() if k != "$defs"}
    if isinstance(node, list):
        return [_inline_refs(v, defs) for v in node]
    return node


def response_json_schema() -> dict:
    """JSON schema of the contract with all $refs inlined (used as Ollama's ``format``)."""
    schema = ArchitectResponse.model_json_schema()
    return _inline_refs(schema, schema.get("$defs", {}))


def validate_response(raw: str) -> ArchitectResponse:
    """Parse ``raw`` generated text against the contract.

    Raises StructuralParseError if the text is not JSON, and ContractViolationError
    naming the first offending path otherwise.
    """
    text = strip_fences(raw or "")
    try:
        json.loads(text)
    except json.JSONDecodeError as exc:
        raise StructuralParseError(str(exc)) from exc

    # JSON-mode validation: strict types, nested objects accepted as JSON objects
    try:
        return ArchitectResponse.model_validate_json(text)
    except ValidationError as exc:
        first = exc.errors()[0]
        path = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ContractViolationError(path, first["msg"]) from exc


def normalize_response_diagrams(response: ArchitectResponse) -> ArchitectResponse:
    """Return a copy with fences/language tags stripped from the three diagram strings."""
    mermaid = response.diagrams.mermaid
    return response.model_copy(update={
        "diagrams": Diagrams(mermaid=MermaidDiagrams(
            c4_context=normalize_diagram(mermaid.c4_context),
            c4_component=normalize_diagram(mermaid.c4_component),
            sequence=normalize_diagram(mermaid.sequence),
        )),
    })


def diagram_violations(response: ArchitectResponse) -> list[str]:
    """Syntax violations across all three diagrams; out-of-scope responses are exempt."""
    if not response.scope_check.in_scope:
        return []
    mermaid = response.diagrams.mermaid
    return [
        *flowchart_violations("c4_context", mermaid.c4_context),
        *flowchart_violations("c4_component", mermaid.c4_component),
        *sequence_violations(mermaid.sequence),
    ]
