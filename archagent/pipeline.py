"""Pipeline: one sequential run from input file to scored artifacts.

normalize → heuristic decision → (optional) generation + repair → merge →
render/write → quality check.
"""

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path

from archagent.agents.architect import build_user_prompt
from archagent.client import OllamaClient
from archagent.config import get_config
from archagent.contract import ArchitectResponse, response_json_schema, validate_response
from archagent.errors import GenerationError, InvalidInputError
from archagent.graph import RepairOrchestrator
from archagent.heuristics import decide, normalize_model
from archagent.models import ArchitectureDecision, Assumption, QualityReport, RequirementModel
from archagent.parsers import parse_input
from archagent.utils.diagrams import DiagramRenderer, create_renderer
from archagent.utils.formatter import (
    make_run_dir,
    render_component_diagram,
    render_context_diagram,
    render_sequence_diagram,
    write_artifacts,
)
from archagent.utils.merge import decision_from_response, merge_decisions
from archagent.utils.quality import validate_quality

MODES = ("auto", "generation", "heuristic")
_MODE_ALIASES = {"ollama": "generation"}

_TECH_OPTIONS = {
    "web": ["React", "Vue"],
    "api": ["FastAPI", "Spring Boot", "ASP.NET Core"],
    "db": ["PostgreSQL", "MySQL"],
    "broker": ["RabbitMQ", "Kafka"],
}


@dataclass
class RunResult:
    output_root: Path
    decision: ArchitectureDecision
    response: ArchitectResponse
    source: str  # "generated" or "heuristic"
    quality: QualityReport
    warnings: list[str] = field(default_factory=list)
    generation_calls: int = 0


def resolve_mode(mode: str | None) -> str:
    value = (mode or get_config().get("mode", "auto")).strip().lower()
    value = _MODE_ALIASES.get(value, value)
    if value not in MODES:
        raise InvalidInputError(f"Invalid mode '{mode}'. Use {'|'.join(MODES)}")
    return value


def heuristic_response(
    model: RequirementModel,
    decision: ArchitectureDecision,
    assumptions: list[Assumption],
) -> ArchitectResponse:
    """Synthesize a contract-valid ArchitectResponse from the heuristic decision.

    Goes through validate_response so heuristic and generated runs render from the
    same kind of value.
    """
    deployment = ["Containerized services with environment-specific configuration."]
    if decision.use_load_balancer:
        deployment.append("Load balancer in front of horizontally scaled, stateless API instances.")
    if decision.style == "microservices":
        deployment.append("Independent build and deployment pipeline per service.")

    data = {
        "scope_check": {
            "in_scope": True,
            "message": "Architecture derived from deterministic heuristics.",
        },
        "interpreted_product": {"one_liner": model.goal, "assumptions": []},
        "requirements": {
            "actors": model.actors,
            "features": model.features,
            "constraints": model.constraints,
            "integrations": model.integrations,
            "data_entities": model.data_entities,
            "key_flows": model.key_flows,
        },
        "architecture": {
            "style": decision.style if decision.style != "hybrid" else "modular_monolith",
            "rationale": decision.rationale,
            "components": [
                {
                    "name": c.name,
                    "responsibility": "; ".join(c.responsibilities),
                    "tech_options": _TECH_OPTIONS.get(c.type, []),
                    "interfaces": c.interfaces,
                }
                for c in decision.containers
            ],
            "data": {
                "storage": ["Relational database as the system of record."],
                "schema_notes": [f"{entity}: owned by the API" for entity in model.data_entities],
                "events": (
                    ["EntityCreated", "EntityUpdated", "EntityDeleted"]
                    if decision.use_message_broker else []
                ),
            },
            "security": [
                "JWT-based authentication, RBAC, and least-privilege access to data.",
                "TLS for all external communication and secrets managed outside source control.",
            ],
            "observability": [
                "Centralized logging, tracing for key flows, and dashboards for errors/latency.",
            ],
            "deployment": deployment,
        },
        "nfrs": [{"category": k, "items": [v]} for k, v in model.nfrs.items()],
        "diagrams": {
            "mermaid": {
                "c4_context": render_context_diagram(model),
                "c4_component": render_component_diagram(model, decision),
                "sequence": render_sequence_diagram(model, decision),
            }
        },
        "recommendations": {
            "next_steps": [
                "Validate assumptions with stakeholders.",
                "Prototype the primary key flow end to end.",
            ],
            "tradeoffs": decision.tradeoffs,
            "risks": [],
        },
        "questions": [f"Confirm {a.field}: {a.assumption_text}" for a in assumptions],
    }
    return validate_response(json.dumps(data))


def run_pipeline(
    input_path: str | Path,
    out_dir: str | Path | None = None,
    mode: str | None = None,
    model: str | None = None,
    client=None,
    renderer: DiagramRenderer | None = None,
) -> RunResult:
    """Run the full pipeline on one input file.

    Transport failures fall back to heuristics in ``auto`` mode and are fatal in
    ``generation`` mode. Contract and diagram failures are always fatal.
    """
    config = get_config()
    mode = resolve_mode(mode)

    assumptions: list[Assumption] = []
    requirements = normalize_model(parse_input(input_path), assumptions)
    heuristic = decide(requirements)

    warnings: list[str] = []
    trace = {
        "model": model or config["generation_model"],
        "mode": mode,
        "generation_used": False,
        "calls": 0,
        "repairs": [],
        "warnings": warnings,
    }
    response = None
    generated = None

    if mode != "heuristic":
        prompt = build_user_prompt(requirements)
        trace["prompt"] = prompt
        owned_client = client is None
        if owned_client:
            client = OllamaClient(model=model, response_format=response_json_schema())
        try:
            outcome = RepairOrchestrator(client).run(prompt)
        except GenerationError as exc:
            if mode == "generation":
                raise
            message = (
                f"Generation unavailable ({exc.kind.value}): {exc.message} "
                "Falling back to heuristics."
            )
            print(f"[archagent] {message}", file=sys.stderr)
            warnings.append(message)
        else:
            trace.update(calls=outcome.calls, repairs=outcome.repairs, response=outcome.raw)
            scope = outcome.response.scope_check
            if scope.in_scope:
                response = outcome.response
                generated = decision_from_response(response)
                trace["generation_used"] = True
            elif mode == "generation":
                raise InvalidInputError(f"Request is out of scope: {scope.message}")
            else:
                message = f"Generation marked the request out of scope ({scope.message}). Falling back to heuristics."
                print(f"[archagent] {message}", file=sys.stderr)
                warnings.append(message)
        finally:
            if owned_client:
                client.close()

    decision = merge_decisions(generated, heuristic, requirements.integrations)
    trace["containers"] = decision.container_names()
    if response is None:
        response = heuristic_response(requirements, heuristic, assumptions)

    renderer = renderer or create_renderer()
    output_root = make_run_dir(out_dir or config["output_root"])
    expected = write_artifacts(
        output_root, requirements, assumptions, decision, response, renderer, trace
    )

    quality = validate_quality(expected, len(assumptions))
    (output_root / "meta" / "quality_report.json").write_text(
        json.dumps(quality.model_dump(), indent=2), encoding="utf-8"
    )

    return RunResult(
        output_root=output_root,
        decision=decision,
        response=response,
        source="generated" if generated is not None else "heuristic",
        quality=quality,
        warnings=warnings,
        generation_calls=trace["calls"],
    )
