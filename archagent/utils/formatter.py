"""Output Formatter: renders the final architecture document and writes the run artifacts.

Layout under ``<out>/<run-id>/``:
    diagrams/  c4_context.mmd, c4_container.mmd, sequence_key_flow.mmd
    docs/      architecture_summary.md, adr_001.md, nfr_checklist.md,
               api_contract_outline.md, risk_register.md
    meta/      extracted_model.json, assumptions.json, prompt_trace.md, quality_report.json
"""

import json
import re
from datetime import datetime
from pathlib import Path

from archagent.contract import ArchitectResponse
from archagent.models import ArchitectureDecision, Assumption, RequirementModel
from archagent.utils.diagrams import DiagramRenderer, RenderedDiagram
from archagent.utils.redaction import redact

DIAGRAM_FILES = {
    "c4_context": ("flowchart", "c4_context.mmd"),
    "c4_component": ("flowchart", "c4_container.mmd"),
    "sequence": ("sequence", "sequence_key_flow.mmd"),
}
DOC_FILES = (
    "architecture_summary.md",
    "adr_001.md",
    "nfr_checklist.md",
    "api_contract_outline.md",
    "risk_register.md",
)
META_FILES = ("extracted_model.json", "assumptions.json", "prompt_trace.md")

STYLE_LABELS = {
    "modular_monolith": "modular monolith",
    "microservices": "microservices",
    "hybrid": "hybrid",
}


def _alias(name: str, prefix: str = "") -> str:
    cleaned = re.sub(r"[^A-Za-z0-9]", "", name) or "Node"
    if cleaned[0].isdigit():
        cleaned = "n" + cleaned
    return prefix + cleaned


def _label(value: str) -> str:
    return value.replace('"', "'")


# --- Mermaid diagrams built from the heuristic decision ---


def render_context_diagram(model: RequirementModel) -> str:
    lines = ["flowchart LR", '    System["System"]']
    for actor in model.actors:
        lines.append(f'    {_alias(actor, "actor_")}(["{_label(actor)}"]) -->|uses| System')
    for integration in model.integrations:
        lines.append(f'    System -.->|integrates| {_alias(integration, "ext_")}["{_label(integration)}"]')
    return "\n".join(lines)


def render_component_diagram(model: RequirementModel, decision: ArchitectureDecision) -> str:
    lines = [
        "flowchart TB",
        '    subgraph system["System"]',
        '        WebUI["Web UI"]',
        '        API["API"]',
        '        DB[("Database")]',
    ]
    if decision.use_message_broker:
        lines.append('        Broker[["Message Broker"]]')
    lines.append("    end")

    if decision.use_load_balancer:
        lines.append('    LB["Load Balancer"]')
        lines.append("    WebUI -->|HTTPS| LB")
        lines.append("    LB -->|HTTPS| API")
    else:
        lines.append("    WebUI -->|HTTPS| API")
    lines.append("    API -->|SQL| DB")
    if decision.use_message_broker:
        lines.append("    API -->|publish/consume| Broker")
    for integration in model.integrations:
        lines.append(f'    API -.->|REST| {_alias(integration, "ext_")}["{_label(integration)}"]')
    return "\n".join(lines)


def render_sequence_diagram(model: RequirementModel, decision: ArchitectureDecision) -> str:
    flow = model.key_flows[0] if model.key_flows else "Primary request flow"
    lines = [
        "sequenceDiagram",
        "    autonumber",
        "    actor User",
        "    participant WebUI as Web UI",
        "    participant API",
        "    participant DB as Database",
    ]
    if decision.use_message_broker:
        lines.append("    participant Broker as Message Broker")
    if model.integrations:
        first = model.integrations[0]
        lines.append(f"    participant {_alias(first, 'ext_')} as {_label(first)}")

    lines.extend([
        f"    Note over User,API: {_label(flow)}",
        "    User->>WebUI: Submit request",
        "    WebUI->>API: POST /request",
        "    API->>DB: Validate + persist",
        "    DB-->>API: Result",
    ])
    if decision.use_message_broker:
        lines.append("    API->>Broker: Publish event")
    if model.integrations:
        lines.append(f"    API->>{_alias(model.integrations[0], 'ext_')}: Notify/Integrate")
    lines.extend([
        "    API-->>WebUI: Response",
        "    WebUI-->>User: Confirmation",
    ])
    return "\n".join(lines)


# --- Markdown documents ---


def _bullets(items, empty: str = "- None") -> list[str]:
    items = list(items)
    return [f"- {item}" for item in items] if items else [empty]


def _diagram_block(diagram: RenderedDiagram) -> list[str]:
    if not diagram.ok:
        return [f"> _No diagram available ({diagram.name})._ {diagram.error or ''}".rstrip()]
    return ["```mermaid", diagram.source, "```"]


def render_architecture_summary(
    model: RequirementModel,
    decision: ArchitectureDecision,
    response: ArchitectResponse,
    assumptions: list[Assumption],
    diagrams: dict[str, RenderedDiagram],
) -> str:
    lines = ["# Architecture Summary", ""]

    lines.append("## Overview")
    lines.append("")
    lines.append(response.interpreted_product.one_liner or model.goal)
    lines.append("")

    lines.append("## Assumptions")
    lines.append("")
    entries = [f"{a.field}: {a.assumption_text} ({a.reason})" for a in assumptions]
    entries.extend(response.interpreted_product.assumptions)
    lines.extend(_bullets(entries))
    lines.append("")

    lines.append("## Chosen Style + Rationale")
    lines.append("")
    lines.append(f"- Style: **{STYLE_LABELS.get(decision.style, decision.style)}**")
    lines.extend(f"- {reason}" for reason in decision.rationale)
    lines.append("")

    lines.append("## Containers")
    lines.append("")
    for container in decision.containers:
        detail = "; ".join(container.responsibilities)
        suffix = f": {detail}" if detail else ""
        interfaces = f" ({', '.join(container.interfaces)})" if container.interfaces else ""
        lines.append(f"- {container.name}{suffix}{interfaces}")
    if decision.use_load_balancer:
        lines.append("- Load Balancer: distributes traffic across stateless API instances.")
    lines.append("")

    components = response.architecture.components
    if components:
        lines.append("## Components")
        lines.append("")
        for comp in components:
            lines.append(f"### {comp.name}")
            lines.append("")
            lines.append(f"- **Responsibility:** {comp.responsibility}")
            if comp.tech_options:
                lines.append(f"- **Tech options:** {', '.join(comp.tech_options)}")
            if comp.interfaces:
                lines.append(f"- **Interfaces:** {', '.join(comp.interfaces)}")
            lines.append("")

    data = response.architecture.data
    lines.append("## Data")
    lines.append("")
    lines.extend(_bullets(data.storage + data.schema_notes))
    if data.events:
        lines.append("")
        lines.append("**Events:**")
        lines.append("")
        lines.extend(_bullets(data.events))
    lines.append("")

    lines.append("## Diagrams")
    lines.append("")
    for title, key in (("Context", "c4_context"), ("Containers", "c4_component"),
                       ("Key Flow", "sequence")):
        lines.append(f"### {title}")
        lines.append("")
        lines.extend(_diagram_block(diagrams[key]))
        lines.append("")

    for title, items in (
        ("Security Baseline", response.architecture.security),
        ("Observability", response.architecture.observability),
        ("Deployment", response.architecture.deployment),
    ):
        lines.append(f"## {title}")
        lines.append("")
        lines.extend(_bullets(items))
        lines.append("")

    lines.append("## Tradeoffs")
    lines.append("")
    lines.extend(_bullets(decision.tradeoffs))
    lines.append("")

    if response.questions:
        lines.append("## Open Questions")
        lines.append("")
        lines.extend(_bullets(response.questions))
        lines.append("")

    return "\n".join(lines)


def render_adr(model: RequirementModel, decision: ArchitectureDecision) -> str:
    label = STYLE_LABELS.get(decision.style, decision.style)
    lines = [
        "# ADR 001: Architecture Style",
        "",
        "## Status",
        "",
        "Proposed",
        "",
        "## Context",
        "",
        model.goal,
        "",
        "## Options",
        "",
        "- Modular monolith with clear modules",
        "- Microservices with independent deployment and data ownership",
        "",
        "## Decision",
        "",
        f"Choose **{label}** based on current integrations and scope.",
        "",
    ]
    lines.extend(f"- {reason}" for reason in decision.rationale)
    lines.extend(["", "## Consequences", ""])
    lines.extend(_bullets(decision.tradeoffs))
    lines.append("")
    return "\n".join(lines)


_BASELINE_NFR_CHECKLIST = {
    "Security": [
        "JWT auth + RBAC (Priority: High) - enforce least privilege",
        "Secrets management (Priority: High) - use environment/secret store",
        "Audit logging (Priority: Medium) - capture critical actions",
    ],
    "Performance": [
        "Target p95 latency < 500ms (Priority: Medium) - caching & pagination",
        "Load test core flows (Priority: Medium) - baseline throughput",
    ],
    "Availability": [
        "Health checks + alerts (Priority: High) - proactive recovery",
        "Backup/restore drills (Priority: Medium) - verify RPO/RTO",
    ],
    "Observability": [
        "Structured logs (Priority: High) - correlation IDs",
        "Tracing for key flows (Priority: Medium) - end-to-end visibility",
    ],
    "Maintainability": [
        "Clear module boundaries (Priority: High) - ownership and testability",
        "API versioning (Priority: Low) - backward compatibility",
    ],
}


def render_nfr_checklist(model: RequirementModel, response: ArchitectResponse) -> str:
    lines = ["# NFR Checklist", ""]
    groups = {category: list(items) for category, items in _BASELINE_NFR_CHECKLIST.items()}
    for group in response.nfrs:
        groups.setdefault(group.category, []).extend(group.items)

    for category, items in groups.items():
        lines.append(f"## {category}")
        lines.append("")
        lines.extend(f"- [ ] {item}" for item in items)
        lines.append("")

    if model.nfrs:
        lines.append("## Input NFRs")
        lines.append("")
        lines.extend(f"- {k}: {v}" for k, v in model.nfrs.items())
        lines.append("")
    return "\n".join(lines)


def _resource_path(entity: str) -> str:
    slug = re.sub(r"(?<!^)(?=[A-Z])", "-", entity.replace(" ", "")).lower()
    return "/" + re.sub(r"[^a-z0-9-]", "", slug) + "s"


def render_api_contract(model: RequirementModel, response: ArchitectResponse) -> str:
    lines = ["# API / Data Contract Outline", "", "## Endpoints", ""]
    lines.extend(["- GET /health", "- POST /auth/login"])
    for entity in model.data_entities:
        path = _resource_path(entity)
        lines.extend([
            f"- GET {path}",
            f"- POST {path}",
            f"- GET {path}/{{id}}",
            f"- PUT {path}/{{id}}",
            f"- DELETE {path}/{{id}}",
        ])
    lines.extend(["", "## Entities", ""])
    lines.extend(_bullets(model.data_entities))
    lines.extend(["", "## Events", ""])
    events = response.architecture.data.events or ["EntityCreated", "EntityUpdated", "EntityDeleted"]
    lines.extend(_bullets(events))
    lines.extend(["", "## Error Model", "", "- { code, message, correlationId } with HTTP status codes", ""])
    return "\n".join(lines)


_BASELINE_RISKS = [
    ("Scope creep", "Medium", "High", "Keep backlog prioritized and approve changes"),
    ("Integration delays", "Medium", "Medium", "Early contract testing with partners"),
    ("Data quality issues", "Low", "High", "Validation and monitoring on ingestion"),
    ("Security misconfig", "Medium", "High", "Security reviews + automated scanning"),
    ("Performance bottlenecks", "Medium", "Medium", "Load testing + caching"),
    ("Availability gaps", "Low", "High", "HA design + backups"),
    ("Unclear ownership", "Medium", "Medium", "Clear module/service ownership"),
    ("Observability blind spots", "Medium", "Medium", "Tracing + logging standards"),
]


def render_risk_register(response: ArchitectResponse) -> str:
    lines = [
        "# Risk Register",
        "",
        "| Risk | Likelihood | Impact | Mitigation |",
        "| --- | --- | --- | --- |",
    ]
    for risk, likelihood, impact, mitigation in _BASELINE_RISKS:
        lines.append(f"| {risk} | {likelihood} | {impact} | {mitigation} |")
    for risk in response.recommendations.risks:
        lines.append(f"| {risk.replace('|', '/')} | - | - | See recommendations |")
    lines.append("")
    if response.recommendations.next_steps:
        lines.extend(["## Next Steps", ""])
        lines.extend(_bullets(response.recommendations.next_steps))
        lines.append("")
    return "\n".join(lines)


def render_prompt_trace(trace: dict) -> str:
    lines = [
        f"Model: {trace.get('model', '')}",
        f"Mode: {trace.get('mode', '')}",
        f"Generation Used: {trace.get('generation_used', False)}",
        f"Generation Calls: {trace.get('calls', 0)}",
        f"Repairs: {', '.join(trace.get('repairs', [])) or 'none'}",
        f"Containers: {', '.join(trace.get('containers', [])) or 'none'}",
        "",
    ]
    if trace.get("warnings"):
        lines.append("## Warnings")
        lines.extend(f"- {w}" for w in trace["warnings"])
        lines.append("")
    if trace.get("prompt"):
        lines.append("## Prompt")
        lines.append(redact(trace["prompt"]))
        lines.append("")
    if trace.get("response"):
        lines.append("## Response")
        lines.append(redact(trace["response"]))
        lines.append("")
    return "\n".join(lines)


# --- Writing ---


def make_run_dir(out_dir: str | Path) -> Path:
    """Create a fresh, non-conflicting ``<out>/<timestamp>`` directory."""
    base = Path(out_dir)
    run_id = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    output_root = base / run_id
    counter = 1
    while output_root.exists():
        counter += 1
        output_root = base / f"{run_id}_{counter}"
    for sub in ("docs", "diagrams", "meta"):
        (output_root / sub).mkdir(parents=True, exist_ok=True)
    return output_root


def write_artifacts(
    output_root: Path,
    model: RequirementModel,
    assumptions: list[Assumption],
    decision: ArchitectureDecision,
    response: ArchitectResponse,
    renderer: DiagramRenderer,
    trace: dict,
) -> list[Path]:
    """Render every artifact under ``output_root`` and return the expected paths in order."""
    mermaid = response.diagrams.mermaid
    diagrams = renderer.render_all({
        key: (kind, getattr(mermaid, key)) for key, (kind, _) in DIAGRAM_FILES.items()
    })
    for d in diagrams.values():
        if not d.ok:
            trace.setdefault("warnings", []).append(d.error)

    written = []
    for key, (_, filename) in DIAGRAM_FILES.items():
        path = output_root / "diagrams" / filename
        path.write_text(diagrams[key].source + "\n", encoding="utf-8")
        written.append(path)

    docs = {
        "architecture_summary.md": render_architecture_summary(
            model, decision, response, assumptions, diagrams
        ),
        "adr_001.md": render_adr(model, decision),
        "nfr_checklist.md": render_nfr_checklist(model, response),
        "api_contract_outline.md": render_api_contract(model, response),
        "risk_register.md": render_risk_register(response),
    }
    for filename in DOC_FILES:
        path = output_root / "docs" / filename
        path.write_text(docs[filename], encoding="utf-8")
        written.append(path)

    meta = {
        "extracted_model.json": json.dumps(model.model_dump(), indent=2),
        "assumptions.json": json.dumps([a.model_dump() for a in assumptions], indent=2),
        "prompt_trace.md": render_prompt_trace(trace),
    }
    for filename in META_FILES:
        path = output_root / "meta" / filename
        path.write_text(meta[filename], encoding="utf-8")
        written.append(path)

    return written
