"""Heuristic decision engine: deterministic architecture decisions from a RequirementModel.

Two pure steps:
- normalize_model fills gaps with documented defaults (one Assumption per gap),
  then trims, de-duplicates (case-insensitive) and sorts every list field.
- decide applies fixed thresholds and keyword rules. No external calls.
"""

from archagent.models import ArchitectureDecision, Assumption, ContainerSpec, RequirementModel

BROKER_KEYWORDS = ("event", "audit", "notification", "queue", "message")
LOAD_BALANCER_KEYWORDS = ("high availability", "ha", "99.9", "redund")

MICROSERVICES_TRADEOFF = (
    "Improved scalability and independent deployment at the cost of higher operational complexity."
)
MONOLITH_TRADEOFF = (
    "Simpler deployment and development flow at the cost of limited independent scaling."
)

DEFAULT_GOAL = "Deliver the core business capabilities with a simple web-based experience."
DEFAULT_ACTORS = ["End User", "Admin"]
DEFAULT_FEATURES = [
    "Create, read, update, and delete records",
    "Search and filtering",
    "Basic reporting",
]
DEFAULT_DATA_ENTITIES = ["User", "PrimaryDomainEntity", "AuditLog"]
DEFAULT_NFRS = {
    "Security": "JWT auth, RBAC, and audit logging.",
    "Availability": "Target 99.5% uptime.",
    "Performance": "Typical responses under 500ms.",
}

_LIST_FIELDS = ("actors", "features", "constraints", "integrations", "data_entities", "key_flows")


def _clean_list(items: list[str]) -> list[str]:
    """Trim, drop blanks, de-duplicate case-insensitively (first wins), sort."""
    seen: set[str] = set()
    result = []
    for item in items:
        value = item.strip()
        if not value or value.casefold() in seen:
            continue
        seen.add(value.casefold())
        result.append(value)
    return sorted(result)


def _clean_nfrs(nfrs: dict[str, str]) -> dict[str, str]:
    """Trim keys/values, drop blank keys, merge keys case-insensitively (last wins)."""
    merged: dict[str, tuple[str, str]] = {}
    for key, value in nfrs.items():
        k = key.strip()
        if not k:
            continue
        merged[k.casefold()] = (merged.get(k.casefold(), (k, ""))[0], value.strip())
    return {k: v for k, v in sorted(merged.values())}


def normalize_model(model: RequirementModel, assumptions: list[Assumption]) -> RequirementModel:
    """Return a normalized copy of ``model``, appending an Assumption for each default applied.

    Idempotent: an already-normalized model comes back identical and adds no assumptions.
    """
    data = {name: _clean_list(getattr(model, name)) for name in _LIST_FIELDS}
    data["goal"] = model.goal.strip()
    data["nfrs"] = _clean_nfrs(model.nfrs)

    if not data["goal"]:
        assumptions.append(Assumption(
            field="goal",
            assumption_text="Provide a clear business outcome for the system.",
            reason="Input missing a goal section.",
        ))
        data["goal"] = DEFAULT_GOAL

    if not data["actors"]:
        assumptions.append(Assumption(
            field="actors",
            assumption_text="Primary end users and system administrators.",
            reason="No actors specified.",
        ))
        data["actors"] = _clean_list(DEFAULT_ACTORS)

    if not data["features"]:
        assumptions.append(Assumption(
            field="features",
            assumption_text="Basic CRUD and reporting features.",
            reason="No core features provided.",
        ))
        data["features"] = _clean_list(DEFAULT_FEATURES)

    if not data["data_entities"]:
        assumptions.append(Assumption(
            field="data_entities",
            assumption_text="Primary domain entities and user accounts stored in a relational database.",
            reason="Data section missing.",
        ))
        data["data_entities"] = _clean_list(DEFAULT_DATA_ENTITIES)

    if not data["nfrs"]:
        assumptions.append(Assumption(
            field="nfrs",
            assumption_text="Baseline security, performance, and availability requirements.",
            reason="No NFRs provided.",
        ))
        data["nfrs"] = _clean_nfrs(DEFAULT_NFRS)

    return RequirementModel(**data)


def _external_container(integration: str) -> ContainerSpec:
    return ContainerSpec(
        name=f"External: {integration}",
        type="external",
        responsibilities=[f"Third-party capability provided by {integration}"],
        interfaces=["REST"],
    )


def decide(model: RequirementModel) -> ArchitectureDecision:
    """Derive style, topology and tradeoffs from a normalized model."""
    integration_count = len(model.integrations)
    feature_count = len(model.features)
    rationale = []

    if integration_count >= 3 or (integration_count >= 2 and feature_count >= 8):
        style = "microservices"
        rationale.append(
            f"{integration_count} integrations and {feature_count} features justify "
            "independently deployable services."
        )
    else:
        style = "modular_monolith"
        rationale.append(
            f"{integration_count} integrations and {feature_count} features fit a single "
            "deployable with clear module boundaries."
        )

    keyword_source = (
        " ".join(model.features).lower() + " " + " ".join(model.integrations).lower()
    )
    use_broker = any(k in keyword_source for k in BROKER_KEYWORDS)
    if use_broker:
        rationale.append("Event, audit, notification or messaging needs call for a message broker.")

    nfr_text = " ".join(f"{k} {v}" for k, v in model.nfrs.items()).lower()
    use_lb = any(k in nfr_text for k in LOAD_BALANCER_KEYWORDS)
    if use_lb:
        rationale.append("Availability requirements call for a load-balanced API tier.")

    containers = [
        ContainerSpec(name="Web UI", type="web",
                      responsibilities=["User experience, validation, and session handling"],
                      interfaces=["HTTPS"]),
        ContainerSpec(name="API", type="api",
                      responsibilities=["Core business logic, integrations, and orchestration"],
                      interfaces=["REST"]),
        ContainerSpec(name="Database", type="db",
                      responsibilities=["System of record for domain data"],
                      interfaces=["SQL"]),
    ]
    if use_broker:
        containers.append(ContainerSpec(
            name="Message Broker", type="broker",
            responsibilities=["Asynchronous events for notifications and audit trails"],
            interfaces=["Events"],
        ))
    containers.extend(_external_container(i) for i in model.integrations)

    tradeoff = MICROSERVICES_TRADEOFF if style == "microservices" else MONOLITH_TRADEOFF

    return ArchitectureDecision(
        style=style,
        rationale=rationale,
        containers=containers,
        use_message_broker=use_broker,
        use_load_balancer=use_lb,
        tradeoffs=[tradeoff],
    )
