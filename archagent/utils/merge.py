"""Decision merger: reconcile a generated ArchitectureDecision with the heuristic one."""

import re

from archagent.contract import ArchitectResponse
from archagent.models import ArchitectureDecision, ContainerSpec

# Styles accepted from the generated side. Widen to include "hybrid" to accept it.
RECOGNIZED_STYLES = frozenset({"modular_monolith", "microservices"})

MANDATORY_CONTAINERS = (
    ContainerSpec(name="Web UI", type="web"),
    ContainerSpec(name="API", type="api"),
    ContainerSpec(name="Database", type="db"),
)

_BROKER_RE = re.compile(r"\b(broker|queue|kafka|rabbitmq|sqs|pub/?sub|event bus)\b", re.IGNORECASE)
_LOAD_BALANCER_RE = re.compile(r"load[- ]?balanc", re.IGNORECASE)

# Container type guessed from a component name
_TYPE_HINTS = (
    (re.compile(r"\b(ui|web|frontend|portal|spa)\b", re.IGNORECASE), "web"),
    (re.compile(r"\b(api|gateway|backend)\b", re.IGNORECASE), "api"),
    (re.compile(r"\b(db|database|postgres\w*|mysql|sql|store)\b", re.IGNORECASE), "db"),
    (re.compile(r"\b(broker|queue|kafka|rabbitmq|bus)\b", re.IGNORECASE), "broker"),
    (re.compile(r"\b(worker|job|scheduler)\b", re.IGNORECASE), "worker"),
    (re.compile(r"\b(storage|bucket|s3|blob)\b", re.IGNORECASE), "storage"),
)


def _guess_type(name: str) -> str:
    for pattern, ctype in _TYPE_HINTS:
        if pattern.search(name):
            return ctype
    return "service"


def decision_from_response(response: ArchitectResponse) -> ArchitectureDecision:
    """Map a validated ArchitectResponse onto an ArchitectureDecision."""
    arch = response.architecture
    containers = [
        ContainerSpec(
            name=c.name,
            type=_guess_type(c.name),
            responsibilities=[c.responsibility] if c.responsibility else [],
            interfaces=list(c.interfaces),
        )
        for c in arch.components
    ]
    component_text = " ".join(f"{c.name} {c.responsibility}" for c in arch.components)
    deployment_text = " ".join(arch.deployment) + " " + component_text

    return ArchitectureDecision(
        style=arch.style,
        rationale=list(arch.rationale),
        containers=containers,
        use_message_broker=bool(arch.data.events) or bool(_BROKER_RE.search(component_text)),
        use_load_balancer=bool(_LOAD_BALANCER_RE.search(deployment_text)),
        tradeoffs=list(response.recommendations.tradeoffs),
    )


def merge_decisions(
    generated: ArchitectureDecision | None,
    heuristic: ArchitectureDecision,
    integrations: list[str],
    recognized_styles: frozenset[str] = RECOGNIZED_STYLES,
) -> ArchitectureDecision:
    """Merge policy.

    - style: generated if recognized, else heuristic.
    - broker / load balancer flags: logical OR of both sources.
    - containers: generated ∪ mandatory ∪ broker (if merged flag) ∪ one External per
      integration; de-duplicated case-insensitively, sorted by name.
    - tradeoffs: generated if non-empty, else heuristic. Never concatenated.
    """
    if generated is None:
        return heuristic

    style = generated.style if generated.style in recognized_styles else heuristic.style
    use_broker = generated.use_message_broker or heuristic.use_message_broker
    use_lb = generated.use_load_balancer or heuristic.use_load_balancer

    candidates = list(generated.containers) + list(MANDATORY_CONTAINERS)
    if use_broker:
        candidates.append(ContainerSpec(name="Message Broker", type="broker"))
    candidates.extend(
        ContainerSpec(name=f"External: {i}", type="external") for i in integrations
    )

    # First occurrence wins, so generated details survive over bare mandatory entries
    by_name: dict[str, ContainerSpec] = {}
    for container in candidates:
        by_name.setdefault(container.name.casefold(), container)
    containers = sorted(by_name.values(), key=lambda c: c.name)

    rationale = list(generated.rationale)
    if style != generated.style:
        rationale = list(heuristic.rationale)

    return ArchitectureDecision(
        style=style,
        rationale=rationale,
        containers=containers,
        use_message_broker=use_broker,
        use_load_balancer=use_lb,
        tradeoffs=list(generated.tradeoffs) if generated.tradeoffs else list(heuristic.tradeoffs),
    )
