"""Distilled architectural guidance for injection into the Architect prompt."""

# Imperative rules for LLM consumption. Keep each rule to one concern.
_GUIDANCE_RULES = """\
- Name every component after its responsibility; each component owns one bounded context.
- Give every component at least one interface (REST, Events, SQL, gRPC, S3, SMTP).
- Route asynchronous work (notifications, audit trails, event fan-out) through a message \
broker and list the events under architecture.data.events.
- When availability targets are 99.9% or higher, place the API tier behind a load balancer \
and say so in architecture.deployment.
- Represent every third-party integration as an external system in the context diagram.
- Cover authentication, authorization, secrets handling and transport security in \
architecture.security.
- Include observability: structured logs with correlation IDs, metrics, and tracing for key flows.
- The sequence diagram must follow the most important key flow end to end.\
"""


def load_guidance() -> str:
    """Return the distilled architectural guidance rules.

    Returns an empty string if guidance is disabled in config
    (set guidance_enabled to false or remove it).
    """
    from archagent.config import get_config

    config = get_config()
    if not config.get("guidance_enabled", False):
        return ""

    return _GUIDANCE_RULES
