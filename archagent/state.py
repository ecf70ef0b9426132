"""Repair state: single source of truth passed through the repair graph."""

from typing import Literal, Optional, TypedDict

from archagent.contract import ArchitectResponse


class RepairState(TypedDict):
    prompt: str  # Original user request. Immutable after init.
    raw: str  # Latest raw text returned by the generation service.
    response: Optional[ArchitectResponse]  # Latest structurally valid response, if any.
    failure: str  # Structural failure detail from the last validation.
    diagram_errors: list[str]  # Diagram violations from the last check.
    calls: int  # Generation calls issued so far. Never exceeds 3.
    repairs: list[str]  # Escalations taken, in order: "structural", "diagram".
    status: Literal["pending", "structurally_valid", "success"]
