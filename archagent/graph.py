"""LangGraph StateGraph for the generation → validation → repair chain.

The graph has no back edges, so a run issues at most three generation calls:

    generate ──valid──────────────→ check_diagrams ──ok──→ END
        └──invalid→ structural_repair ──┘      └──errors→ diagram_repair → END

Each repair node is terminal on failure (it raises). Transport retry lives in the
client and is counted separately.
"""

import sys
from dataclasses import dataclass, field

from langgraph.graph import END, StateGraph

from archagent.agents.architect import (
    diagram_repair_messages,
    primary_messages,
    structural_repair_messages,
)
from archagent.contract import (
    ArchitectResponse,
    diagram_violations,
    normalize_response_diagrams,
    validate_response,
)
from archagent.errors import CombinedDiagramError, ContractViolationError, StructuralParseError
from archagent.state import RepairState
from archagent.utils.validator import validate_input


@dataclass
class RepairOutcome:
    response: ArchitectResponse
    calls: int
    repairs: list[str] = field(default_factory=list)
    raw: str = ""


def _validate_after_repair(raw: str, stage: str) -> ArchitectResponse:
    """Validate a repaired response; any failure is terminal and surfaces as a contract violation."""
    try:
        return validate_response(raw)
    except StructuralParseError as exc:
        raise ContractViolationError(
            "<root>", f"not valid JSON after one {stage} repair attempt ({exc.detail})"
        ) from exc
    except ContractViolationError as exc:
        raise ContractViolationError(
            exc.path, f"{exc.detail} (after one {stage} repair attempt)"
        ) from exc


def _route_after_generate(state: RepairState) -> str:
    return "check_diagrams" if state["response"] is not None else "structural_repair"


def _route_after_check(state: RepairState) -> str:
    return "end" if not state["diagram_errors"] else "diagram_repair"


class RepairOrchestrator:
    """Drive one generation run through at most two repair escalations.

    ``client`` needs a single method, ``invoke(messages) -> str``.
    """

    def __init__(self, client):
        self.client = client
        self.graph = self._build_graph()

    def _build_graph(self):
        workflow = StateGraph(RepairState)

        workflow.add_node("generate", self._generate)
        workflow.add_node("structural_repair", self._structural_repair)
        workflow.add_node("check_diagrams", self._check_diagrams)
        workflow.add_node("diagram_repair", self._diagram_repair)

        workflow.set_entry_point("generate")

        workflow.add_conditional_edges(
            "generate",
            _route_after_generate,
            {
                "check_diagrams": "check_diagrams",
                "structural_repair": "structural_repair",
            },
        )
        workflow.add_edge("structural_repair", "check_diagrams")
        workflow.add_conditional_edges(
            "check_diagrams",
            _route_after_check,
            {
                "end": END,
                "diagram_repair": "diagram_repair",
            },
        )
        workflow.add_edge("diagram_repair", END)

        return workflow.compile()

    # --- Nodes ---

    def _generate(self, state: RepairState) -> dict:
        raw = self.client.invoke(primary_messages(state["prompt"]))
        try:
            response = validate_response(raw)
        except (StructuralParseError, ContractViolationError) as exc:
            print(f"[archagent] Structural validation failed: {exc}. Requesting repair.",
                  file=sys.stderr)
            return {"raw": raw, "response": None, "failure": exc.message,
                    "calls": state["calls"] + 1}
        return {"raw": raw, "response": response, "failure": "",
                "calls": state["calls"] + 1, "status": "structurally_valid"}

    def _structural_repair(self, state: RepairState) -> dict:
        raw = self.client.invoke(
            structural_repair_messages(state["prompt"], state["failure"], state["raw"])
        )
        response = _validate_after_repair(raw, "structural")
        return {
            "raw": raw,
            "response": response,
            "failure": "",
            "calls": state["calls"] + 1,
            "repairs": state["repairs"] + ["structural"],
            "status": "structurally_valid",
        }

    def _check_diagrams(self, state: RepairState) -> dict:
        response = normalize_response_diagrams(state["response"])
        errors = diagram_violations(response)
        if errors:
            print(f"[archagent] {len(errors)} diagram issue(s): {'; '.join(errors)}. "
                  "Requesting diagram repair.", file=sys.stderr)
            return {"response": response, "diagram_errors": errors}
        return {"response": response, "diagram_errors": [], "status": "success"}

    def _diagram_repair(self, state: RepairState) -> dict:
        """Diagram-only fix: every field except ``diagrams`` is kept from the current value."""
        current = state["response"]
        raw = self.client.invoke(
            diagram_repair_messages(state["prompt"], state["diagram_errors"], current.model_dump())
        )
        repaired = _validate_after_repair(raw, "diagram")
        if repaired.scope_check.in_scope != current.scope_check.in_scope:
            raise ContractViolationError(
                "scope_check.in_scope", "changed during diagram repair attempt"
            )
        response = normalize_response_diagrams(
            current.model_copy(update={"diagrams": repaired.diagrams})
        )
        errors = diagram_violations(response)
        if errors:
            raise CombinedDiagramError(errors)
        return {
            "raw": raw,
            "response": response,
            "diagram_errors": [],
            "calls": state["calls"] + 1,
            "repairs": state["repairs"] + ["diagram"],
            "status": "success",
        }

    # --- Entry point ---

    def run(self, prompt: str) -> RepairOutcome:
        """Generate, validate and repair. Raises on empty prompt or exhausted repairs."""
        validated = validate_input(prompt)

        state: RepairState = {
            "prompt": validated,
            "raw": "",
            "response": None,
            "failure": "",
            "diagram_errors": [],
            "calls": 0,
            "repairs": [],
            "status": "pending",
        }
        final_state = self.graph.invoke(state)

        return RepairOutcome(
            response=final_state["response"],
            calls=final_state["calls"],
            repairs=final_state["repairs"],
            raw=final_state["raw"],
        )


def generate_architecture(prompt: str, client) -> ArchitectResponse:
    """Convenience wrapper: run the repair chain and return only the validated response."""
    return RepairOrchestrator(client).run(prompt).response
