"""ArchAgent: Streamlit UI for generating a validated architecture document from a prompt."""

import sys
from pathlib import Path

# Add project root to path so 'archagent' package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

import json

import streamlit as st

from archagent.client import OllamaClient
from archagent.config import get_config
from archagent.contract import ArchitectResponse, response_json_schema
from archagent.errors import ArchAgentError, GenerationError
from archagent.graph import RepairOrchestrator
from archagent.utils.diagrams import create_renderer
from archagent.utils.formatter import DIAGRAM_FILES, STYLE_LABELS

st.set_page_config(page_title="ArchAgent", layout="wide")
st.title("ArchAgent")
st.markdown(
    "Turns a plain-language product description into a validated architecture document. "
    "A local model drafts the response, which is checked against a strict JSON contract "
    "and repaired at most twice (once for structure, once for Mermaid diagrams)."
)

st.divider()

product_prompt = st.text_area(
    "Describe the system:",
    height=200,
    placeholder="e.g. A booking platform for dog groomers with Stripe payments and SMS reminders",
)

model_name = st.text_input("Model", value=get_config()["generation_model"])


@st.cache_resource
def _renderer():
    return create_renderer()


def _render_list(title: str, items: list[str]) -> None:
    st.markdown(f"**{title}**")
    if not items:
        st.markdown("*None.*")
        return
    st.markdown("\n".join(f"- {item}" for item in items))


def _render_components_table(response: ArchitectResponse) -> str:
    """Build a markdown table of components."""
    components = response.architecture.components
    if not components:
        return "*No components.*"

    lines = [
        "| Component | Responsibility | Tech options | Interfaces |",
        "|-----------|----------------|--------------|------------|",
    ]
    for c in components:
        responsibility = c.responsibility.replace("|", "\\|")
        lines.append(
            f"| {c.name} | {responsibility} | {', '.join(c.tech_options)} | "
            f"{', '.join(c.interfaces)} |"
        )
    return "\n".join(lines)


def _render_response(response: ArchitectResponse, calls: int, repairs: list[str]) -> None:
    """Render the validated response (summary, components, diagrams, download)."""
    if not response.scope_check.in_scope:
        st.warning(f"Out of scope: {response.scope_check.message}")
        return

    repaired = f", repairs: {', '.join(repairs)}" if repairs else ""
    st.success(f"Valid architecture after {calls} generation call(s){repaired}.")

    arch = response.architecture
    st.subheader(response.interpreted_product.one_liner or "Architecture")
    st.markdown(f"**Style:** {STYLE_LABELS.get(arch.style, arch.style)}")
    _render_list("Rationale", arch.rationale)

    st.markdown("### Components")
    st.markdown(_render_components_table(response))

    col_a, col_b = st.columns(2)
    with col_a:
        _render_list("Security", arch.security)
        _render_list("Observability", arch.observability)
    with col_b:
        _render_list("Deployment", arch.deployment)
        _render_list("Tradeoffs", response.recommendations.tradeoffs)

    st.markdown("### Diagrams")
    mermaid = response.diagrams.mermaid
    rendered = _renderer().render_all({
        key: (kind, getattr(mermaid, key)) for key, (kind, _) in DIAGRAM_FILES.items()
    })
    for key, diagram in rendered.items():
        with st.expander(DIAGRAM_FILES[key][1], expanded=key == "c4_context"):
            if not diagram.ok:
                st.warning(diagram.error)
            st.code(diagram.source, language="mermaid")

    if response.questions:
        _render_list("Open questions", response.questions)

    st.download_button(
        label="Download response JSON",
        data=json.dumps(response.model_dump(), indent=2),
        file_name="architecture.json",
        mime="application/json",
    )


if st.button("Generate architecture", type="primary"):
    if not product_prompt or not product_prompt.strip():
        st.error("Please enter a non-empty description.")
        st.stop()

    client = OllamaClient(model=model_name or None, response_format=response_json_schema())
    try:
        with st.status("Generating architecture...", expanded=False) as status_widget:
            outcome = RepairOrchestrator(client).run(product_prompt)
            status_widget.update(label="Generation complete", state="complete")
    except GenerationError as exc:
        st.error(f"Generation service error ({exc.kind.value}): {exc.message}")
        st.stop()
    except ArchAgentError as exc:
        st.error(f"{exc.kind.value}: {exc.message}")
        st.stop()
    finally:
        client.close()

    st.session_state["archagent_outcome"] = outcome

outcome = st.session_state.get("archagent_outcome")
if outcome is not None:
    _render_response(outcome.response, outcome.calls, outcome.repairs)
