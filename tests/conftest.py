"""Shared fixtures for the archagent test suite."""

import pytest
from unittest.mock import patch


@pytest.fixture
def valid_response():
    """Complete contract-valid response dict (in scope, diagrams pass every check)."""
    return {
        "scope_check": {"in_scope": True, "message": "Looks like a web product."},
        "interpreted_product": {
            "one_liner": "Booking platform for dog groomers",
            "assumptions": ["Single region deployment"],
        },
        "requirements": {
            "actors": ["Customer", "Groomer"],
            "features": ["Book appointment", "Send reminders"],
            "constraints": [],
            "integrations": ["Stripe", "Twilio"],
            "data_entities": ["Appointment", "Customer"],
            "key_flows": ["Customer books an appointment"],
        },
        "architecture": {
            "style": "modular_monolith",
            "rationale": ["Small team, two integrations."],
            "components": [
                {
                    "name": "Booking API",
                    "responsibility": "Appointments and payments",
                    "tech_options": ["FastAPI"],
                    "interfaces": ["REST"],
                },
                {
                    "name": "Web UI",
                    "responsibility": "Customer booking pages",
                    "tech_options": ["React"],
                    "interfaces": ["HTTPS"],
                },
            ],
            "data": {
                "storage": ["PostgreSQL"],
                "schema_notes": ["Appointment belongs to Customer"],
                "events": [],
            },
            "security": ["OIDC login"],
            "observability": ["Structured logs"],
            "deployment": ["Single container on a PaaS"],
        },
        "nfrs": [{"category": "Performance", "items": ["p95 < 300ms"]}],
        "diagrams": {
            "mermaid": {
                "c4_context": "flowchart LR\n    Customer --> System\n    System --> Stripe",
                "c4_component": "flowchart TB\n    WebUI --> API\n    API --> DB",
                "sequence": "sequenceDiagram\n    Customer->>API: Book\n    API-->>Customer: Confirmed",
            }
        },
        "recommendations": {
            "next_steps": ["Prototype booking flow"],
            "tradeoffs": ["Simplicity over independent scaling"],
            "risks": ["Payment provider outage"],
        },
        "questions": ["Do groomers need a mobile app?"],
    }


@pytest.fixture
def out_of_scope_response():
    """Minimal out-of-scope response: every field present, diagrams empty."""
    return {
        "scope_check": {"in_scope": False, "message": "Not a software system."},
        "interpreted_product": {"one_liner": "", "assumptions": []},
        "requirements": {
            "actors": [], "features": [], "constraints": [],
            "integrations": [], "data_entities": [], "key_flows": [],
        },
        "architecture": {
            "style": "modular_monolith",
            "rationale": [],
            "components": [],
            "data": {"storage": [], "schema_notes": [], "events": []},
            "security": [],
            "observability": [],
            "deployment": [],
        },
        "nfrs": [],
        "diagrams": {"mermaid": {"c4_context": "", "c4_component": "", "sequence": ""}},
        "recommendations": {"next_steps": [], "tradeoffs": [], "risks": []},
        "questions": [],
    }


@pytest.fixture
def requirements_md(tmp_path):
    """Markdown requirements with three integrations and an availability NFR."""
    path = tmp_path / "requirements.md"
    path.write_text(
        "# Goal\n"
        "Let customers book and pay for grooming appointments.\n\n"
        "## Users / Actors\n"
        "- Customer\n"
        "- Groomer\n"
        "- customer\n\n"
        "## Core Features\n"
        "- Book appointment\n"
        "- Send notification reminders\n\n"
        "## Integrations\n"
        "- Stripe\n"
        "- SendGrid\n"
        "- Twilio\n\n"
        "## Data\n"
        "- Appointment\n"
        "- Customer\n\n"
        "## Non-Functional Requirements\n"
        "- Availability: 99.9% uptime\n"
        "- Performance: p95 under 300ms\n\n"
        "## Key Flows\n"
        "- Customer books an appointment\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "ollama_url": "http://ollama.test:11434",
        "generation_model": "test-model",
        "timeout_seconds": 5,
        "transport_max_attempts": 2,
        "transport_backoff_seconds": 0,
        "output_root": "artifacts",
        "mode": "auto",
        "guidance_enabled": True,
    }
    with patch("archagent.config._config", test_config):
        yield test_config
