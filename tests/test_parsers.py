"""Tests for archagent.parsers: Markdown and JSON requirement extraction."""

import json

import pytest

from archagent.errors import InvalidInputError
from archagent.parsers import parse_input, parse_json_text, parse_markdown_text


class TestParseMarkdown:
    def test_sections_mapped(self):
        model = parse_markdown_text(
            "# Goal\nSell tickets\nonline\n"
            "## Users / Actors\n- Buyer\n* Seller\n"
            "### Core Features\n1. Checkout\n2. Refunds\n"
            "## Integrations\n- Stripe\n"
            "## Data\n- Ticket\n"
            "## Constraints\n- Budget\n"
            "## Key Flows\n- Buyer checks out\n"
        )
        assert model.goal == "Sell tickets online"
        assert model.actors == ["Buyer", "Seller"]
        assert model.features == ["Checkout", "Refunds"]
        assert model.integrations == ["Stripe"]
        assert model.data_entities == ["Ticket"]
        assert model.constraints == ["Budget"]
        assert model.key_flows == ["Buyer checks out"]

    def test_nfr_key_value_lines(self):
        model = parse_markdown_text(
            "## Non-Functional Requirements\n- Availability: 99.9%\n- Must be fast\n"
        )
        assert model.nfrs == {"Availability": "99.9%", "NFR-2": "Must be fast"}

    def test_unknown_sections_ignored(self):
        model = parse_markdown_text("## Background\n- noise\n## Integrations\n- Stripe\n")
        assert model.integrations == ["Stripe"]
        assert model.features == []

    def test_headings_case_insensitive(self):
        assert parse_markdown_text("## INTEGRATIONS\n- Stripe\n").integrations == ["Stripe"]

    def test_empty_text(self):
        model = parse_markdown_text("")
        assert model.goal == ""
        assert model.nfrs == {}


class TestParseJson:
    def test_aliases(self):
        model = parse_json_text(json.dumps({
            "goal": "Sell tickets",
            "dataEntities": ["Ticket"],
            "keyFlows": ["Checkout"],
            "nfr": {"Availability": "99.9%"},
        }))
        assert model.data_entities == ["Ticket"]
        assert model.key_flows == ["Checkout"]
        assert model.nfrs == {"Availability": "99.9%"}

    def test_snake_case_keys(self):
        model = parse_json_text(json.dumps({"data_entities": ["A"], "key_flows": ["B"]}))
        assert model.data_entities == ["A"]
        assert model.key_flows == ["B"]

    def test_nfr_list(self):
        model = parse_json_text(json.dumps({"nfrs": ["fast", "secure"]}))
        assert model.nfrs == {"NFR-1": "fast", "NFR-2": "secure"}

    def test_non_string_items_dropped(self):
        model = parse_json_text(json.dumps({"actors": ["Buyer", 3, None], "goal": 7}))
        assert model.actors == ["Buyer"]
        assert model.goal == ""

    def test_invalid_json(self):
        with pytest.raises(InvalidInputError, match="not valid"):
            parse_json_text("{nope")

    def test_non_object(self):
        with pytest.raises(InvalidInputError, match="must be an object"):
            parse_json_text("[1, 2]")


class TestParseInput:
    def test_markdown_file(self, requirements_md):
        model = parse_input(requirements_md)
        assert model.integrations == ["Stripe", "SendGrid", "Twilio"]

    def test_json_file(self, tmp_path):
        path = tmp_path / "req.json"
        path.write_text(json.dumps({"integrations": ["Stripe"]}), encoding="utf-8")
        assert parse_input(path).integrations == ["Stripe"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInputError, match="not found"):
            parse_input(tmp_path / "nope.md")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "req.txt"
        path.write_text("hello", encoding="utf-8")
        with pytest.raises(InvalidInputError, match="Unsupported"):
            parse_input(path)
