"""Tests for archagent.utils.merge: decision_from_response, merge_decisions."""

import json

from archagent.contract import validate_response
from archagent.models import ArchitectureDecision, ContainerSpec
from archagent.utils.merge import RECOGNIZED_STYLES, decision_from_response, merge_decisions


def _decision(**kwargs):
    base = {
        "style": "modular_monolith",
        "rationale": ["heuristic reason"],
        "containers": [ContainerSpec(name="API", type="api")],
        "tradeoffs": ["heuristic tradeoff"],
    }
    base.update(kwargs)
    return ArchitectureDecision(**base)


class TestMergeStyle:
    def test_hybrid_falls_back_to_heuristic_style(self):
        merged = merge_decisions(
            _decision(style="hybrid", rationale=["generated reason"]),
            _decision(style="microservices"),
            [],
        )
        assert merged.style == "microservices"
        assert merged.rationale == ["heuristic reason"]

    def test_recognized_generated_style_wins(self):
        merged = merge_decisions(
            _decision(style="microservices", rationale=["generated reason"]),
            _decision(style="modular_monolith"),
            [],
        )
        assert merged.style == "microservices"
        assert merged.rationale == ["generated reason"]

    def test_hybrid_accepted_when_recognized_styles_widened(self):
        merged = merge_decisions(
            _decision(style="hybrid"),
            _decision(style="microservices"),
            [],
            recognized_styles=RECOGNIZED_STYLES | {"hybrid"},
        )
        assert merged.style == "hybrid"

    def test_no_generated_returns_heuristic(self):
        heuristic = _decision()
        assert merge_decisions(None, heuristic, ["Stripe"]) is heuristic


class TestMergeFlags:
    def test_broker_is_logical_or(self):
        merged = merge_decisions(
            _decision(use_message_broker=False),
            _decision(use_message_broker=True),
            [],
        )
        assert merged.use_message_broker is True
        assert "Message Broker" in merged.container_names()

    def test_load_balancer_is_logical_or(self):
        merged = merge_decisions(
            _decision(use_load_balancer=True),
            _decision(use_load_balancer=False),
            [],
        )
        assert merged.use_load_balancer is True

    def test_both_false_stays_false(self):
        merged = merge_decisions(_decision(), _decision(), [])
        assert merged.use_message_broker is False
        assert "Message Broker" not in merged.container_names()


class TestMergeContainers:
    def test_mandatory_and_externals_added_sorted(self):
        merged = merge_decisions(
            _decision(containers=[ContainerSpec(name="Worker", type="worker")]),
            _decision(),
            ["Twilio", "Stripe"],
        )
        assert merged.container_names() == [
            "API", "Database", "External: Stripe", "External: Twilio", "Web UI", "Worker",
        ]

    def test_case_insensitive_dedup_keeps_generated_details(self):
        generated = ContainerSpec(name="api", type="api", responsibilities=["Bookings"])
        merged = merge_decisions(_decision(containers=[generated]), _decision(), [])

        apis = [c for c in merged.containers if c.name.casefold() == "api"]
        assert len(apis) == 1
        assert apis[0].responsibilities == ["Bookings"]


class TestMergeTradeoffs:
    def test_generated_tradeoffs_win(self):
        merged = merge_decisions(_decision(tradeoffs=["generated"]), _decision(), [])
        assert merged.tradeoffs == ["generated"]

    def test_empty_generated_tradeoffs_use_heuristic(self):
        merged = merge_decisions(_decision(tradeoffs=[]), _decision(), [])
        assert merged.tradeoffs == ["heuristic tradeoff"]


class TestDecisionFromResponse:
    def test_maps_components_and_flags(self, valid_response):
        valid_response["architecture"]["deployment"] = ["API behind a load balancer"]
        valid_response["architecture"]["data"]["events"] = ["AppointmentBooked"]
        decision = decision_from_response(validate_response(json.dumps(valid_response)))

        assert decision.style == "modular_monolith"
        assert decision.container_names() == ["Booking API", "Web UI"]
        assert [c.type for c in decision.containers] == ["api", "web"]
        assert decision.use_message_broker is True
        assert decision.use_load_balancer is True
        assert decision.tradeoffs == ["Simplicity over independent scaling"]

    def test_no_events_no_broker(self, valid_response):
        decision = decision_from_response(validate_response(json.dumps(valid_response)))
        assert decision.use_message_broker is False
        assert decision.use_load_balancer is False
