"""
live-analysis - unit tests for the YAML scenario loader

File: tests/unit/test_scenarios.py
"""

from __future__ import annotations

from pathlib import Path

import pytest

from live_analysis.domain.events import EventType
from live_analysis.domain.models import DEFAULT_CLAIMS, Viewport
from live_analysis.scenarios import (
    DEFAULT_VIEWPORT,
    ScenarioLoadError,
    load_scenario,
    parse_scenario,
    parse_viewport,
)

SAMPLE = Path(__file__).resolve().parents[2] / "samples" / "scenarios" / "two_trace_demo.yaml"


def test_sample_scenario_loads_in_file_order() -> None:
    scenario = load_scenario(SAMPLE)

    assert scenario.name == "two-trace-demo"
    assert scenario.trace_ids == ("trace_A", "trace_B")
    assert scenario.viewport == Viewport(1440, 900)
    assert [event.seq for event in scenario.events] == list(range(1, 9))
    assert scenario.events[0].event_id == "live_evt_1"
    assert scenario.events[0].timestamp == 1700000000000
    consent = scenario.events[4]
    assert consent.event_type is EventType.CONSENT_REQUIRED
    assert consent.is_unresolved_consent
    assert scenario.events[6].declares_external_egress


def test_loading_twice_restarts_the_sequence() -> None:
    assert load_scenario(SAMPLE).events == load_scenario(SAMPLE).events


def test_minimal_scenario_uses_defaults() -> None:
    scenario = parse_scenario(
        {"events": [{"type": "automation_step", "trace_id": "t"}]}, default_name="quick"
    )
    assert scenario.name == "quick"
    assert scenario.claims == DEFAULT_CLAIMS
    assert scenario.viewport == DEFAULT_VIEWPORT
    assert scenario.events[0].timestamp == 0


def test_claims_are_parsed() -> None:
    scenario = parse_scenario(
        {
            "events": [],
            "claims": {
                "readme_claims": {"no_external_egress": False},
                "template_claims": {"allowed_domains": ["partner.example.net"]},
            },
        }
    )
    assert scenario.claims.readme_claims.no_external_egress is False
    assert scenario.claims.template_claims.allowed_domains == ("partner.example.net",)


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        (["not", "a", "mapping"], "expected mapping"),
        ({"events": [], "extra": 1}, "unexpected fields"),
        ({"events": [], "schema_version": 2}, "unsupported version"),
        ({"events": "nope"}, "expected a list"),
        ({"events": [{"trace_id": "t"}]}, r"events\[0\]\.type: missing"),
        ({"events": [{"type": "automation_step", "trace_id": " "}]}, "trace_id"),
        ({"events": [{"type": "automation_step", "trace_id": "t", "offset": -5}]}, "must be >= 0"),
        ({"events": [{"type": "automation_step", "trace_id": "t", "resolved": "no"}]}, "resolved"),
        ({"events": [{"type": "teleport", "trace_id": "t"}]}, "unsupported event type"),
        ({"events": [{"type": "packaging", "trace_id": "t", "colour": 1}]}, "unexpected fields"),
        ({"events": [], "claims": {"readme_claims": {"no_external_egress": 1}}}, "claims"),
        ({"events": [], "base_timestamp": True}, "base_timestamp"),
    ],
)
def test_malformed_scenarios_are_rejected(payload: object, message: str) -> None:
    with pytest.raises(ScenarioLoadError, match=message):
        parse_scenario(payload)


@pytest.mark.parametrize("name", ["../../escaped", "nested/run", "..", ".", "run\x00id"])
def test_scenario_name_must_be_a_single_path_segment(name: str) -> None:
    with pytest.raises(ScenarioLoadError, match="single path segment"):
        parse_scenario({"name": name, "events": []})


def test_scenario_name_is_stripped() -> None:
    assert parse_scenario({"name": "  demo run  ", "events": []}).name == "demo run"


def test_viewport_parsing() -> None:
    assert parse_viewport({"width": 800, "height": 600}) == Viewport(800, 600)
    with pytest.raises(ScenarioLoadError, match="unexpected fields"):
        parse_viewport({"width": 1, "height": 1, "depth": 1})
    with pytest.raises(ScenarioLoadError):
        parse_viewport({"width": -1, "height": 1})


def test_invalid_yaml_and_missing_files(tmp_path: Path) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("events: [unclosed\n", encoding="utf-8")
    with pytest.raises(ScenarioLoadError, match="invalid YAML"):
        load_scenario(broken)
    with pytest.raises(ScenarioLoadError, match="unable to read"):
        load_scenario(tmp_path / "missing.yaml")
