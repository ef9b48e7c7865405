"""
live-analysis - unit tests for engine value records

File: tests/unit/domain/test_models.py
"""

from __future__ import annotations

import pytest

from live_analysis.domain.events import EventDomain
from live_analysis.domain.models import (
    DEFAULT_CLAIMS,
    ClaimSet,
    EventFilter,
    FocusStickinessState,
    PanelId,
    RiskSeverity,
    Viewport,
)


def test_severity_weights_are_strictly_ordered() -> None:
    ordered = [
        RiskSeverity.INFO,
        RiskSeverity.LOW,
        RiskSeverity.MEDIUM,
        RiskSeverity.HIGH,
        RiskSeverity.CRITICAL,
    ]
    weights = [severity.weight for severity in ordered]
    assert weights == sorted(weights)
    assert len(set(weights)) == len(weights)


def test_claim_set_from_dict_applies_defaults_for_missing_sections() -> None:
    claims = ClaimSet.from_dict({"readme_claims": {"no_external_egress": False}})
    assert claims.readme_claims.no_external_egress is False
    assert claims.readme_claims.deterministic_only is True
    assert claims.template_claims.allowed_domains is None
    assert claims.template_claims.declared_egress == ()


def test_claim_set_round_trips_through_dict() -> None:
    assert ClaimSet.from_dict(DEFAULT_CLAIMS.to_dict()) == DEFAULT_CLAIMS


@pytest.mark.parametrize(
    "payload",
    [
        {"readme": {}},
        {"readme_claims": {"no_external_egress": "yes"}},
        {"template_claims": {"declared_egress": "capsule_packaging"}},
        {"template_claims": {"allowed_domains": [""]}},
    ],
)
def test_claim_set_from_dict_rejects_malformed_payloads(payload: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        ClaimSet.from_dict(payload)


def test_stickiness_state_validates_counters_and_round_trips() -> None:
    state = FocusStickinessState(
        current_panel_id=PanelId.PACKAGING,
        current_event_id="live_evt_3",
        events_since_focus_change=1,
        locked_until_event_count=2,
    )
    assert FocusStickinessState.from_dict(state.to_dict()) == state

    with pytest.raises(ValueError):
        FocusStickinessState(events_since_focus_change=-1)


_STICKINESS_PAYLOAD: dict[str, object] = {
    "current_panel_id": "packaging",
    "current_event_id": None,
    "events_since_focus_change": 0,
    "locked_until_event_count": 2,
}


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({**_STICKINESS_PAYLOAD, "sticky": True}, "unexpected fields"),
        (
            {key: value for key, value in _STICKINESS_PAYLOAD.items() if key != "current_event_id"},
            "missing required fields",
        ),
        ({}, "missing required fields"),
        (["packaging"], "expected object"),
    ],
)
def test_stickiness_state_from_dict_rejects_malformed_payloads(
    payload: object, message: str
) -> None:
    with pytest.raises(ValueError, match=message):
        FocusStickinessState.from_dict(payload)  # type: ignore[arg-type]


def test_viewport_rejects_negative_and_non_numeric_sizes() -> None:
    assert Viewport(0, 0).width == 0
    with pytest.raises(ValueError):
        Viewport(-1, 100)
    with pytest.raises(ValueError):
        Viewport(True, 100)  # type: ignore[arg-type]


def test_event_filter_defaults_to_everything() -> None:
    default = EventFilter()
    assert not default.is_active
    assert default.to_dict()["trace_id"] == "all"

    narrowed = default.with_domains(["consent", EventDomain.PACKAGING])
    assert narrowed.is_active
    assert narrowed.domains == frozenset({EventDomain.CONSENT, EventDomain.PACKAGING})

    with pytest.raises(ValueError):
        EventFilter(trace_id="")
