"""
live-analysis - unit tests for the declarative risk rule engine

File: tests/unit/engine/test_risk_rules.py

Purpose
- Validate each rule predicate, deterministic risk ids, and the
  severity-desc / timestamp / seq output order.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from live_analysis.domain.events import EventType, LiveEvent
from live_analysis.domain.models import RiskSeverity
from live_analysis.domain.sequence import EventFactory
from live_analysis.engine.risk_rules import (
    RISK_RULES,
    RULE_CONSENT,
    RULE_DETERMINISM,
    RULE_EGRESS,
    RULE_INTEGRITY,
    RULE_POLICY,
    RULE_README_ALIGNMENT,
    filter_risks_by_trace,
    generate_risk_events,
    highest_severity,
    risks_for_alignment_row,
    risks_for_event,
    rules_by_id,
    severity_counts,
    top_risks,
)


def _rule_ids(events: list[LiveEvent], flag: bool = True) -> list[str | None]:
    return [risk.rule_id for risk in generate_risk_events(events, flag)]


def test_rule_table_has_unique_ids() -> None:
    assert set(rules_by_id()) == {
        RULE_EGRESS,
        RULE_README_ALIGNMENT,
        RULE_DETERMINISM,
        RULE_CONSENT,
        RULE_INTEGRITY,
        RULE_POLICY,
    }


def test_egress_with_no_egress_claim_yields_critical_then_high() -> None:
    factory = EventFactory()
    events = [
        factory.create(
            EventType.PACKAGING, timestamp=100, trace_id="trace_A", payload={"externalEgress": True}
        )
    ]

    risks = generate_risk_events(events, readme_claims_no_egress=True)

    assert [(risk.rule_id, risk.severity) for risk in risks] == [
        (RULE_README_ALIGNMENT, RiskSeverity.CRITICAL),
        (RULE_EGRESS, RiskSeverity.HIGH),
    ]
    assert risks[0].risk_id == f"risk_{events[0].event_id}_{RULE_README_ALIGNMENT}"
    assert all(risk.event_id == events[0].event_id for risk in risks)


def test_readme_rule_depends_on_caller_flag() -> None:
    factory = EventFactory()
    events = [
        factory.create(
            EventType.DEPACKAGING, timestamp=1, trace_id="t", payload={"externalEgress": True}
        )
    ]
    assert _rule_ids(events, flag=False) == [RULE_EGRESS]


@pytest.mark.parametrize(
    ("event_type", "payload", "resolved", "expected"),
    [
        (EventType.INTENT_DETECTION, {"aiModel": "m"}, None, [RULE_DETERMINISM]),
        (EventType.INTENT_DETECTION, {"detected_intent": ""}, None, [RULE_DETERMINISM]),
        (EventType.INTENT_DETECTION, {}, None, []),
        (EventType.CONSENT_REQUIRED, {}, False, [RULE_CONSENT]),
        (EventType.CONSENT_REQUIRED, {}, True, []),
        (EventType.CONSENT_REQUIRED, {"scope": "external_api"}, True, [RULE_POLICY]),
        (EventType.DEPACKAGING, {"verified": False}, None, [RULE_INTEGRITY]),
        (EventType.DEPACKAGING, {}, None, []),
        (EventType.PACKAGING, {"externalEgress": False}, None, []),
    ],
)
def test_rule_predicates_are_exact(
    event_type: EventType,
    payload: dict[str, object],
    resolved: bool | None,
    expected: list[str],
) -> None:
    event = EventFactory().create(
        event_type,
        timestamp=0,
        trace_id="t",
        payload=payload,  # type: ignore[arg-type]
        resolved=resolved,
    )
    assert _rule_ids([event]) == expected


def test_multiple_rules_fire_on_one_consent_event() -> None:
    event = EventFactory().create(
        EventType.CONSENT_REQUIRED,
        timestamp=0,
        trace_id="t",
        payload={"scope": "external_api"},
        resolved=False,
    )
    assert _rule_ids([event]) == [RULE_CONSENT, RULE_POLICY]


def test_output_is_sorted_by_severity_then_time_then_seq() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.DEPACKAGING, timestamp=50, trace_id="t", payload={"verified": False}),
        factory.create(EventType.INTENT_DETECTION, timestamp=10, trace_id="t", payload={"aiModel": "x"}),
        factory.create(EventType.DEPACKAGING, timestamp=50, trace_id="t", payload={"verified": False}),
        factory.create(EventType.CONSENT_REQUIRED, timestamp=90, trace_id="t", resolved=False),
    ]

    risks = generate_risk_events(events)

    assert [(risk.severity, risk.event_id) for risk in risks] == [
        (RiskSeverity.CRITICAL, events[3].event_id),
        (RiskSeverity.HIGH, events[0].event_id),
        (RiskSeverity.HIGH, events[2].event_id),
        (RiskSeverity.MEDIUM, events[1].event_id),
    ]


def test_equal_timestamp_ties_follow_event_seq_not_input_order() -> None:
    factory = EventFactory()
    first = factory.create(EventType.DEPACKAGING, timestamp=5, trace_id="t", payload={"verified": False})
    second = factory.create(EventType.DEPACKAGING, timestamp=5, trace_id="t", payload={"verified": False})

    risks = generate_risk_events([second, first])

    assert [risk.event_id for risk in risks] == [first.event_id, second.event_id]


def test_query_helpers() -> None:
    factory = EventFactory()
    a = factory.create(EventType.PACKAGING, timestamp=1, trace_id="trace_A", payload={"externalEgress": True})
    b = factory.create(EventType.CONSENT_REQUIRED, timestamp=2, trace_id="trace_B", resolved=False)
    risks = generate_risk_events([a, b])

    assert {risk.trace_id for risk in filter_risks_by_trace(risks, "trace_B")} == {"trace_B"}
    assert filter_risks_by_trace(risks, "all") == risks
    assert [risk.rule_id for risk in risks_for_event(risks, a.event_id)] == [
        RULE_README_ALIGNMENT,
        RULE_EGRESS,
    ]
    assert [risk.rule_id for risk in risks_for_alignment_row(risks, [RULE_EGRESS])] == [RULE_EGRESS]
    assert highest_severity(risks) is RiskSeverity.CRITICAL
    assert highest_severity([]) is None
    assert top_risks(risks, 1) == risks[:1]
    assert severity_counts(risks)[RiskSeverity.CRITICAL] == 2


_EVENT_SPECS = st.lists(
    st.tuples(
        st.sampled_from(list(EventType)),
        st.integers(min_value=0, max_value=20),
        st.sampled_from(["trace_A", "trace_B"]),
        st.fixed_dictionaries(
            {},
            optional={
                "externalEgress": st.booleans(),
                "verified": st.booleans(),
                "aiModel": st.just("model"),
                "scope": st.sampled_from(["external_api", "internal"]),
            },
        ),
        st.sampled_from([None, False, True]),
    ),
    max_size=15,
)


def _build(specs: list[tuple[EventType, int, str, dict[str, object], bool | None]]) -> list[LiveEvent]:
    factory = EventFactory()
    return [
        factory.create(
            event_type,
            timestamp=timestamp,
            trace_id=trace_id,
            payload=payload,  # type: ignore[arg-type]
            resolved=resolved,
        )
        for event_type, timestamp, trace_id, payload, resolved in specs
    ]


@settings(max_examples=50, deadline=None)
@given(specs=_EVENT_SPECS, flag=st.booleans())
def test_risk_generation_is_idempotent_and_ordered(
    specs: list[tuple[EventType, int, str, dict[str, object], bool | None]],
    flag: bool,
) -> None:
    events = _build(specs)

    first = generate_risk_events(events, flag)
    second = generate_risk_events(events, flag)

    assert first == second
    assert len({risk.risk_id for risk in first}) == len(first)
    keys = [(-risk.severity.weight, risk.timestamp, risk.seq) for risk in first]
    assert keys == sorted(keys)
    event_ids = {event.event_id for event in events}
    assert all(risk.event_id in event_ids for risk in first)
    assert len(first) <= len(events) * len(RISK_RULES)
