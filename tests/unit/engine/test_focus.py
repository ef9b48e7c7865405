"""
live-analysis - unit tests for the focus stickiness reducer

File: tests/unit/engine/test_focus.py

Purpose
- Pin the decision order: consent override, then the sticky window, then
  latest-event focus.
- Replay random streams step by step to check determinism and the bound on
  consecutive sticky holds.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from live_analysis.domain.events import EventType, LiveEvent
from live_analysis.domain.models import FocusState, FocusStickinessState, PanelId
from live_analysis.domain.sequence import EventFactory
from live_analysis.engine.focus import (
    EVENT_PRIORITY,
    EVENT_TO_PANEL,
    IDLE_REASON,
    compute_consent_banner,
    compute_focus_state,
    compute_focus_state_with_stickiness,
    compute_natural_focus,
    initial_stickiness_state,
)


def _replay(
    events: list[LiveEvent], *, threshold: int = 2
) -> list[tuple[FocusState, FocusStickinessState]]:
    state = initial_stickiness_state(threshold)
    steps = []
    for index in range(1, len(events) + 1):
        focus, state = compute_focus_state_with_stickiness(
            events[:index], state, threshold=threshold
        )
        steps.append((focus, state))
    return steps


def test_every_event_type_has_a_panel_and_priority() -> None:
    assert set(EVENT_TO_PANEL) == set(EventType)
    assert set(EVENT_PRIORITY) == set(EventType)
    assert EVENT_TO_PANEL[EventType.POE_EVENT] is PanelId.FOCUS
    assert max(EVENT_PRIORITY.values()) == EVENT_PRIORITY[EventType.CONSENT_REQUIRED]


def test_empty_stream_is_idle() -> None:
    focus = compute_focus_state([])
    assert focus.focused_panel_id is PanelId.FOCUS
    assert focus.focus_reason == IDLE_REASON
    assert focus.focus_event_id is None

    sticky_focus, state = compute_focus_state_with_stickiness([], initial_stickiness_state())
    assert sticky_focus.focused_panel_id is PanelId.FOCUS
    assert not sticky_focus.stickiness_applied
    assert state.current_panel_id is PanelId.FOCUS


def test_empty_stream_releases_a_held_panel() -> None:
    held = FocusStickinessState(
        current_panel_id=PanelId.PACKAGING,
        current_event_id="live_evt_4",
        events_since_focus_change=0,
        locked_until_event_count=2,
    )

    focus, state = compute_focus_state_with_stickiness([], held)

    assert focus.focused_panel_id is PanelId.FOCUS
    assert focus.focus_reason == IDLE_REASON
    assert not focus.stickiness_applied
    assert state == initial_stickiness_state()


def test_natural_focus_anchors_on_latest_pending_consent() -> None:
    factory = EventFactory()
    older = factory.create(EventType.CONSENT_REQUIRED, timestamp=10, trace_id="t", resolved=False)
    newer = factory.create(EventType.CONSENT_REQUIRED, timestamp=20, trace_id="t", resolved=False)

    natural = compute_natural_focus([newer, older])

    assert natural.is_consent
    assert natural.event_id == newer.event_id
    assert natural.reason == "Consent required - 2 pending"


def test_consent_overrides_unexpired_sticky_window() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.PACKAGING, timestamp=100, trace_id="trace_A"),
        factory.create(EventType.AUTOMATION_STEP, timestamp=200, trace_id="trace_A"),
        factory.create(
            EventType.CONSENT_REQUIRED, timestamp=300, trace_id="trace_A", resolved=False
        ),
    ]

    (first, _), (second, held), (third, after) = _replay(events)

    assert first.focused_panel_id is PanelId.PACKAGING
    assert second.stickiness_applied
    assert second.focused_panel_id is PanelId.PACKAGING
    assert held.events_since_focus_change == 1

    assert third.focused_panel_id is PanelId.CONSENT
    assert third.is_consent_override
    assert not third.stickiness_applied
    assert third.focus_event_id == events[2].event_id
    assert after == FocusStickinessState(
        current_panel_id=PanelId.CONSENT,
        current_event_id=events[2].event_id,
        events_since_focus_change=0,
        locked_until_event_count=2,
    )


def test_sticky_window_expires_after_threshold_events() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.PACKAGING, timestamp=1, trace_id="t"),
        factory.create(EventType.AUTOMATION_STEP, timestamp=2, trace_id="t"),
        factory.create(EventType.SEMANTIC_EXTRACTION, timestamp=3, trace_id="t"),
        factory.create(EventType.INTENT_DETECTION, timestamp=4, trace_id="t"),
    ]

    panels = [(focus.focused_panel_id, focus.stickiness_applied) for focus, _ in _replay(events)]

    assert panels == [
        (PanelId.PACKAGING, False),
        (PanelId.PACKAGING, True),
        (PanelId.PACKAGING, True),
        (PanelId.INTENT, False),
    ]


def test_higher_priority_newcomer_breaks_the_lock() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.INTENT_DETECTION, timestamp=1, trace_id="t"),
        factory.create(EventType.PACKAGING, timestamp=2, trace_id="t"),
    ]

    (_, _), (focus, state) = _replay(events)

    assert focus.focused_panel_id is PanelId.PACKAGING
    assert not focus.stickiness_applied
    assert state.events_since_focus_change == 0


def test_rising_priorities_change_panel_on_every_event() -> None:
    events = _stream(
        [
            (EventType.SEMANTIC_EXTRACTION, None),
            (EventType.AUTOMATION_STEP, None),
            (EventType.PACKAGING, None),
        ]
    )

    frames = _replay(events, threshold=2)

    assert [focus.focused_panel_id for focus, _ in frames] == [
        PanelId.SEMANTIC,
        PanelId.AUTOMATION,
        PanelId.PACKAGING,
    ]
    assert not any(focus.stickiness_applied for focus, _ in frames)
    assert all(state.events_since_focus_change == 0 for _, state in frames)


def test_neutral_focus_panel_never_holds() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.POE_EVENT, timestamp=1, trace_id="t"),
        factory.create(EventType.INTENT_DETECTION, timestamp=2, trace_id="t"),
    ]

    (first, _), (second, _) = _replay(events)

    assert first.focused_panel_id is PanelId.FOCUS
    assert second.focused_panel_id is PanelId.INTENT
    assert not second.stickiness_applied


def test_resolved_consent_holds_by_priority() -> None:
    factory = EventFactory()
    consent = factory.create(
        EventType.CONSENT_REQUIRED, timestamp=1, trace_id="t", resolved=False
    )
    follow_up = factory.create(EventType.PACKAGING, timestamp=2, trace_id="t")

    _, state = compute_focus_state_with_stickiness([consent], initial_stickiness_state())
    focus, _ = compute_focus_state_with_stickiness([consent.mark_resolved(), follow_up], state)

    assert focus.focused_panel_id is PanelId.CONSENT
    assert focus.stickiness_applied
    assert not focus.is_consent_override


def test_zero_threshold_disables_stickiness() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.PACKAGING, timestamp=1, trace_id="t"),
        factory.create(EventType.AUTOMATION_STEP, timestamp=2, trace_id="t"),
    ]
    assert [focus.focused_panel_id for focus, _ in _replay(events, threshold=0)] == [
        PanelId.PACKAGING,
        PanelId.AUTOMATION,
    ]


def test_negative_threshold_is_rejected() -> None:
    with pytest.raises(ValueError):
        initial_stickiness_state(-1)
    with pytest.raises(ValueError):
        compute_focus_state_with_stickiness([], initial_stickiness_state(), threshold=True)


def test_consent_banner_counts_every_trace() -> None:
    factory = EventFactory()
    events = [
        factory.create(EventType.CONSENT_REQUIRED, timestamp=1, trace_id="trace_A", resolved=False),
        factory.create(EventType.CONSENT_REQUIRED, timestamp=2, trace_id="trace_B", resolved=True),
        factory.create(EventType.CONSENT_REQUIRED, timestamp=3, trace_id="trace_C"),
    ]

    banner = compute_consent_banner(events)

    assert banner.is_active
    assert banner.pending_count == 2
    assert banner.latest_event_id == events[2].event_id
    assert banner.pending_trace_ids == ("trace_A", "trace_C")
    assert not compute_consent_banner([]).is_active


_STREAMS = st.lists(
    st.tuples(st.sampled_from(list(EventType)), st.sampled_from([None, False, True])),
    max_size=20,
)


def _stream(specs: list[tuple[EventType, bool | None]]) -> list[LiveEvent]:
    factory = EventFactory()
    return [
        factory.create(event_type, timestamp=index * 10, trace_id="t", resolved=resolved)
        for index, (event_type, resolved) in enumerate(specs)
    ]


@settings(max_examples=50, deadline=None)
@given(specs=_STREAMS, threshold=st.integers(min_value=0, max_value=4))
def test_replay_is_deterministic(
    specs: list[tuple[EventType, bool | None]], threshold: int
) -> None:
    events = _stream(specs)
    assert _replay(events, threshold=threshold) == _replay(events, threshold=threshold)


@settings(max_examples=50, deadline=None)
@given(specs=_STREAMS)
def test_pending_consent_always_wins(specs: list[tuple[EventType, bool | None]]) -> None:
    events = _stream(specs)
    for index, (focus, state) in enumerate(_replay(events), start=1):
        pending = [event for event in events[:index] if event.is_unresolved_consent]
        if pending:
            assert focus.focused_panel_id is PanelId.CONSENT
            assert focus.is_consent_override
            assert not focus.stickiness_applied
            assert state.events_since_focus_change == 0
        assert focus.unresolved_consent_count == len(pending)


@settings(max_examples=50, deadline=None)
@given(specs=_STREAMS, threshold=st.integers(min_value=0, max_value=4))
def test_sticky_holds_never_exceed_threshold(
    specs: list[tuple[EventType, bool | None]], threshold: int
) -> None:
    run = 0
    for focus, _ in _replay(_stream(specs), threshold=threshold):
        run = run + 1 if focus.stickiness_applied else 0
        assert run <= threshold
