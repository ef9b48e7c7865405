"""
Focus stickiness state machine.

``compute_focus_state_with_stickiness`` is a reducer: it takes the event list
and the caller's prior :class:`FocusStickinessState` and returns the focus to
render together with the state to hand back on the next call. Nothing is
stored between calls.

Decision order:
0. An empty stream is idle and resets the state.
1. Any unresolved consent overrides everything and re-arms the lock.
2. Inside the sticky window, a panel holds focus unless the newcomer has a
   strictly higher priority or the current panel is the neutral ``focus`` panel.
3. Otherwise focus follows the most recent event.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Final

from live_analysis.constants import FOCUS_STICKINESS_THRESHOLD
from live_analysis.domain.events import EventType, LiveEvent, event_sort_key, most_recent_event
from live_analysis.domain.models import FocusState, FocusStickinessState, PanelId

EVENT_TO_PANEL: Final[Mapping[EventType, PanelId]] = {
    EventType.SEMANTIC_EXTRACTION: PanelId.SEMANTIC,
    EventType.AUTOMATION_STEP: PanelId.AUTOMATION,
    EventType.PACKAGING: PanelId.PACKAGING,
    EventType.DEPACKAGING: PanelId.PACKAGING,
    EventType.INTENT_DETECTION: PanelId.INTENT,
    EventType.CONSENT_REQUIRED: PanelId.CONSENT,
    EventType.POE_EVENT: PanelId.FOCUS,
}

EVENT_PRIORITY: Final[Mapping[EventType, int]] = {
    EventType.POE_EVENT: 1,
    EventType.INTENT_DETECTION: 2,
    EventType.SEMANTIC_EXTRACTION: 3,
    EventType.AUTOMATION_STEP: 4,
    EventType.PACKAGING: 5,
    EventType.DEPACKAGING: 5,
    EventType.CONSENT_REQUIRED: 10,
}

IDLE_REASON: Final[str] = "No events - awaiting activity"


@dataclass(frozen=True, slots=True)
class NaturalFocus:
    """Focus the current event list deserves before stickiness is applied."""

    panel_id: PanelId
    event_id: str | None
    reason: str
    is_consent: bool
    priority: int


@dataclass(frozen=True, slots=True)
class ConsentBanner:
    """Global pending-consent summary; always computed on the unfiltered stream."""

    pending_count: int
    latest_event_id: str | None
    latest_trace_id: str | None
    pending_trace_ids: tuple[str, ...]

    @property
    def is_active(self) -> bool:
        return self.pending_count > 0

    def to_dict(self) -> dict[str, object]:
        return {
            "pending_count": self.pending_count,
            "latest_event_id": self.latest_event_id,
            "latest_trace_id": self.latest_trace_id,
            "pending_trace_ids": list(self.pending_trace_ids),
        }


def initial_stickiness_state(threshold: int = FOCUS_STICKINESS_THRESHOLD) -> FocusStickinessState:
    return FocusStickinessState(
        current_panel_id=PanelId.FOCUS,
        current_event_id=None,
        events_since_focus_change=0,
        locked_until_event_count=_validate_threshold(threshold),
    )


def unresolved_consents(events: Sequence[LiveEvent]) -> list[LiveEvent]:
    return [event for event in events if event.is_unresolved_consent]


def compute_natural_focus(events: Sequence[LiveEvent]) -> NaturalFocus:
    if not events:
        return NaturalFocus(
            panel_id=PanelId.FOCUS,
            event_id=None,
            reason=IDLE_REASON,
            is_consent=False,
            priority=0,
        )

    pending = unresolved_consents(events)
    if pending:
        # Older pending consents only show up in the count.
        anchor = max(pending, key=event_sort_key)
        return NaturalFocus(
            panel_id=PanelId.CONSENT,
            event_id=anchor.event_id,
            reason=f"Consent required - {len(pending)} pending",
            is_consent=True,
            priority=EVENT_PRIORITY[EventType.CONSENT_REQUIRED],
        )

    latest = max(events, key=event_sort_key)
    return NaturalFocus(
        panel_id=EVENT_TO_PANEL[latest.event_type],
        event_id=latest.event_id,
        reason=f"Latest event: {latest.event_type.value}",
        is_consent=False,
        priority=EVENT_PRIORITY[latest.event_type],
    )


def compute_focus_state(events: Sequence[LiveEvent]) -> FocusState:
    """Natural focus only, without stickiness."""
    natural = compute_natural_focus(events)
    return FocusState(
        focused_panel_id=natural.panel_id,
        focus_reason=natural.reason,
        focus_event_id=natural.event_id,
        is_consent_override=natural.is_consent,
        unresolved_consent_count=len(unresolved_consents(events)),
        stickiness_applied=False,
    )


def compute_focus_state_with_stickiness(
    events: Sequence[LiveEvent],
    stickiness: FocusStickinessState,
    *,
    threshold: int = FOCUS_STICKINESS_THRESHOLD,
) -> tuple[FocusState, FocusStickinessState]:
    """Return ``(focus, new_stickiness)``; callers must persist ``new_stickiness``."""

    threshold = _validate_threshold(threshold)
    if not events:
        return compute_focus_state(events), initial_stickiness_state(threshold)

    natural = compute_natural_focus(events)
    pending_count = len(unresolved_consents(events))

    if natural.is_consent:
        return (
            FocusState(
                focused_panel_id=natural.panel_id,
                focus_reason=natural.reason,
                focus_event_id=natural.event_id,
                is_consent_override=True,
                unresolved_consent_count=pending_count,
                stickiness_applied=False,
            ),
            FocusStickinessState(
                current_panel_id=natural.panel_id,
                current_event_id=natural.event_id,
                events_since_focus_change=0,
                locked_until_event_count=threshold,
            ),
        )

    within_window = stickiness.events_since_focus_change < stickiness.locked_until_event_count
    locked_priority = _priority_of(events, stickiness.current_event_id)
    outranks_locked = natural.priority > locked_priority

    if (
        within_window
        and not outranks_locked
        and stickiness.current_panel_id is not PanelId.FOCUS
    ):
        elapsed = stickiness.events_since_focus_change + 1
        return (
            FocusState(
                focused_panel_id=stickiness.current_panel_id,
                focus_reason=(
                    f"Sticky focus ({elapsed}/{stickiness.locked_until_event_count} events)"
                ),
                focus_event_id=stickiness.current_event_id,
                is_consent_override=False,
                unresolved_consent_count=pending_count,
                stickiness_applied=True,
            ),
            replace(stickiness, events_since_focus_change=elapsed),
        )

    focus = FocusState(
        focused_panel_id=natural.panel_id,
        focus_reason=natural.reason,
        focus_event_id=natural.event_id,
        is_consent_override=False,
        unresolved_consent_count=pending_count,
        stickiness_applied=False,
    )
    if natural.panel_id is not stickiness.current_panel_id:
        new_stickiness = FocusStickinessState(
            current_panel_id=natural.panel_id,
            current_event_id=natural.event_id,
            events_since_focus_change=0,
            locked_until_event_count=threshold,
        )
    else:
        new_stickiness = replace(
            stickiness,
            events_since_focus_change=stickiness.events_since_focus_change + 1,
        )
    return focus, new_stickiness


def compute_consent_banner(all_events: Sequence[LiveEvent]) -> ConsentBanner:
    """Summarize pending consents across the whole stream.

    Pass the unfiltered event list: a filter must never hide a pending consent.
    """

    pending = unresolved_consents(all_events)
    latest = most_recent_event(pending)
    return ConsentBanner(
        pending_count=len(pending),
        latest_event_id=None if latest is None else latest.event_id,
        latest_trace_id=None if latest is None else latest.trace_id,
        pending_trace_ids=tuple(sorted({event.trace_id for event in pending})),
    )


def _priority_of(events: Sequence[LiveEvent], event_id: str | None) -> int:
    if event_id is None:
        return 0
    for event in events:
        if event.event_id == event_id:
            return EVENT_PRIORITY[event.event_type]
    return 0


def _validate_threshold(threshold: int) -> int:
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        raise ValueError(f"stickiness threshold must be a non-negative integer, got {threshold!r}")
    return threshold


__all__ = [
    "EVENT_PRIORITY",
    "EVENT_TO_PANEL",
    "IDLE_REASON",
    "ConsentBanner",
    "NaturalFocus",
    "compute_consent_banner",
    "compute_focus_state",
    "compute_focus_state_with_stickiness",
    "compute_natural_focus",
    "initial_stickiness_state",
    "unresolved_consents",
]
