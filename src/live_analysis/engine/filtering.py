"""Trace/domain filtering of the event stream."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from live_analysis.constants import ALL_TRACES
from live_analysis.domain.events import ALL_DOMAINS, EventDomain, LiveEvent
from live_analysis.domain.models import EventFilter


def default_filter() -> EventFilter:
    return EventFilter(trace_id=ALL_TRACES, domains=frozenset(ALL_DOMAINS))


def matches_filter(event: LiveEvent, event_filter: EventFilter) -> bool:
    if event_filter.trace_id != ALL_TRACES and event.trace_id != event_filter.trace_id:
        return False
    return event.domain in event_filter.domains


def filter_events(events: Iterable[LiveEvent], event_filter: EventFilter) -> list[LiveEvent]:
    """Keep events matching the trace and domain predicates, preserving order."""
    return [event for event in events if matches_filter(event, event_filter)]


def available_traces(events: Iterable[LiveEvent]) -> tuple[str, ...]:
    return tuple(sorted({event.trace_id for event in events}))


def build_filter(
    trace_id: str | None = None,
    domains: Sequence[EventDomain | str] | None = None,
) -> EventFilter:
    """Build a filter from optional CLI-style inputs; ``None`` means "everything"."""
    resolved_domains = (
        frozenset(ALL_DOMAINS) if not domains else frozenset(EventDomain(d) for d in domains)
    )
    return EventFilter(trace_id=trace_id or ALL_TRACES, domains=resolved_domains)


__all__ = [
    "available_traces",
    "build_filter",
    "default_filter",
    "filter_events",
    "matches_filter",
]
