"""
live-analysis domain layer.

File: src/live_analysis/domain/__init__.py

Purpose
- Shared vocabulary: live events, their taxonomy and total order, and the
  value types the engine produces (risks, alignment rows, focus, layout).

Functional requirements
- Domain objects are immutable and serializable via ``to_dict``.
- No IO and no logging in this layer.
"""

from live_analysis.domain.events import (
    ALL_DOMAINS,
    EVENT_TYPE_TO_DOMAIN,
    EventContractError,
    EventDomain,
    EventType,
    LiveEvent,
    compare_events,
    domain_for_type,
    event_sort_key,
    most_recent_event,
    sort_events,
)
from live_analysis.domain.models import (
    DEFAULT_CLAIMS,
    SECONDARY_PANELS,
    AlignmentRow,
    AlignmentStatus,
    ClaimSet,
    EventFilter,
    FocusState,
    FocusStickinessState,
    LayoutSpec,
    ObservationSet,
    PanelId,
    ReadmeClaims,
    RiskCategory,
    RiskEvent,
    RiskSeverity,
    SecondaryMode,
    TemplateClaims,
    TimelineMode,
    Viewport,
)
from live_analysis.domain.sequence import EventFactory, SequenceCounter

__all__ = [
    "ALL_DOMAINS",
    "DEFAULT_CLAIMS",
    "EVENT_TYPE_TO_DOMAIN",
    "SECONDARY_PANELS",
    "AlignmentRow",
    "AlignmentStatus",
    "ClaimSet",
    "EventContractError",
    "EventDomain",
    "EventFactory",
    "EventFilter",
    "EventType",
    "FocusState",
    "FocusStickinessState",
    "LayoutSpec",
    "LiveEvent",
    "ObservationSet",
    "PanelId",
    "ReadmeClaims",
    "RiskCategory",
    "RiskEvent",
    "RiskSeverity",
    "SecondaryMode",
    "SequenceCounter",
    "TemplateClaims",
    "TimelineMode",
    "Viewport",
    "compare_events",
    "domain_for_type",
    "event_sort_key",
    "most_recent_event",
    "sort_events",
]
