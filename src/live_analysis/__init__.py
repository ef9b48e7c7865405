"""
live-analysis

File: src/live_analysis/__init__.py

Purpose
- Package root. Deterministic event classification and focus/layout decisions
  for a live execution-monitoring view.

Import boundary
- Importing the package has no side effects: no config loading, no logging setup.
"""

from live_analysis.domain import (
    DEFAULT_CLAIMS,
    AlignmentRow,
    AlignmentStatus,
    ClaimSet,
    EventContractError,
    EventDomain,
    EventFactory,
    EventFilter,
    EventType,
    FocusState,
    FocusStickinessState,
    LayoutSpec,
    LiveEvent,
    ObservationSet,
    PanelId,
    RiskEvent,
    RiskSeverity,
    SequenceCounter,
    Viewport,
    domain_for_type,
)
from live_analysis.engine import (
    AnalysisFrame,
    EngineSettings,
    LiveAnalyzer,
    compute_alignment,
    compute_focus_state_with_stickiness,
    compute_layout_spec,
    compute_observations,
    filter_events,
    generate_risk_events,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CLAIMS",
    "AlignmentRow",
    "AlignmentStatus",
    "AnalysisFrame",
    "ClaimSet",
    "EngineSettings",
    "EventContractError",
    "EventDomain",
    "EventFactory",
    "EventFilter",
    "EventType",
    "FocusState",
    "FocusStickinessState",
    "LayoutSpec",
    "LiveAnalyzer",
    "LiveEvent",
    "ObservationSet",
    "PanelId",
    "RiskEvent",
    "RiskSeverity",
    "SequenceCounter",
    "Viewport",
    "__version__",
    "compute_alignment",
    "compute_focus_state_with_stickiness",
    "compute_layout_spec",
    "compute_observations",
    "domain_for_type",
    "filter_events",
    "generate_risk_events",
]
