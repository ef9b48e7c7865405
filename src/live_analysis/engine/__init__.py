"""
live-analysis engine.

File: src/live_analysis/engine/__init__.py

Purpose
- Pure decision functions over an event stream: risk rules, claim/observation
  alignment, focus stickiness, layout planning, filtering, the dashboard
  priority action and the verification badge, plus the frame analyzer that
  composes them.

Functional requirements
- Every function is deterministic: no wall clock, no randomness, no IO.
- Focus stickiness is caller-owned state; nothing here stores it.
"""

from live_analysis.engine.alignment import compute_alignment, compute_observations
from live_analysis.engine.analyzer import AnalysisFrame, EngineSettings, LiveAnalyzer
from live_analysis.engine.filtering import build_filter, default_filter, filter_events
from live_analysis.engine.focus import (
    ConsentBanner,
    compute_consent_banner,
    compute_focus_state,
    compute_focus_state_with_stickiness,
    initial_stickiness_state,
)
from live_analysis.engine.layout import (
    DEFAULT_LAYOUT_SETTINGS,
    LayoutSettings,
    compute_layout_spec,
    layout_style_vars,
)
from live_analysis.engine.priority import (
    DashboardState,
    PriorityAction,
    compute_priority_action,
)
from live_analysis.engine.risk_rules import RISK_RULES, RiskRule, generate_risk_events
from live_analysis.engine.verification import (
    DEFAULT_VERIFICATION_FLAGS,
    BadgeVariant,
    VerificationFlags,
    can_claim_proof_of_execution,
    can_claim_verified,
    status_badge_text,
    status_badge_variant,
)

__all__ = [
    "DEFAULT_LAYOUT_SETTINGS",
    "DEFAULT_VERIFICATION_FLAGS",
    "RISK_RULES",
    "AnalysisFrame",
    "BadgeVariant",
    "ConsentBanner",
    "DashboardState",
    "EngineSettings",
    "LayoutSettings",
    "LiveAnalyzer",
    "PriorityAction",
    "RiskRule",
    "VerificationFlags",
    "build_filter",
    "can_claim_proof_of_execution",
    "can_claim_verified",
    "compute_alignment",
    "compute_consent_banner",
    "compute_focus_state",
    "compute_focus_state_with_stickiness",
    "compute_layout_spec",
    "compute_observations",
    "compute_priority_action",
    "default_filter",
    "filter_events",
    "generate_risk_events",
    "initial_stickiness_state",
    "layout_style_vars",
    "status_badge_text",
    "status_badge_variant",
]
