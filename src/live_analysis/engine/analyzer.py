"""
Frame analysis: the full engine pipeline for one render of the live view.

Data flow per call:
- the filter restricts the event stream to the selected trace and domains
- risk findings, observations/alignment and focus are computed on that view
- the layout is planned from the resulting focus and the viewport
- the consent banner is computed on the unfiltered stream, so a filter can
  never hide a pending consent
- every frame carries verification flags; none of them can claim proof of
  execution

The analyzer holds settings and a logger only. Stickiness state comes in as an
argument and goes back out on the frame; the caller persists it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

import structlog

from live_analysis.constants import FOCUS_STICKINESS_THRESHOLD
from live_analysis.domain.events import LiveEvent
from live_analysis.domain.models import (
    DEFAULT_CLAIMS,
    AlignmentRow,
    ClaimSet,
    EventFilter,
    FocusState,
    FocusStickinessState,
    LayoutSpec,
    ObservationSet,
    RiskEvent,
    Viewport,
)
from live_analysis.engine.alignment import compute_alignment, compute_observations
from live_analysis.engine.filtering import default_filter, filter_events
from live_analysis.engine.focus import (
    ConsentBanner,
    compute_consent_banner,
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
    live_snapshot_from_events,
)
from live_analysis.engine.risk_rules import generate_risk_events
from live_analysis.engine.verification import (
    DEFAULT_VERIFICATION_FLAGS,
    BadgeVariant,
    VerificationFlags,
    can_claim_proof_of_execution,
    can_claim_verified,
    status_badge_text,
    status_badge_variant,
)


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Typed engine settings materialized from the validated config mapping."""

    stickiness_threshold: int = FOCUS_STICKINESS_THRESHOLD
    layout: LayoutSettings = DEFAULT_LAYOUT_SETTINGS

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> EngineSettings:
        focus_cfg = config.get("focus", {})
        layout_cfg = config.get("layout", {})
        defaults = DEFAULT_LAYOUT_SETTINGS
        return cls(
            stickiness_threshold=int(
                focus_cfg.get("stickiness_threshold", FOCUS_STICKINESS_THRESHOLD)
            ),
            layout=LayoutSettings(
                narrow_breakpoint=int(
                    layout_cfg.get("narrow_breakpoint", defaults.narrow_breakpoint)
                ),
                medium_breakpoint=int(
                    layout_cfg.get("medium_breakpoint", defaults.medium_breakpoint)
                ),
                timeline_min_width=int(
                    layout_cfg.get("timeline_min_width", defaults.timeline_min_width)
                ),
                timeline_max_width=int(
                    layout_cfg.get("timeline_max_width", defaults.timeline_max_width)
                ),
                timeline_strip_height=int(
                    layout_cfg.get("timeline_strip_height", defaults.timeline_strip_height)
                ),
                timeline_width_ratio=float(
                    layout_cfg.get("timeline_width_ratio", defaults.timeline_width_ratio)
                ),
                focus_height_ratio=float(
                    layout_cfg.get("focus_height_ratio", defaults.focus_height_ratio)
                ),
                consent_focus_height_ratio=float(
                    layout_cfg.get(
                        "consent_focus_height_ratio", defaults.consent_focus_height_ratio
                    )
                ),
                transition=str(layout_cfg.get("transition", defaults.transition)),
            ),
        )


@dataclass(frozen=True, slots=True)
class AnalysisFrame:
    """Everything the rendering layer needs for one frame."""

    event_filter: EventFilter
    total_event_count: int
    visible_event_count: int
    risks: tuple[RiskEvent, ...]
    observations: ObservationSet
    alignment: tuple[AlignmentRow, ...]
    focus: FocusState
    new_stickiness: FocusStickinessState
    layout: LayoutSpec
    style_vars: dict[str, str]
    consent_banner: ConsentBanner
    priority_action: PriorityAction
    verification: VerificationFlags = DEFAULT_VERIFICATION_FLAGS

    @property
    def badge_text(self) -> str:
        return status_badge_text(self.verification)

    @property
    def badge_variant(self) -> BadgeVariant:
        return status_badge_variant(self.verification)

    def to_dict(self) -> dict[str, object]:
        return {
            "event_filter": self.event_filter.to_dict(),
            "total_event_count": self.total_event_count,
            "visible_event_count": self.visible_event_count,
            "risks": [risk.to_dict() for risk in self.risks],
            "observations": self.observations.to_dict(),
            "alignment": [row.to_dict() for row in self.alignment],
            "focus": self.focus.to_dict(),
            "new_stickiness": self.new_stickiness.to_dict(),
            "layout": self.layout.to_dict(),
            "style_vars": dict(sorted(self.style_vars.items())),
            "consent_banner": self.consent_banner.to_dict(),
            "priority_action": self.priority_action.to_dict(),
            "verification": {
                **self.verification.to_dict(),
                "badge_text": self.badge_text,
                "badge_variant": self.badge_variant.value,
                "can_claim_verified": can_claim_verified(self.verification),
                "can_claim_proof_of_execution": can_claim_proof_of_execution(self.verification),
            },
        }


class LiveAnalyzer:
    """Run the engine pipeline and log each focus decision."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        logger: Any | None = None,
    ) -> None:
        self._settings = settings if settings is not None else EngineSettings()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def initial_stickiness(self) -> FocusStickinessState:
        return initial_stickiness_state(self._settings.stickiness_threshold)

    def analyze(
        self,
        events: Sequence[LiveEvent],
        *,
        stickiness: FocusStickinessState | None = None,
        event_filter: EventFilter | None = None,
        claims: ClaimSet = DEFAULT_CLAIMS,
        viewport: Viewport,
        is_streaming: bool = True,
    ) -> AnalysisFrame:
        prior = stickiness if stickiness is not None else self.initial_stickiness()
        active_filter = event_filter if event_filter is not None else default_filter()

        visible = filter_events(events, active_filter)
        risks = generate_risk_events(
            visible, readme_claims_no_egress=claims.readme_claims.no_external_egress
        )
        observations = compute_observations(visible)
        alignment = compute_alignment(claims, observations)
        focus, new_stickiness = compute_focus_state_with_stickiness(
            visible, prior, threshold=self._settings.stickiness_threshold
        )
        layout = compute_layout_spec(focus, viewport, settings=self._settings.layout)
        banner = compute_consent_banner(events)

        # Pending consents outside the filter still demand action.
        live_snapshot = replace(
            live_snapshot_from_events(visible, risks, is_streaming=is_streaming),
            unresolved_consents=banner.pending_count,
        )
        priority_action = compute_priority_action(DashboardState(live_execution=live_snapshot))

        self._log_decision(focus, new_stickiness, active_filter, banner)

        return AnalysisFrame(
            event_filter=active_filter,
            total_event_count=len(events),
            visible_event_count=len(visible),
            risks=tuple(risks),
            observations=observations,
            alignment=tuple(alignment),
            focus=focus,
            new_stickiness=new_stickiness,
            layout=layout,
            style_vars=layout_style_vars(layout, settings=self._settings.layout),
            consent_banner=banner,
            priority_action=priority_action,
            verification=DEFAULT_VERIFICATION_FLAGS,
        )

    def _log_decision(
        self,
        focus: FocusState,
        new_stickiness: FocusStickinessState,
        event_filter: EventFilter,
        banner: ConsentBanner,
    ) -> None:
        self._logger.info(
            "focus_decision",
            panel=focus.focused_panel_id.value,
            event_id=focus.focus_event_id,
            reason=focus.focus_reason,
            consent_override=focus.is_consent_override,
            stickiness_applied=focus.stickiness_applied,
            events_since_focus_change=new_stickiness.events_since_focus_change,
            trace_filter=event_filter.trace_id,
            pending_consents_global=banner.pending_count,
        )


__all__ = ["AnalysisFrame", "EngineSettings", "LiveAnalyzer"]
