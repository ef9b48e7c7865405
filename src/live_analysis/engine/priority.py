"""
Highest-priority dashboard action across analysis phases.

Tiers, highest first:
- P0: the user must act now (pending consent, failed policy gate)
- P1: integrity review (proof artefact awaiting review, mismatches, critical risks)
- P2: live execution worth monitoring
- P3: informational
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from live_analysis.domain.events import LiveEvent
from live_analysis.domain.models import RiskEvent, RiskSeverity


class PriorityTier(StrEnum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class ActionStatus(StrEnum):
    ACTION_REQUIRED = "action-required"
    REVIEW = "review"
    MONITOR = "monitor"
    INFO = "info"


class AnalysisPhase(StrEnum):
    DASHBOARD = "dashboard"
    PRE_EXECUTION = "pre-execution"
    LIVE = "live"
    POST_EXECUTION = "post-execution"


class DrawerTab(StrEnum):
    EVIDENCE = "evidence"
    RISKS = "risks"


_STATUS_LABELS: Final[dict[ActionStatus, str]] = {
    ActionStatus.ACTION_REQUIRED: "ACTION REQUIRED",
    ActionStatus.REVIEW: "REVIEW NEEDED",
    ActionStatus.MONITOR: "MONITORING",
    ActionStatus.INFO: "INFORMATION",
}

_STATUS_COLORS: Final[dict[ActionStatus, str]] = {
    ActionStatus.ACTION_REQUIRED: "critical",
    ActionStatus.REVIEW: "high",
    ActionStatus.MONITOR: "medium",
    ActionStatus.INFO: "info",
}


@dataclass(frozen=True, slots=True)
class CallToAction:
    label: str
    target_phase: AnalysisPhase
    drawer_tab: DrawerTab | None = None
    rule_id: str | None = None
    event_id: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "label": self.label,
            "target_phase": self.target_phase.value,
            "drawer_tab": None if self.drawer_tab is None else self.drawer_tab.value,
            "rule_id": self.rule_id,
            "event_id": self.event_id,
        }


@dataclass(frozen=True, slots=True)
class PriorityAction:
    tier: PriorityTier
    status: ActionStatus
    title: str
    message: str
    primary_cta: CallToAction
    secondary_cta: CallToAction | None = None
    facts: dict[str, int | bool | str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "tier": self.tier.value,
            "status": self.status.value,
            "title": self.title,
            "message": self.message,
            "primary_cta": self.primary_cta.to_dict(),
            "secondary_cta": None if self.secondary_cta is None else self.secondary_cta.to_dict(),
            "facts": dict(sorted(self.facts.items())),
        }


@dataclass(frozen=True, slots=True)
class PreExecutionSnapshot:
    failed_gates: int = 0
    pending_consents: int = 0
    mismatch_count: int = 0
    risk_level: str = "low"
    blocking_issues: int = 0


@dataclass(frozen=True, slots=True)
class LiveExecutionSnapshot:
    is_streaming: bool = False
    event_count: int = 0
    unresolved_consents: int = 0
    active_warnings: int = 0
    critical_risks: int = 0


@dataclass(frozen=True, slots=True)
class PostExecutionSnapshot:
    has_execution: bool = False
    status: str = "pending"
    proof_ready: bool = False
    verification_complete: bool = False


@dataclass(frozen=True, slots=True)
class DashboardState:
    pre_execution: PreExecutionSnapshot = field(default_factory=PreExecutionSnapshot)
    live_execution: LiveExecutionSnapshot = field(default_factory=LiveExecutionSnapshot)
    post_execution: PostExecutionSnapshot = field(default_factory=PostExecutionSnapshot)


def live_snapshot_from_events(
    events: Sequence[LiveEvent],
    risks: Sequence[RiskEvent],
    *,
    is_streaming: bool,
) -> LiveExecutionSnapshot:
    """Derive the live snapshot from engine output instead of hand-filled counts."""
    return LiveExecutionSnapshot(
        is_streaming=is_streaming,
        event_count=len(events),
        unresolved_consents=sum(1 for event in events if event.is_unresolved_consent),
        active_warnings=sum(
            1 for risk in risks if risk.severity in (RiskSeverity.MEDIUM, RiskSeverity.HIGH)
        ),
        critical_risks=sum(1 for risk in risks if risk.severity is RiskSeverity.CRITICAL),
    )


def compute_priority_action(state: DashboardState) -> PriorityAction:
    pre = state.pre_execution
    live = state.live_execution
    post = state.post_execution

    if live.unresolved_consents > 0:
        count = live.unresolved_consents
        return PriorityAction(
            tier=PriorityTier.P0,
            status=ActionStatus.ACTION_REQUIRED,
            title="Approval Request",
            message=(
                f"{count} approval request{_plural(count)} awaiting your decision "
                "to continue processing."
            ),
            primary_cta=CallToAction(
                "Review & Approve", AnalysisPhase.LIVE, drawer_tab=DrawerTab.EVIDENCE
            ),
            secondary_cta=CallToAction("View Events", AnalysisPhase.LIVE),
            facts={"pending_consents": count, "live_event_count": live.event_count},
        )

    if pre.failed_gates > 0:
        count = pre.failed_gates
        return PriorityAction(
            tier=PriorityTier.P0,
            status=ActionStatus.ACTION_REQUIRED,
            title="Policy Review Required",
            message=(
                f"{count} policy gate{_plural(count)} require{'s' if count == 1 else ''} "
                "your review before proceeding."
            ),
            primary_cta=CallToAction("Review Policies", AnalysisPhase.PRE_EXECUTION),
            secondary_cta=CallToAction(
                "View Details", AnalysisPhase.PRE_EXECUTION, drawer_tab=DrawerTab.RISKS
            ),
            facts={
                "failed_gates": count,
                "pending_consents": pre.pending_consents,
                "mismatch_count": pre.mismatch_count,
            },
        )

    if pre.pending_consents > 0:
        count = pre.pending_consents
        return PriorityAction(
            tier=PriorityTier.P0,
            status=ActionStatus.ACTION_REQUIRED,
            title="Consent Pending",
            message=(
                f"{count} consent requirement{_plural(count)} awaiting approval before "
                "execution can proceed."
            ),
            primary_cta=CallToAction("Give Consent", AnalysisPhase.PRE_EXECUTION),
            facts={"pending_consents": count, "failed_gates": pre.failed_gates},
        )

    if post.proof_ready and not post.verification_complete:
        return PriorityAction(
            tier=PriorityTier.P1,
            status=ActionStatus.REVIEW,
            title="Proof Artefact Ready",
            message=(
                "A proof-of-execution artefact placeholder has been generated and requires "
                "review or export. It is not cryptographically verified."
            ),
            primary_cta=CallToAction("Review Artefact", AnalysisPhase.POST_EXECUTION),
            secondary_cta=CallToAction("Export Evidence", AnalysisPhase.POST_EXECUTION),
            facts={
                "proof_ready": True,
                "completed_status": "success" if post.status == "completed" else "failed",
            },
        )

    if pre.mismatch_count > 0 and pre.risk_level == "high":
        count = pre.mismatch_count
        return PriorityAction(
            tier=PriorityTier.P1,
            status=ActionStatus.REVIEW,
            title="Template Annotations Available",
            message=(
                f"{count} annotation{_plural(count)} highlight{'s' if count == 1 else ''} "
                "passages in the automation template that may need attention."
            ),
            primary_cta=CallToAction(
                "View Annotations", AnalysisPhase.PRE_EXECUTION, drawer_tab=DrawerTab.RISKS
            ),
            facts={"mismatch_count": count, "active_risks": pre.blocking_issues},
        )

    if live.critical_risks > 0:
        count = live.critical_risks
        return PriorityAction(
            tier=PriorityTier.P1,
            status=ActionStatus.REVIEW,
            title="Flagged Items for Review",
            message=(
                f"{count} item{_plural(count)} flagged during live execution for your attention."
            ),
            primary_cta=CallToAction(
                "Review Items", AnalysisPhase.LIVE, drawer_tab=DrawerTab.RISKS
            ),
            facts={"active_risks": count, "live_event_count": live.event_count},
        )

    if live.is_streaming and live.event_count > 0:
        count = live.event_count
        return PriorityAction(
            tier=PriorityTier.P2,
            status=ActionStatus.MONITOR,
            title="Processing Active",
            message=(
                f"Automation running with {count} event{_plural(count)} processed. "
                "All guardrails active."
            ),
            primary_cta=CallToAction("View Details", AnalysisPhase.LIVE),
            facts={"live_event_count": count, "active_risks": live.active_warnings},
        )

    if post.has_execution and post.status == "completed":
        return PriorityAction(
            tier=PriorityTier.P3,
            status=ActionStatus.INFO,
            title="Execution Completed",
            message=(
                "Most recent execution completed. Review the verification summary for details."
            ),
            primary_cta=CallToAction("View Summary", AnalysisPhase.POST_EXECUTION),
            facts={"completed_status": "success", "proof_ready": post.proof_ready},
        )

    return PriorityAction(
        tier=PriorityTier.P3,
        status=ActionStatus.INFO,
        title="Ready for Analysis",
        message="No active executions or pending actions. Start a new analysis session to begin.",
        primary_cta=CallToAction("Start Pre-Execution", AnalysisPhase.PRE_EXECUTION),
    )


def status_label(status: ActionStatus) -> str:
    return _STATUS_LABELS[status]


def status_color(status: ActionStatus) -> str:
    return _STATUS_COLORS[status]


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


__all__ = [
    "ActionStatus",
    "AnalysisPhase",
    "CallToAction",
    "DashboardState",
    "DrawerTab",
    "LiveExecutionSnapshot",
    "PostExecutionSnapshot",
    "PreExecutionSnapshot",
    "PriorityAction",
    "PriorityTier",
    "compute_priority_action",
    "live_snapshot_from_events",
    "status_color",
    "status_label",
]
