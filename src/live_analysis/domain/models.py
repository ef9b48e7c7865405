"""Value records exchanged between the engine and the rendering layer.

Every record here is frozen and recomputed from scratch by the engine on each
call. The one exception in spirit is :class:`FocusStickinessState`, which the
caller persists between calls and hands back on the next one.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from live_analysis.constants import ALL_TRACES, FOCUS_STICKINESS_THRESHOLD, SEVERITY_WEIGHT
from live_analysis.domain.events import ALL_DOMAINS, EventDomain


class RiskSeverity(StrEnum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHT[self.value]


class RiskCategory(StrEnum):
    POLICY = "policy"
    EGRESS = "egress"
    DOCS = "docs"
    DETERMINISM = "determinism"
    CONSENT = "consent"
    INTEGRITY = "integrity"


class AlignmentStatus(StrEnum):
    MATCH = "match"
    MISMATCH = "mismatch"
    UNKNOWN = "unknown"
    NOT_APPLICABLE = "not-applicable"


class PanelId(StrEnum):
    TIMELINE = "timeline"
    FOCUS = "focus"
    SEMANTIC = "semantic"
    AUTOMATION = "automation"
    PACKAGING = "packaging"
    INTENT = "intent"
    CONSENT = "consent"


SECONDARY_PANELS: Final[tuple[PanelId, ...]] = (
    PanelId.SEMANTIC,
    PanelId.AUTOMATION,
    PanelId.PACKAGING,
    PanelId.INTENT,
    PanelId.CONSENT,
)


class TimelineMode(StrEnum):
    SIDEBAR = "sidebar"
    STRIP = "strip"


class SecondaryMode(StrEnum):
    GRID = "grid"
    TABS = "tabs"
    MINIMIZED = "minimized"


@dataclass(frozen=True, slots=True)
class RiskEvent:
    """Finding emitted by one risk rule for exactly one triggering event."""

    risk_id: str
    timestamp: int
    seq: int
    severity: RiskSeverity
    category: RiskCategory
    title: str
    explanation: str
    rule_id: str | None = None
    trace_id: str | None = None
    event_id: str | None = None
    is_mock: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "risk_id": self.risk_id,
            "timestamp": self.timestamp,
            "seq": self.seq,
            "severity": self.severity.value,
            "category": self.category.value,
            "title": self.title,
            "explanation": self.explanation,
            "rule_id": self.rule_id,
            "trace_id": self.trace_id,
            "event_id": self.event_id,
            "is_mock": self.is_mock,
        }


@dataclass(frozen=True, slots=True)
class ReadmeClaims:
    """Guarantees stated in the automation's documentation."""

    no_external_egress: bool = True
    deterministic_only: bool = True
    requires_consent_for_external_api: bool = True


@dataclass(frozen=True, slots=True)
class TemplateClaims:
    """Ingress/egress declared by the automation template."""

    declared_ingress: tuple[str, ...] = ()
    declared_egress: tuple[str, ...] = ()
    allowed_domains: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class ClaimSet:
    readme_claims: ReadmeClaims
    template_claims: TemplateClaims

    def to_dict(self) -> dict[str, object]:
        template = self.template_claims
        return {
            "readme_claims": {
                "no_external_egress": self.readme_claims.no_external_egress,
                "deterministic_only": self.readme_claims.deterministic_only,
                "requires_consent_for_external_api": (
                    self.readme_claims.requires_consent_for_external_api
                ),
            },
            "template_claims": {
                "declared_ingress": list(template.declared_ingress),
                "declared_egress": list(template.declared_egress),
                "allowed_domains": (
                    None if template.allowed_domains is None else list(template.allowed_domains)
                ),
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ClaimSet:
        """Build a claim set from a plain mapping; missing sections use defaults."""
        if not isinstance(data, Mapping):
            raise ValueError(f"ClaimSet: expected object, got {type(data).__name__}")
        allowed = {"readme_claims", "template_claims"}
        unknown = sorted(str(key) for key in data if key not in allowed)
        if unknown:
            raise ValueError(f"ClaimSet: unexpected fields: {unknown}")

        readme_raw = _expect_mapping(data.get("readme_claims", {}), "ClaimSet.readme_claims")
        defaults = ReadmeClaims()
        readme = ReadmeClaims(
            no_external_egress=_expect_bool(
                readme_raw.get("no_external_egress", defaults.no_external_egress),
                "ClaimSet.readme_claims.no_external_egress",
            ),
            deterministic_only=_expect_bool(
                readme_raw.get("deterministic_only", defaults.deterministic_only),
                "ClaimSet.readme_claims.deterministic_only",
            ),
            requires_consent_for_external_api=_expect_bool(
                readme_raw.get(
                    "requires_consent_for_external_api",
                    defaults.requires_consent_for_external_api,
                ),
                "ClaimSet.readme_claims.requires_consent_for_external_api",
            ),
        )

        template_raw = _expect_mapping(
            data.get("template_claims", {}), "ClaimSet.template_claims"
        )
        allowed_raw = template_raw.get("allowed_domains")
        template = TemplateClaims(
            declared_ingress=_expect_str_tuple(
                template_raw.get("declared_ingress", ()),
                "ClaimSet.template_claims.declared_ingress",
            ),
            declared_egress=_expect_str_tuple(
                template_raw.get("declared_egress", ()),
                "ClaimSet.template_claims.declared_egress",
            ),
            allowed_domains=(
                None
                if allowed_raw is None
                else _expect_str_tuple(allowed_raw, "ClaimSet.template_claims.allowed_domains")
            ),
        )
        return cls(readme_claims=readme, template_claims=template)


DEFAULT_CLAIMS: Final[ClaimSet] = ClaimSet(
    readme_claims=ReadmeClaims(
        no_external_egress=True,
        deterministic_only=True,
        requires_consent_for_external_api=True,
    ),
    template_claims=TemplateClaims(
        declared_ingress=("session_import", "capsule_depackaging"),
        declared_egress=("capsule_packaging", "internal_storage"),
        allowed_domains=("internal.example.com",),
    ),
)


@dataclass(frozen=True, slots=True)
class ObservationSet:
    """What the event stream shows actually happened."""

    observed_external_egress: bool = False
    observed_egress_domains: tuple[str, ...] = ()
    observed_ai_involvement: bool = False
    observed_ingress_kinds: tuple[str, ...] = ()
    observed_egress_kinds: tuple[str, ...] = ()
    unverified_steps: tuple[str, ...] = ()
    consent_requested_for_external_api: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "observed_external_egress": self.observed_external_egress,
            "observed_egress_domains": list(self.observed_egress_domains),
            "observed_ai_involvement": self.observed_ai_involvement,
            "observed_ingress_kinds": list(self.observed_ingress_kinds),
            "observed_egress_kinds": list(self.observed_egress_kinds),
            "unverified_steps": list(self.unverified_steps),
            "consent_requested_for_external_api": self.consent_requested_for_external_api,
        }


@dataclass(frozen=True, slots=True)
class AlignmentRow:
    key: str
    claim_label: str
    claimed_value: str
    observed_value: str
    status: AlignmentStatus
    linked_rule_ids: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "key": self.key,
            "claim_label": self.claim_label,
            "claimed_value": self.claimed_value,
            "observed_value": self.observed_value,
            "status": self.status.value,
            "linked_rule_ids": list(self.linked_rule_ids),
        }


@dataclass(frozen=True, slots=True)
class FocusStickinessState:
    """Caller-owned hysteresis record threaded through successive focus computations."""

    current_panel_id: PanelId = PanelId.FOCUS
    current_event_id: str | None = None
    events_since_focus_change: int = 0
    locked_until_event_count: int = FOCUS_STICKINESS_THRESHOLD

    def __post_init__(self) -> None:
        object.__setattr__(self, "current_panel_id", PanelId(self.current_panel_id))
        for name in ("events_since_focus_change", "locked_until_event_count"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"FocusStickinessState.{name} must be a non-negative integer")

    def to_dict(self) -> dict[str, object]:
        return {
            "current_panel_id": self.current_panel_id.value,
            "current_event_id": self.current_event_id,
            "events_since_focus_change": self.events_since_focus_change,
            "locked_until_event_count": self.locked_until_event_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> FocusStickinessState:
        if not isinstance(data, Mapping):
            raise ValueError(
                f"FocusStickinessState: expected object, got {type(data).__name__}"
            )
        fields = {
            "current_panel_id",
            "current_event_id",
            "events_since_focus_change",
            "locked_until_event_count",
        }
        unknown = sorted(str(key) for key in data if key not in fields)
        if unknown:
            raise ValueError(f"FocusStickinessState: unexpected fields: {unknown}")
        missing = sorted(fields - set(data))
        if missing:
            raise ValueError(f"FocusStickinessState: missing required fields: {missing}")
        return cls(
            current_panel_id=PanelId(str(data["current_panel_id"])),
            current_event_id=(
                None if data.get("current_event_id") is None else str(data["current_event_id"])
            ),
            events_since_focus_change=data["events_since_focus_change"],  # type: ignore[arg-type]
            locked_until_event_count=data["locked_until_event_count"],  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True)
class FocusState:
    focused_panel_id: PanelId
    focus_reason: str
    focus_event_id: str | None
    is_consent_override: bool
    unresolved_consent_count: int
    stickiness_applied: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "focused_panel_id": self.focused_panel_id.value,
            "focus_reason": self.focus_reason,
            "focus_event_id": self.focus_event_id,
            "is_consent_override": self.is_consent_override,
            "unresolved_consent_count": self.unresolved_consent_count,
            "stickiness_applied": self.stickiness_applied,
        }


@dataclass(frozen=True, slots=True)
class Viewport:
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"Viewport.{name} must be a non-negative number")


@dataclass(frozen=True, slots=True)
class LayoutSpec:
    timeline_width: float
    timeline_mode: TimelineMode
    focus_height_ratio: float
    secondary_mode: SecondaryMode
    secondary_panels: tuple[PanelId, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "timeline_width": self.timeline_width,
            "timeline_mode": self.timeline_mode.value,
            "focus_height_ratio": self.focus_height_ratio,
            "secondary_mode": self.secondary_mode.value,
            "secondary_panels": [panel.value for panel in self.secondary_panels],
        }


@dataclass(frozen=True, slots=True)
class EventFilter:
    """Restrict the event stream to one trace (or ``"all"``) and a set of domains."""

    trace_id: str = ALL_TRACES
    domains: frozenset[EventDomain] = frozenset(ALL_DOMAINS)

    def __post_init__(self) -> None:
        if not isinstance(self.trace_id, str) or not self.trace_id.strip():
            raise ValueError("EventFilter.trace_id must be a non-empty string")
        object.__setattr__(
            self, "domains", frozenset(EventDomain(domain) for domain in self.domains)
        )

    @property
    def is_active(self) -> bool:
        return self.trace_id != ALL_TRACES or self.domains != frozenset(ALL_DOMAINS)

    def with_domains(self, domains: Iterable[EventDomain | str]) -> EventFilter:
        return EventFilter(
            trace_id=self.trace_id, domains=frozenset(EventDomain(d) for d in domains)
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "trace_id": self.trace_id,
            "domains": sorted(domain.value for domain in self.domains),
        }


def _expect_mapping(value: object, path: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{path}: expected object, got {type(value).__name__}")
    return value


def _expect_bool(value: object, path: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{path}: expected boolean, got {type(value).__name__}")
    return value


def _expect_str_tuple(value: object, path: str) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValueError(f"{path}: expected list of strings, got {type(value).__name__}")
    out: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"{path}[{index}]: expected non-empty string")
        out.append(item.strip())
    return tuple(out)


__all__ = [
    "DEFAULT_CLAIMS",
    "SECONDARY_PANELS",
    "AlignmentRow",
    "AlignmentStatus",
    "ClaimSet",
    "EventFilter",
    "FocusState",
    "FocusStickinessState",
    "LayoutSpec",
    "ObservationSet",
    "PanelId",
    "ReadmeClaims",
    "RiskCategory",
    "RiskEvent",
    "RiskSeverity",
    "SecondaryMode",
    "TemplateClaims",
    "TimelineMode",
    "Viewport",
]
