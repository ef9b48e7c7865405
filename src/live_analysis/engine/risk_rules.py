"""
Declarative risk rules and deterministic risk finding generation.

Each rule is a record holding fixed metadata plus a pure predicate
``(event, all_events, readme_claims_no_egress) -> bool``. The engine evaluates
every rule against every event independently and returns findings in a stable
order: severity descending, then timestamp ascending, then sequence ascending.

Rules are exact boolean checks on declared payload fields. Findings are
heuristic (``is_mock=True``) and never constitute an attestation.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Final

from live_analysis.constants import ALL_TRACES
from live_analysis.domain.events import EventType, LiveEvent, event_sort_key
from live_analysis.domain.models import RiskCategory, RiskEvent, RiskSeverity

RuleCondition = Callable[[LiveEvent, Sequence[LiveEvent], bool], bool]

RULE_EGRESS: Final[str] = "EGRESS-001"
RULE_README_ALIGNMENT: Final[str] = "ALIGN-README-001"
RULE_DETERMINISM: Final[str] = "DETERM-001"
RULE_CONSENT: Final[str] = "CONSENT-001"
RULE_INTEGRITY: Final[str] = "INTEG-001"
RULE_POLICY: Final[str] = "POLICY-001"


@dataclass(frozen=True, slots=True)
class RiskRule:
    rule_id: str
    title: str
    explanation: str
    severity: RiskSeverity
    category: RiskCategory
    condition: RuleCondition

    def matches(
        self,
        event: LiveEvent,
        all_events: Sequence[LiveEvent],
        readme_claims_no_egress: bool,
    ) -> bool:
        return bool(self.condition(event, all_events, readme_claims_no_egress))

    def describe(self) -> dict[str, str]:
        return {
            "rule_id": self.rule_id,
            "title": self.title,
            "severity": self.severity.value,
            "category": self.category.value,
            "explanation": self.explanation,
        }


def _external_egress(event: LiveEvent, _all: Sequence[LiveEvent], _flag: bool) -> bool:
    return event.declares_external_egress


def _readme_no_egress_violated(
    event: LiveEvent, _all: Sequence[LiveEvent], readme_claims_no_egress: bool
) -> bool:
    return readme_claims_no_egress and event.declares_external_egress


def _non_deterministic_component(
    event: LiveEvent, _all: Sequence[LiveEvent], _flag: bool
) -> bool:
    if event.event_type is not EventType.INTENT_DETECTION:
        return False
    return "aiModel" in event.payload or "detected_intent" in event.payload


def _unresolved_consent(event: LiveEvent, _all: Sequence[LiveEvent], _flag: bool) -> bool:
    return event.is_unresolved_consent


def _unverified_capsule(event: LiveEvent, _all: Sequence[LiveEvent], _flag: bool) -> bool:
    if event.event_type is not EventType.DEPACKAGING:
        return False
    return event.payload.get("verified") is False


def _policy_scope_exceeded(event: LiveEvent, _all: Sequence[LiveEvent], _flag: bool) -> bool:
    if event.event_type is not EventType.CONSENT_REQUIRED:
        return False
    return event.payload.get("scope") == "external_api"


RISK_RULES: Final[tuple[RiskRule, ...]] = (
    RiskRule(
        rule_id=RULE_EGRESS,
        title="External egress detected",
        explanation=(
            "This packaging/depackaging event has externalEgress=true, indicating data is "
            "leaving the controlled environment."
        ),
        severity=RiskSeverity.HIGH,
        category=RiskCategory.EGRESS,
        condition=_external_egress,
    ),
    RiskRule(
        rule_id=RULE_README_ALIGNMENT,
        title="README claims violated",
        explanation=(
            'Documentation states "no egress" but an external egress event was detected. '
            "This is a documentation alignment failure."
        ),
        severity=RiskSeverity.CRITICAL,
        category=RiskCategory.DOCS,
        condition=_readme_no_egress_violated,
    ),
    RiskRule(
        rule_id=RULE_DETERMINISM,
        title="Non-deterministic component",
        explanation=(
            "An AI/LLM-related event was detected. AI outputs are inherently "
            "non-deterministic and may produce varying results."
        ),
        severity=RiskSeverity.MEDIUM,
        category=RiskCategory.DETERMINISM,
        condition=_non_deterministic_component,
    ),
    RiskRule(
        rule_id=RULE_CONSENT,
        title="Unresolved consent",
        explanation=(
            "A consent requirement is pending resolution. Execution may be blocked or "
            "unauthorized until resolved."
        ),
        severity=RiskSeverity.CRITICAL,
        category=RiskCategory.CONSENT,
        condition=_unresolved_consent,
    ),
    RiskRule(
        rule_id=RULE_INTEGRITY,
        title="Unverified capsule",
        explanation=(
            "A depackaging event processed a capsule with verified=false. Data integrity "
            "cannot be confirmed."
        ),
        severity=RiskSeverity.HIGH,
        category=RiskCategory.INTEGRITY,
        condition=_unverified_capsule,
    ),
    RiskRule(
        rule_id=RULE_POLICY,
        title="Policy scope exceeded",
        explanation=(
            "Event scope exceeds declared policy boundaries (external_api access detected)."
        ),
        severity=RiskSeverity.MEDIUM,
        category=RiskCategory.POLICY,
        condition=_policy_scope_exceeded,
    ),
)


def rules_by_id(rules: Iterable[RiskRule] = RISK_RULES) -> dict[str, RiskRule]:
    indexed: dict[str, RiskRule] = {}
    for rule in rules:
        if rule.rule_id in indexed:
            raise ValueError(f"duplicate risk rule id: {rule.rule_id}")
        indexed[rule.rule_id] = rule
    return indexed


def risk_sort_key(risk: RiskEvent) -> tuple[int, int, int]:
    return (-risk.severity.weight, risk.timestamp, risk.seq)


def compare_risks(a: RiskEvent, b: RiskEvent) -> int:
    """Three-way comparison: severity descending, then timestamp, then seq."""
    key_a = risk_sort_key(a)
    key_b = risk_sort_key(b)
    if key_a == key_b:
        return 0
    return -1 if key_a < key_b else 1


def generate_risk_events(
    events: Sequence[LiveEvent],
    readme_claims_no_egress: bool = True,
    *,
    rules: Sequence[RiskRule] = RISK_RULES,
) -> list[RiskEvent]:
    """Evaluate every rule against every event and return sorted findings.

    ``risk_id`` is derived from the triggering event id and the rule id, so
    re-running on the same events yields identical ids. ``seq`` records the
    generation order over the event total order, so ties fall back to event
    ``(timestamp, seq)`` and then to rule order.
    """

    snapshot = tuple(events)
    risks: list[RiskEvent] = []
    for event in sorted(snapshot, key=event_sort_key):
        for rule in rules:
            if not rule.matches(event, snapshot, readme_claims_no_egress):
                continue
            risks.append(
                RiskEvent(
                    risk_id=f"risk_{event.event_id}_{rule.rule_id}",
                    timestamp=event.timestamp,
                    seq=len(risks) + 1,
                    severity=rule.severity,
                    category=rule.category,
                    title=rule.title,
                    explanation=rule.explanation,
                    rule_id=rule.rule_id,
                    trace_id=event.trace_id,
                    event_id=event.event_id,
                    is_mock=True,
                )
            )
    return sorted(risks, key=cmp_to_key(compare_risks))


def filter_risks_by_trace(risks: Sequence[RiskEvent], trace_filter: str) -> list[RiskEvent]:
    """Keep risks for ``trace_filter``; risks without a trace are global and always kept."""
    if trace_filter == ALL_TRACES:
        return list(risks)
    return [risk for risk in risks if not risk.trace_id or risk.trace_id == trace_filter]


def risks_for_event(risks: Sequence[RiskEvent], event_id: str) -> list[RiskEvent]:
    return [risk for risk in risks if risk.event_id == event_id]


def risks_for_alignment_row(
    risks: Sequence[RiskEvent], linked_rule_ids: Iterable[str]
) -> list[RiskEvent]:
    """Pivot from an alignment row to the findings of the rules it links to."""
    wanted = frozenset(linked_rule_ids)
    return [risk for risk in risks if risk.rule_id is not None and risk.rule_id in wanted]


def highest_severity(risks: Iterable[RiskEvent]) -> RiskSeverity | None:
    highest: RiskSeverity | None = None
    for risk in risks:
        if highest is None or risk.severity.weight > highest.weight:
            highest = risk.severity
    return highest


def top_risks(risks: Sequence[RiskEvent], count: int) -> list[RiskEvent]:
    if count < 0:
        raise ValueError("count must be >= 0")
    return sorted(risks, key=risk_sort_key)[:count]


def severity_counts(risks: Iterable[RiskEvent]) -> Mapping[RiskSeverity, int]:
    counts = {severity: 0 for severity in RiskSeverity}
    for risk in risks:
        counts[risk.severity] += 1
    return counts


__all__ = [
    "RISK_RULES",
    "RULE_CONSENT",
    "RULE_DETERMINISM",
    "RULE_EGRESS",
    "RULE_INTEGRITY",
    "RULE_POLICY",
    "RULE_README_ALIGNMENT",
    "RiskRule",
    "RuleCondition",
    "compare_risks",
    "filter_risks_by_trace",
    "generate_risk_events",
    "highest_severity",
    "risk_sort_key",
    "risks_for_alignment_row",
    "risks_for_event",
    "rules_by_id",
    "severity_counts",
    "top_risks",
]
