"""Fold events into observations and reconcile them against declared claims."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from live_analysis.constants import UNKNOWN_EGRESS_DOMAIN
from live_analysis.domain.events import EventType, LiveEvent
from live_analysis.domain.models import (
    AlignmentRow,
    AlignmentStatus,
    ClaimSet,
    ObservationSet,
)
from live_analysis.engine.risk_rules import (
    RULE_CONSENT,
    RULE_DETERMINISM,
    RULE_EGRESS,
    RULE_INTEGRITY,
    RULE_POLICY,
    RULE_README_ALIGNMENT,
)

INGRESS_CAPSULE_DEPACKAGING: Final[str] = "capsule_depackaging"
INGRESS_SEMANTIC_EXTRACTION: Final[str] = "semantic_extraction"
EGRESS_CAPSULE_PACKAGING: Final[str] = "capsule_packaging"
EGRESS_EXTERNAL: Final[str] = "external_egress"

ROW_NO_EXTERNAL_EGRESS: Final[str] = "readme.noExternalEgress"
ROW_DETERMINISTIC_ONLY: Final[str] = "readme.deterministicOnly"
ROW_CONSENT_FOR_EXTERNAL_API: Final[str] = "readme.requiresConsentForExternalApi"
ROW_DECLARED_EGRESS: Final[str] = "template.declaredEgress"
ROW_UNVERIFIED_STEPS: Final[str] = "integrity.unverifiedSteps"
ROW_ALLOWED_DOMAINS: Final[str] = "template.allowedDomains"


def compute_observations(events: Iterable[LiveEvent]) -> ObservationSet:
    """Single forward pass over ``events``; identical input gives identical output."""

    external_egress = False
    ai_involvement = False
    consent_for_external_api = False
    egress_domains: set[str] = set()
    ingress_kinds: set[str] = set()
    egress_kinds: set[str] = set()
    unverified: set[str] = set()

    for event in events:
        payload = event.payload
        event_type = event.event_type

        if event.declares_external_egress:
            external_egress = True
            domain = payload.get("egressDomain")
            if isinstance(domain, str) and domain.strip():
                egress_domains.add(domain.strip().lower())
            else:
                egress_domains.add(UNKNOWN_EGRESS_DOMAIN)

        if event_type is EventType.INTENT_DETECTION and (
            payload.get("aiModel") or payload.get("detected_intent")
        ):
            ai_involvement = True

        if event_type is EventType.DEPACKAGING:
            ingress_kinds.add(INGRESS_CAPSULE_DEPACKAGING)
            if payload.get("verified") is False:
                unverified.add(f"depackaging:{event.capsule_id or event.event_id}")
        elif event_type is EventType.SEMANTIC_EXTRACTION:
            ingress_kinds.add(INGRESS_SEMANTIC_EXTRACTION)
        elif event_type is EventType.PACKAGING:
            egress_kinds.add(EGRESS_CAPSULE_PACKAGING)
            if payload.get("externalEgress"):
                egress_kinds.add(EGRESS_EXTERNAL)
        elif event_type is EventType.CONSENT_REQUIRED and payload.get("scope") == "external_api":
            consent_for_external_api = True

    return ObservationSet(
        observed_external_egress=external_egress,
        observed_egress_domains=tuple(sorted(egress_domains)),
        observed_ai_involvement=ai_involvement,
        observed_ingress_kinds=tuple(sorted(ingress_kinds)),
        observed_egress_kinds=tuple(sorted(egress_kinds)),
        unverified_steps=tuple(sorted(unverified)),
        consent_requested_for_external_api=consent_for_external_api,
    )


def compute_alignment(claims: ClaimSet, observations: ObservationSet) -> list[AlignmentRow]:
    """Compare each declared claim dimension with what was observed.

    One row per dimension, always in the same order; the allow-list row is
    emitted only when the template declares a non-empty allow-list.
    """

    readme = claims.readme_claims
    template = claims.template_claims
    rows: list[AlignmentRow] = []

    if readme.no_external_egress and observations.observed_external_egress:
        egress_status = AlignmentStatus.MISMATCH
    elif observations.observed_external_egress:
        egress_status = AlignmentStatus.UNKNOWN
    else:
        egress_status = AlignmentStatus.MATCH
    rows.append(
        AlignmentRow(
            key=ROW_NO_EXTERNAL_EGRESS,
            claim_label="No External Egress",
            claimed_value=_bool_text(readme.no_external_egress),
            observed_value="DETECTED" if observations.observed_external_egress else "none",
            status=egress_status,
            linked_rule_ids=(RULE_README_ALIGNMENT, RULE_EGRESS),
        )
    )

    rows.append(
        AlignmentRow(
            key=ROW_DETERMINISTIC_ONLY,
            claim_label="Deterministic Only",
            claimed_value=_bool_text(readme.deterministic_only),
            observed_value="AI DETECTED" if observations.observed_ai_involvement else "none",
            status=(
                AlignmentStatus.MISMATCH
                if readme.deterministic_only and observations.observed_ai_involvement
                else AlignmentStatus.MATCH
            ),
            linked_rule_ids=(RULE_DETERMINISM,),
        )
    )

    # Not seeing a violation is not evidence of compliance.
    rows.append(
        AlignmentRow(
            key=ROW_CONSENT_FOR_EXTERNAL_API,
            claim_label="Consent for External API",
            claimed_value=(
                "required" if readme.requires_consent_for_external_api else "not required"
            ),
            observed_value=(
                "requested" if observations.consent_requested_for_external_api else "not requested"
            ),
            status=(
                AlignmentStatus.MATCH
                if observations.consent_requested_for_external_api
                else AlignmentStatus.UNKNOWN
            ),
            linked_rule_ids=(RULE_CONSENT, RULE_POLICY),
        )
    )

    declared_egress = frozenset(template.declared_egress)
    undeclared = [
        kind for kind in observations.observed_egress_kinds if kind not in declared_egress
    ]
    rows.append(
        AlignmentRow(
            key=ROW_DECLARED_EGRESS,
            claim_label="Declared Egress Types",
            claimed_value=_join_or_none(template.declared_egress),
            observed_value=_join_or_none(observations.observed_egress_kinds),
            status=AlignmentStatus.MISMATCH if undeclared else AlignmentStatus.MATCH,
            linked_rule_ids=(RULE_EGRESS,),
        )
    )

    unverified_count = len(observations.unverified_steps)
    rows.append(
        AlignmentRow(
            key=ROW_UNVERIFIED_STEPS,
            claim_label="All Steps Verified",
            claimed_value="expected",
            observed_value=f"{unverified_count} unverified" if unverified_count else "all verified",
            status=AlignmentStatus.MISMATCH if unverified_count else AlignmentStatus.MATCH,
            linked_rule_ids=(RULE_INTEGRITY,),
        )
    )

    if template.allowed_domains:
        allowed = frozenset(domain.lower() for domain in template.allowed_domains)
        violating = [
            domain for domain in observations.observed_egress_domains if domain not in allowed
        ]
        rows.append(
            AlignmentRow(
                key=ROW_ALLOWED_DOMAINS,
                claim_label="Allowed Egress Domains",
                claimed_value=", ".join(template.allowed_domains),
                observed_value=_join_or_none(observations.observed_egress_domains),
                status=AlignmentStatus.MISMATCH if violating else AlignmentStatus.MATCH,
                linked_rule_ids=(RULE_README_ALIGNMENT,),
            )
        )

    return rows


def mismatched_rows(rows: Iterable[AlignmentRow]) -> list[AlignmentRow]:
    return [row for row in rows if row.status is AlignmentStatus.MISMATCH]


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _join_or_none(values: Iterable[str]) -> str:
    return ", ".join(values) or "none"


__all__ = [
    "EGRESS_CAPSULE_PACKAGING",
    "EGRESS_EXTERNAL",
    "INGRESS_CAPSULE_DEPACKAGING",
    "INGRESS_SEMANTIC_EXTRACTION",
    "ROW_ALLOWED_DOMAINS",
    "ROW_CONSENT_FOR_EXTERNAL_API",
    "ROW_DECLARED_EGRESS",
    "ROW_DETERMINISTIC_ONLY",
    "ROW_NO_EXTERNAL_EGRESS",
    "ROW_UNVERIFIED_STEPS",
    "compute_alignment",
    "compute_observations",
    "mismatched_rows",
]
