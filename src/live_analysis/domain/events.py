"""Live execution events, their domain taxonomy, and the canonical total order."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Final

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_MAX_JSON_DEPTH: Final[int] = 16
_MAX_TEXT: Final[int] = 8192


class EventContractError(ValueError):
    """Raised when an event falls outside the declared type domain."""


class EventType(StrEnum):
    """Closed set of execution events the engine understands."""

    SEMANTIC_EXTRACTION = "semantic_extraction"
    AUTOMATION_STEP = "automation_step"
    PACKAGING = "packaging"
    DEPACKAGING = "depackaging"
    INTENT_DETECTION = "intent_detection"
    CONSENT_REQUIRED = "consent_required"
    POE_EVENT = "poe_event"


class EventDomain(StrEnum):
    SEMANTICS = "semantics"
    AUTOMATION = "automation"
    PACKAGING = "packaging"
    DEPACKAGING = "depackaging"
    INTENT = "intent"
    CONSENT = "consent"
    VERIFICATION = "verification"


EVENT_TYPE_TO_DOMAIN: Final[Mapping[EventType, EventDomain]] = {
    EventType.SEMANTIC_EXTRACTION: EventDomain.SEMANTICS,
    EventType.AUTOMATION_STEP: EventDomain.AUTOMATION,
    EventType.PACKAGING: EventDomain.PACKAGING,
    EventType.DEPACKAGING: EventDomain.DEPACKAGING,
    EventType.INTENT_DETECTION: EventDomain.INTENT,
    EventType.CONSENT_REQUIRED: EventDomain.CONSENT,
    EventType.POE_EVENT: EventDomain.VERIFICATION,
}

ALL_DOMAINS: Final[tuple[EventDomain, ...]] = tuple(EventDomain)

_EGRESS_CAPABLE: Final[frozenset[EventType]] = frozenset(
    {EventType.PACKAGING, EventType.DEPACKAGING}
)


def as_event_type(value: object) -> EventType:
    """Coerce ``value`` to :class:`EventType` or fail loudly."""
    if isinstance(value, EventType):
        return value
    if not isinstance(value, str):
        raise EventContractError(f"event type must be a string, got {type(value).__name__}")
    try:
        return EventType(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in EventType)
        raise EventContractError(
            f"unsupported event type {value!r}; allowed: {allowed}"
        ) from exc


def domain_for_type(event_type: EventType | str) -> EventDomain:
    """Return the domain for ``event_type``. There is no fallback domain."""
    resolved = as_event_type(event_type)
    try:
        return EVENT_TYPE_TO_DOMAIN[resolved]
    except KeyError as exc:  # pragma: no cover - the table is total over EventType
        raise EventContractError(f"event type {resolved.value!r} has no domain") from exc


@dataclass(frozen=True, slots=True)
class LiveEvent:
    """Immutable record of one thing that happened during an execution run.

    Events are totally ordered by ``(timestamp, seq)``. ``seq`` is assigned by a
    :class:`~live_analysis.domain.sequence.SequenceCounter` at creation time and
    is the only tie-breaker when timestamps collide.
    """

    event_id: str
    event_type: EventType
    timestamp: int
    seq: int
    trace_id: str
    domain: EventDomain | None = None
    capsule_id: str | None = None
    resolved: bool | None = None
    payload: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        event_type = as_event_type(self.event_type)
        object.__setattr__(self, "event_type", event_type)
        expected_domain = EVENT_TYPE_TO_DOMAIN[event_type]
        if self.domain is None:
            object.__setattr__(self, "domain", expected_domain)
        else:
            try:
                domain = EventDomain(self.domain)
            except ValueError as exc:
                raise EventContractError(f"unsupported event domain {self.domain!r}") from exc
            if domain is not expected_domain:
                raise EventContractError(
                    f"event {self.event_id!r}: domain {domain.value!r} does not match "
                    f"type {event_type.value!r} (expected {expected_domain.value!r})"
                )
            object.__setattr__(self, "domain", domain)

        _require_text(self.event_id, "LiveEvent.event_id")
        _require_text(self.trace_id, "LiveEvent.trace_id")
        if self.capsule_id is not None:
            _require_text(self.capsule_id, "LiveEvent.capsule_id")
        _require_int(self.timestamp, "LiveEvent.timestamp", minimum=0)
        _require_int(self.seq, "LiveEvent.seq", minimum=1)
        if self.resolved is not None and not isinstance(self.resolved, bool):
            raise EventContractError(
                f"LiveEvent.resolved: expected boolean, got {type(self.resolved).__name__}"
            )
        object.__setattr__(self, "payload", _as_json_object(self.payload, "LiveEvent.payload"))

    @property
    def is_consent(self) -> bool:
        return self.event_type is EventType.CONSENT_REQUIRED

    @property
    def is_unresolved_consent(self) -> bool:
        return self.is_consent and self.resolved is not True

    @property
    def declares_external_egress(self) -> bool:
        return self.event_type in _EGRESS_CAPABLE and self.payload.get("externalEgress") is True

    def mark_resolved(self) -> LiveEvent:
        """Return a copy with ``resolved=True``; the flag flips exactly once."""
        if not self.is_consent:
            raise EventContractError(
                f"event {self.event_id!r}: only consent_required events can be resolved"
            )
        if self.resolved is True:
            raise EventContractError(f"event {self.event_id!r}: consent already resolved")
        return replace(self, resolved=True)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "seq": self.seq,
            "trace_id": self.trace_id,
            "domain": self.domain.value if self.domain is not None else None,
            "capsule_id": self.capsule_id,
            "resolved": self.resolved,
            "payload": _as_json_object(self.payload, "LiveEvent.payload"),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> LiveEvent:
        required = {"event_id", "event_type", "timestamp", "seq", "trace_id"}
        optional = {"domain", "capsule_id", "resolved", "payload"}
        if not isinstance(data, Mapping):
            raise EventContractError(f"LiveEvent: expected object, got {type(data).__name__}")
        unknown = sorted(str(key) for key in data if key not in required | optional)
        if unknown:
            raise EventContractError(f"LiveEvent: unexpected fields: {unknown}")
        missing = sorted(key for key in required if key not in data)
        if missing:
            raise EventContractError(f"LiveEvent: missing required fields: {missing}")
        payload = data.get("payload")
        return cls(
            event_id=data["event_id"],  # type: ignore[arg-type]
            event_type=as_event_type(data["event_type"]),
            timestamp=data["timestamp"],  # type: ignore[arg-type]
            seq=data["seq"],  # type: ignore[arg-type]
            trace_id=data["trace_id"],  # type: ignore[arg-type]
            domain=data.get("domain"),  # type: ignore[arg-type]
            capsule_id=data.get("capsule_id"),  # type: ignore[arg-type]
            resolved=data.get("resolved"),  # type: ignore[arg-type]
            payload={} if payload is None else payload,  # type: ignore[arg-type]
        )


def event_sort_key(event: LiveEvent) -> tuple[int, int]:
    return (event.timestamp, event.seq)


def compare_events(a: LiveEvent, b: LiveEvent) -> int:
    """Three-way comparison by ``(timestamp, seq)``; negative when ``a`` sorts first."""
    if a.timestamp != b.timestamp:
        return -1 if a.timestamp < b.timestamp else 1
    if a.seq != b.seq:
        return -1 if a.seq < b.seq else 1
    return 0


def sort_events(events: Iterable[LiveEvent]) -> list[LiveEvent]:
    return sorted(events, key=event_sort_key)


def most_recent_event(events: Iterable[LiveEvent]) -> LiveEvent | None:
    """Return the last event in the total order, or ``None`` for an empty input."""
    latest: LiveEvent | None = None
    for event in events:
        if latest is None or event_sort_key(event) > event_sort_key(latest):
            latest = event
    return latest


def _require_text(value: object, path: str) -> None:
    if not isinstance(value, str):
        raise EventContractError(f"{path}: expected string, got {type(value).__name__}")
    if not value.strip():
        raise EventContractError(f"{path}: must not be empty")


def _require_int(value: object, path: str, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EventContractError(f"{path}: expected integer, got {type(value).__name__}")
    if value < minimum:
        raise EventContractError(f"{path}: must be >= {minimum}")


def _as_json_value(value: object, path: str, *, depth: int = 0) -> JSONValue:
    if depth > _MAX_JSON_DEPTH:
        raise EventContractError(f"{path}: JSON nesting too deep")

    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EventContractError(f"{path}: float value must be finite")
        return value
    if isinstance(value, str):
        if len(value) > _MAX_TEXT:
            raise EventContractError(f"{path}: string too long")
        return value
    if isinstance(value, (list, tuple)):
        return [
            _as_json_value(item, f"{path}[{idx}]", depth=depth + 1)
            for idx, item in enumerate(value)
        ]
    if isinstance(value, Mapping):
        out: dict[str, JSONValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise EventContractError(f"{path}: object keys must be strings")
            out[key] = _as_json_value(item, f"{path}.{key}", depth=depth + 1)
        return out
    raise EventContractError(f"{path}: value is not JSON-serializable ({type(value).__name__})")


def _as_json_object(value: object, path: str) -> dict[str, JSONValue]:
    parsed = _as_json_value(value, path)
    if not isinstance(parsed, dict):
        raise EventContractError(f"{path}: expected object")
    return parsed


__all__ = [
    "ALL_DOMAINS",
    "EVENT_TYPE_TO_DOMAIN",
    "EventContractError",
    "EventDomain",
    "EventType",
    "JSONValue",
    "LiveEvent",
    "as_event_type",
    "compare_events",
    "domain_for_type",
    "event_sort_key",
    "most_recent_event",
    "sort_events",
]
