"""
live-analysis - YAML scenario loader.

File: src/live_analysis/scenarios.py

Purpose
- Turn a recorded or hand-written scenario file into a deterministic event stream
  plus the claims and viewport it should be analyzed against.

Scenario shape
- ``schema_version`` (optional, must equal the supported version)
- ``name`` (optional; defaults to the file stem)
- ``base_timestamp`` (integer milliseconds)
- ``events``: list of ``{type, offset, trace_id, capsule_id?, resolved?, data?}``
- ``claims`` (optional; README and template claims, defaults otherwise)
- ``viewport`` (optional; ``{width, height}``)

Events are created in file order through one :class:`EventFactory`, so ``seq``
and ``event_id`` follow the file even when offsets collide.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, cast

import yaml

from live_analysis.constants import SCENARIO_SCHEMA_VERSION
from live_analysis.domain.events import EventContractError, LiveEvent
from live_analysis.domain.models import DEFAULT_CLAIMS, ClaimSet, Viewport
from live_analysis.domain.sequence import EventFactory, SequenceCounter

DEFAULT_VIEWPORT: Final[Viewport] = Viewport(width=1440, height=900)

_TOP_LEVEL_FIELDS: Final[frozenset[str]] = frozenset(
    {"schema_version", "name", "base_timestamp", "events", "claims", "viewport"}
)
_EVENT_FIELDS: Final[frozenset[str]] = frozenset(
    {"type", "offset", "trace_id", "capsule_id", "resolved", "data"}
)


class ScenarioLoadError(ValueError):
    """Raised when a scenario file is unreadable or malformed."""


@dataclass(frozen=True, slots=True)
class Scenario:
    name: str
    events: tuple[LiveEvent, ...]
    claims: ClaimSet = DEFAULT_CLAIMS
    viewport: Viewport = DEFAULT_VIEWPORT

    @property
    def trace_ids(self) -> tuple[str, ...]:
        return tuple(sorted({event.trace_id for event in self.events}))


def load_scenario(path: str | Path) -> Scenario:
    scenario_path = Path(path)
    try:
        with scenario_path.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except OSError as exc:
        raise ScenarioLoadError(f"unable to read scenario file {scenario_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ScenarioLoadError(f"{scenario_path}: invalid YAML ({exc})") from exc

    return parse_scenario(loaded, default_name=scenario_path.stem, location=scenario_path.name)


def parse_scenario(
    payload: object,
    *,
    default_name: str = "scenario",
    location: str = "<scenario>",
) -> Scenario:
    """Build a :class:`Scenario` from an already-decoded mapping."""

    root = _expect_mapping(payload, location)
    unknown = sorted(set(root) - _TOP_LEVEL_FIELDS)
    if unknown:
        raise ScenarioLoadError(f"{location}: unexpected fields: {unknown}")

    version = root.get("schema_version", SCENARIO_SCHEMA_VERSION)
    if version != SCENARIO_SCHEMA_VERSION:
        raise ScenarioLoadError(
            f"{location}.schema_version: unsupported version {version!r}; "
            f"expected {SCENARIO_SCHEMA_VERSION}"
        )

    name = root.get("name", default_name)
    if not isinstance(name, str) or not name.strip():
        raise ScenarioLoadError(f"{location}.name: expected non-empty string")
    name = name.strip()
    # The name becomes the per-run log directory.
    if Path(name).name != name or name == ".." or "\x00" in name:
        raise ScenarioLoadError(f"{location}.name: must be a single path segment, got {name!r}")

    base_timestamp = _expect_int(root.get("base_timestamp", 0), f"{location}.base_timestamp")

    raw_events = root.get("events")
    if isinstance(raw_events, (str, bytes)) or not isinstance(raw_events, Sequence):
        raise ScenarioLoadError(f"{location}.events: expected a list of events")

    factory = EventFactory(SequenceCounter())
    events = tuple(
        _parse_event(
            item,
            factory,
            base_timestamp=base_timestamp,
            location=f"{location}.events[{index}]",
        )
        for index, item in enumerate(raw_events)
    )

    claims = DEFAULT_CLAIMS
    if root.get("claims") is not None:
        raw_claims = _expect_mapping(root["claims"], f"{location}.claims")
        try:
            claims = ClaimSet.from_dict(raw_claims)
        except ValueError as exc:
            raise ScenarioLoadError(f"{location}.claims: {exc}") from exc

    viewport = DEFAULT_VIEWPORT
    if root.get("viewport") is not None:
        viewport = parse_viewport(root["viewport"], location=f"{location}.viewport")

    return Scenario(name=name, events=events, claims=claims, viewport=viewport)


def parse_viewport(value: object, *, location: str = "viewport") -> Viewport:
    raw = _expect_mapping(value, location)
    unknown = sorted(set(raw) - {"width", "height"})
    if unknown:
        raise ScenarioLoadError(f"{location}: unexpected fields: {unknown}")
    try:
        return Viewport(width=raw.get("width"), height=raw.get("height"))  # type: ignore[arg-type]
    except ValueError as exc:
        raise ScenarioLoadError(f"{location}: {exc}") from exc


def _parse_event(
    value: object,
    factory: EventFactory,
    *,
    base_timestamp: int,
    location: str,
) -> LiveEvent:
    raw = _expect_mapping(value, location)
    unknown = sorted(set(raw) - _EVENT_FIELDS)
    if unknown:
        raise ScenarioLoadError(f"{location}: unexpected fields: {unknown}")
    for required in ("type", "trace_id"):
        if required not in raw:
            raise ScenarioLoadError(f"{location}.{required}: missing required field")

    offset = _expect_int(raw.get("offset", 0), f"{location}.offset")
    trace_id = raw["trace_id"]
    if not isinstance(trace_id, str) or not trace_id.strip():
        raise ScenarioLoadError(f"{location}.trace_id: expected non-empty string")

    resolved = raw.get("resolved")
    if resolved is not None and not isinstance(resolved, bool):
        raise ScenarioLoadError(f"{location}.resolved: expected boolean")
    capsule_id = raw.get("capsule_id")
    if capsule_id is not None and not isinstance(capsule_id, str):
        raise ScenarioLoadError(f"{location}.capsule_id: expected string")
    data = raw.get("data") or {}
    data = _expect_mapping(data, f"{location}.data")

    try:
        return factory.create(
            cast("str", raw["type"]),
            timestamp=base_timestamp + offset,
            trace_id=trace_id.strip(),
            payload=dict(data),  # type: ignore[arg-type]
            resolved=resolved,
            capsule_id=capsule_id,
        )
    except EventContractError as exc:
        raise ScenarioLoadError(f"{location}: {exc}") from exc


def _expect_mapping(value: object, location: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise ScenarioLoadError(f"{location}: expected mapping, got {type(value).__name__}")
    for key in value:
        if not isinstance(key, str):
            raise ScenarioLoadError(f"{location}: keys must be strings, got {type(key).__name__}")
    return cast("Mapping[str, object]", value)


def _expect_int(value: object, location: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScenarioLoadError(f"{location}: expected integer, got {type(value).__name__}")
    if value < 0:
        raise ScenarioLoadError(f"{location}: must be >= 0")
    return value


__all__ = [
    "DEFAULT_VIEWPORT",
    "Scenario",
    "ScenarioLoadError",
    "load_scenario",
    "parse_scenario",
    "parse_viewport",
]
