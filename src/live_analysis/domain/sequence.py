"""Explicit sequence counters and an event factory bound to them.

Sequence numbers are the sole deterministic tie-breaker between events that
share a timestamp. The counter is an explicit object owned by whoever produces
events so that tests and replays can start from a known value; nothing here is
module-level state.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Final

from live_analysis.domain.events import (
    EventType,
    JSONValue,
    LiveEvent,
    as_event_type,
    domain_for_type,
)

EVENT_ID_PREFIX: Final[str] = "live_evt"


class SequenceCounter:
    """Thread-safe, strictly increasing integer sequence."""

    __slots__ = ("_lock", "_value")

    def __init__(self, start: int = 0) -> None:
        if isinstance(start, bool) or not isinstance(start, int) or start < 0:
            raise ValueError(f"start must be a non-negative integer, got {start!r}")
        self._lock = threading.Lock()
        self._value = start

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def current(self) -> int:
        with self._lock:
            return self._value

    def reset(self, start: int = 0) -> None:
        if isinstance(start, bool) or not isinstance(start, int) or start < 0:
            raise ValueError(f"start must be a non-negative integer, got {start!r}")
        with self._lock:
            self._value = start


class EventFactory:
    """Create :class:`LiveEvent` records with monotonic ``seq`` and unique ids."""

    def __init__(
        self,
        sequence: SequenceCounter | None = None,
        *,
        id_prefix: str = EVENT_ID_PREFIX,
    ) -> None:
        if not id_prefix.strip():
            raise ValueError("id_prefix must not be empty")
        self._sequence = sequence if sequence is not None else SequenceCounter()
        self._ids = SequenceCounter()
        self._id_prefix = id_prefix

    @property
    def sequence(self) -> SequenceCounter:
        return self._sequence

    def create(
        self,
        event_type: EventType | str,
        *,
        timestamp: int,
        trace_id: str,
        payload: Mapping[str, JSONValue] | None = None,
        resolved: bool | None = None,
        capsule_id: str | None = None,
    ) -> LiveEvent:
        resolved_type = as_event_type(event_type)
        return LiveEvent(
            event_id=f"{self._id_prefix}_{self._ids.next()}",
            event_type=resolved_type,
            timestamp=timestamp,
            seq=self._sequence.next(),
            trace_id=trace_id,
            domain=domain_for_type(resolved_type),
            capsule_id=capsule_id,
            resolved=resolved,
            payload=dict(payload or {}),
        )


__all__ = ["EVENT_ID_PREFIX", "EventFactory", "SequenceCounter"]
