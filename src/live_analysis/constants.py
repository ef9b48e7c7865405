"""Stable constants shared across the live analysis engine."""

from __future__ import annotations

from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1
SCENARIO_SCHEMA_VERSION: Final[int] = 1

# Focus stickiness: events that must elapse before focus may move absent an override.
FOCUS_STICKINESS_THRESHOLD: Final[int] = 2

# Layout breakpoints (pixels).
NARROW_BREAKPOINT: Final[int] = 900
MEDIUM_BREAKPOINT: Final[int] = 1200

# Timeline sizing (pixels unless noted).
TIMELINE_MIN_WIDTH: Final[int] = 280
TIMELINE_MAX_WIDTH: Final[int] = 360
TIMELINE_STRIP_HEIGHT: Final[int] = 80
TIMELINE_WIDTH_RATIO: Final[float] = 0.25

# Focus panel height ratios.
FOCUS_HEIGHT_RATIO: Final[float] = 0.60
CONSENT_FOCUS_HEIGHT_RATIO: Final[float] = 0.75

LAYOUT_TRANSITION: Final[str] = "220ms ease-out"
STYLE_VAR_PREFIX: Final[str] = "--lea"

# Severity weights for deterministic sorting.
SEVERITY_LEVELS: Final[tuple[str, ...]] = ("info", "low", "medium", "high", "critical")
SEVERITY_WEIGHT: Final[dict[str, int]] = {
    "info": 0,
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}

ALL_TRACES: Final[str] = "all"
UNKNOWN_EGRESS_DOMAIN: Final[str] = "external.unknown"

__all__ = [
    "ALL_TRACES",
    "CONFIG_SCHEMA_VERSION",
    "CONSENT_FOCUS_HEIGHT_RATIO",
    "FOCUS_HEIGHT_RATIO",
    "FOCUS_STICKINESS_THRESHOLD",
    "LAYOUT_TRANSITION",
    "MEDIUM_BREAKPOINT",
    "NARROW_BREAKPOINT",
    "SCENARIO_SCHEMA_VERSION",
    "SEVERITY_LEVELS",
    "SEVERITY_WEIGHT",
    "STYLE_VAR_PREFIX",
    "TIMELINE_MAX_WIDTH",
    "TIMELINE_MIN_WIDTH",
    "TIMELINE_STRIP_HEIGHT",
    "TIMELINE_WIDTH_RATIO",
    "UNKNOWN_EGRESS_DOMAIN",
]
