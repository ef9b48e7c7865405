"""
live-analysis - configuration schema and validation.

File: src/live_analysis/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject unknown keys so typos never silently fall back to defaults.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from live_analysis.constants import (
    CONFIG_SCHEMA_VERSION,
    CONSENT_FOCUS_HEIGHT_RATIO,
    FOCUS_HEIGHT_RATIO,
    FOCUS_STICKINESS_THRESHOLD,
    LAYOUT_TRANSITION,
    MEDIUM_BREAKPOINT,
    NARROW_BREAKPOINT,
    TIMELINE_MAX_WIDTH,
    TIMELINE_MIN_WIDTH,
    TIMELINE_STRIP_HEIGHT,
    TIMELINE_WIDTH_RATIO,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (("observability", "log_dir"),)

_LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
_RATIO_FIELDS: Final[tuple[str, ...]] = (
    "timeline_width_ratio",
    "focus_height_ratio",
    "consent_focus_height_ratio",
)
_PIXEL_FIELDS: Final[tuple[str, ...]] = (
    "narrow_breakpoint",
    "medium_breakpoint",
    "timeline_min_width",
    "timeline_max_width",
    "timeline_strip_height",
)


class MetaConfig(TypedDict):
    schema_version: int


class FocusConfig(TypedDict):
    stickiness_threshold: int


class LayoutConfig(TypedDict):
    narrow_breakpoint: int
    medium_breakpoint: int
    timeline_min_width: int
    timeline_max_width: int
    timeline_strip_height: int
    timeline_width_ratio: float
    focus_height_ratio: float
    consent_focus_height_ratio: float
    transition: str


class ObservabilityConfig(TypedDict):
    log_level: str
    log_dir: str
    log_to_stdout: bool


class AnalysisConfig(TypedDict):
    meta: MetaConfig
    focus: FocusConfig
    layout: LayoutConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[AnalysisConfig] = {
    "meta": {"schema_version": CONFIG_SCHEMA_VERSION},
    "focus": {"stickiness_threshold": FOCUS_STICKINESS_THRESHOLD},
    "layout": {
        "narrow_breakpoint": NARROW_BREAKPOINT,
        "medium_breakpoint": MEDIUM_BREAKPOINT,
        "timeline_min_width": TIMELINE_MIN_WIDTH,
        "timeline_max_width": TIMELINE_MAX_WIDTH,
        "timeline_strip_height": TIMELINE_STRIP_HEIGHT,
        "timeline_width_ratio": TIMELINE_WIDTH_RATIO,
        "focus_height_ratio": FOCUS_HEIGHT_RATIO,
        "consent_focus_height_ratio": CONSENT_FOCUS_HEIGHT_RATIO,
        "transition": LAYOUT_TRANSITION,
    },
    "observability": {
        "log_level": "INFO",
        "log_dir": "logs",
        "log_to_stdout": False,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> AnalysisConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade live_analysis.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the live-analysis package"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = copy.deepcopy(dict(base))
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    _reject_unknown_keys(root, set(DEFAULT_CONFIG), "", issues)
    normalized: dict[str, Any] = {}

    meta = _section(root, "meta", issues)
    if meta is not None:
        normalized["meta"] = _validate_meta(meta, issues)
    focus = _section(root, "focus", issues)
    if focus is not None:
        normalized["focus"] = _validate_focus(focus, issues)
    layout = _section(root, "layout", issues)
    if layout is not None:
        normalized["layout"] = _validate_layout(layout, issues)
    observability = _section(root, "observability", issues)
    if observability is not None:
        normalized["observability"] = _validate_observability(observability, issues)

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _section(
    root: Mapping[str, object], name: str, issues: _IssueCollector
) -> dict[str, object] | None:
    if name not in root:
        issues.add(name, "missing required section")
        return None
    section = _as_object(root[name], name, issues)
    if section is None:
        return None
    expected = set(DEFAULT_CONFIG[name])  # type: ignore[literal-required]
    _reject_unknown_keys(section, expected, name, issues)
    _require_keys(section, expected, name, issues)
    return section


def _validate_meta(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "schema_version" in payload:
        version = _as_int(payload["schema_version"], "meta.schema_version", issues, minimum=1)
        if version is not None:
            if version != ConfigSchemaVersion:
                issues.add("meta.schema_version", migration_guidance(version))
            else:
                out["schema_version"] = version
    return out


def _validate_focus(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "stickiness_threshold" in payload:
        threshold = _as_int(
            payload["stickiness_threshold"], "focus.stickiness_threshold", issues, minimum=0
        )
        if threshold is not None:
            out["stickiness_threshold"] = threshold
    return out


def _validate_layout(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name in _PIXEL_FIELDS:
        if name in payload:
            parsed = _as_int(payload[name], _join("layout", name), issues, minimum=0)
            if parsed is not None:
                out[name] = parsed
    for name in _RATIO_FIELDS:
        if name in payload:
            ratio = _as_float(payload[name], _join("layout", name), issues)
            if ratio is None:
                continue
            if not 0.0 < ratio < 1.0:
                issues.add(_join("layout", name), "must be between 0 and 1 (exclusive)")
                continue
            out[name] = ratio
    if "transition" in payload:
        transition = _as_str(payload["transition"], "layout.transition", issues)
        if transition is not None:
            out["transition"] = transition

    narrow = out.get("narrow_breakpoint")
    medium = out.get("medium_breakpoint")
    if narrow is not None and medium is not None and narrow > medium:
        issues.add("layout.narrow_breakpoint", "must be <= layout.medium_breakpoint")
    min_width = out.get("timeline_min_width")
    max_width = out.get("timeline_max_width")
    if min_width is not None and max_width is not None and min_width > max_width:
        issues.add("layout.timeline_min_width", "must be <= layout.timeline_max_width")
    return out


def _validate_observability(
    payload: Mapping[str, object], issues: _IssueCollector
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "log_level" in payload:
        level = _as_str(payload["log_level"], "observability.log_level", issues)
        if level is not None:
            level = level.upper()
            if level not in _LOG_LEVELS:
                expected = ", ".join(_LOG_LEVELS)
                issues.add(
                    "observability.log_level",
                    f"invalid value {level!r}; expected one of: {expected}",
                )
            else:
                out["log_level"] = level
    if "log_dir" in payload:
        log_dir = _as_str(payload["log_dir"], "observability.log_dir", issues)
        if log_dir is not None:
            if "\x00" in log_dir:
                issues.add("observability.log_dir", "must not contain NUL bytes")
            else:
                out["log_dir"] = log_dir
    if "log_to_stdout" in payload:
        flag = _as_bool(payload["log_to_stdout"], "observability.log_to_stdout", issues)
        if flag is not None:
            out["log_to_stdout"] = flag
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_float(value: object, path: str, issues: _IssueCollector) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        existing = target.get(key)
        if isinstance(value, Mapping) and isinstance(existing, dict):
            _merge_into(existing, value)
        elif isinstance(value, Mapping):
            nested: dict[str, Any] = {}
            _merge_into(nested, value)
            target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


__all__ = [
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "AnalysisConfig",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
