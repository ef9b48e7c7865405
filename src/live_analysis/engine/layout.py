"""Viewport-responsive layout planning derived from focus state."""

from __future__ import annotations

from dataclasses import dataclass

from live_analysis.constants import (
    CONSENT_FOCUS_HEIGHT_RATIO,
    FOCUS_HEIGHT_RATIO,
    LAYOUT_TRANSITION,
    MEDIUM_BREAKPOINT,
    NARROW_BREAKPOINT,
    STYLE_VAR_PREFIX,
    TIMELINE_MAX_WIDTH,
    TIMELINE_MIN_WIDTH,
    TIMELINE_STRIP_HEIGHT,
    TIMELINE_WIDTH_RATIO,
)
from live_analysis.domain.models import (
    SECONDARY_PANELS,
    FocusState,
    LayoutSpec,
    PanelId,
    SecondaryMode,
    TimelineMode,
    Viewport,
)


@dataclass(frozen=True, slots=True)
class LayoutSettings:
    narrow_breakpoint: int = NARROW_BREAKPOINT
    medium_breakpoint: int = MEDIUM_BREAKPOINT
    timeline_min_width: int = TIMELINE_MIN_WIDTH
    timeline_max_width: int = TIMELINE_MAX_WIDTH
    timeline_strip_height: int = TIMELINE_STRIP_HEIGHT
    timeline_width_ratio: float = TIMELINE_WIDTH_RATIO
    focus_height_ratio: float = FOCUS_HEIGHT_RATIO
    consent_focus_height_ratio: float = CONSENT_FOCUS_HEIGHT_RATIO
    transition: str = LAYOUT_TRANSITION

    def __post_init__(self) -> None:
        if self.narrow_breakpoint > self.medium_breakpoint:
            raise ValueError("narrow_breakpoint must be <= medium_breakpoint")
        if self.timeline_min_width > self.timeline_max_width:
            raise ValueError("timeline_min_width must be <= timeline_max_width")
        for name in ("timeline_width_ratio", "focus_height_ratio", "consent_focus_height_ratio"):
            value = getattr(self, name)
            if not 0.0 < value < 1.0:
                raise ValueError(f"{name} must be between 0 and 1 (exclusive)")


DEFAULT_LAYOUT_SETTINGS = LayoutSettings()


def compute_layout_spec(
    focus: FocusState,
    viewport: Viewport,
    *,
    settings: LayoutSettings = DEFAULT_LAYOUT_SETTINGS,
) -> LayoutSpec:
    """Pure and idempotent: identical inputs always produce an identical spec."""

    is_narrow = viewport.width < settings.narrow_breakpoint
    is_medium = viewport.width < settings.medium_breakpoint

    if is_narrow:
        timeline_mode = TimelineMode.STRIP
        timeline_width = float(viewport.width)
    else:
        timeline_mode = TimelineMode.SIDEBAR
        available = viewport.width * settings.timeline_width_ratio
        timeline_width = float(
            max(settings.timeline_min_width, min(settings.timeline_max_width, available))
        )

    if focus.is_consent_override:
        focus_height_ratio = settings.consent_focus_height_ratio
        secondary_mode = SecondaryMode.MINIMIZED
    else:
        focus_height_ratio = settings.focus_height_ratio
        secondary_mode = SecondaryMode.TABS if is_medium else SecondaryMode.GRID

    return LayoutSpec(
        timeline_width=timeline_width,
        timeline_mode=timeline_mode,
        focus_height_ratio=focus_height_ratio,
        secondary_mode=secondary_mode,
        secondary_panels=secondary_panel_order(focus.focused_panel_id),
    )


def secondary_panel_order(focused_panel: PanelId) -> tuple[PanelId, ...]:
    """Canonical order with the focused secondary panel moved to the front."""
    if focused_panel not in SECONDARY_PANELS:
        return SECONDARY_PANELS
    return (focused_panel, *(panel for panel in SECONDARY_PANELS if panel is not focused_panel))


def layout_style_vars(
    spec: LayoutSpec,
    *,
    settings: LayoutSettings = DEFAULT_LAYOUT_SETTINGS,
) -> dict[str, str]:
    """Render ``spec`` as style custom properties for the canvas container."""

    is_strip = spec.timeline_mode is TimelineMode.STRIP
    return {
        f"{STYLE_VAR_PREFIX}-timeline-width": (
            "100%" if is_strip else f"{_fmt(spec.timeline_width)}px"
        ),
        f"{STYLE_VAR_PREFIX}-timeline-height": (
            f"{settings.timeline_strip_height}px" if is_strip else "100%"
        ),
        f"{STYLE_VAR_PREFIX}-focus-height": f"{_fmt(spec.focus_height_ratio * 100)}%",
        f"{STYLE_VAR_PREFIX}-secondary-height": f"{_fmt((1 - spec.focus_height_ratio) * 100)}%",
        f"{STYLE_VAR_PREFIX}-layout-transition": settings.transition,
    }


def _fmt(value: float) -> str:
    # 60.0 -> "60", 40.00000000000001 -> "40"
    rounded = round(value, 4)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


__all__ = [
    "DEFAULT_LAYOUT_SETTINGS",
    "LayoutSettings",
    "compute_layout_spec",
    "layout_style_vars",
    "secondary_panel_order",
]
