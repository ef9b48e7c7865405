"""Plain-text rendering of analysis frames for the ``lea`` CLI.

Output is deterministic: no colour, no terminal probing, stable column widths
for identical input.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

    from live_analysis.domain.events import LiveEvent
    from live_analysis.engine.analyzer import AnalysisFrame
    from live_analysis.engine.risk_rules import RiskRule


class FrameRenderer:
    """Write frames, tables and summaries as plain text."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def text(self, line: str) -> None:
        print(line, file=self.stream)

    def kv(self, key: str, value: object) -> None:
        self.text(f"{key}: {value}")

    def section(self, title: str) -> None:
        self.text(f"\n{title}")

    def table(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        if not rows:
            self.text("  (none)")
            return
        widths = [len(header) for header in headers]
        for row in rows:
            for index, cell in enumerate(row[: len(headers)]):
                widths[index] = max(widths[index], len(cell))

        def _pad(cells: Sequence[str]) -> str:
            return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

        self.text(f"  {_pad(headers)}")
        self.text(f"  {'  '.join('-' * width for width in widths)}")
        for row in rows:
            self.text(f"  {_pad(row)}")

    def step(self, index: int, event: LiveEvent, frame: AnalysisFrame) -> None:
        """One line per replayed event."""
        focus = frame.focus
        markers: list[str] = []
        if focus.is_consent_override:
            markers.append("override")
        if focus.stickiness_applied:
            markers.append("sticky")
        suffix = f" [{', '.join(markers)}]" if markers else ""
        self.text(
            f"{index:>3}  {event.event_id:<14} {event.event_type.value:<20} "
            f"{event.trace_id:<10} -> {focus.focused_panel_id.value}{suffix}"
        )

    def summary(self, frame: AnalysisFrame) -> None:
        focus = frame.focus
        layout = frame.layout

        self.section("Focus:")
        self.kv("  panel", focus.focused_panel_id.value)
        self.kv("  reason", focus.focus_reason)
        self.kv("  events", f"{frame.visible_event_count}/{frame.total_event_count} visible")
        self.kv("  data", f"{frame.badge_text} ({frame.badge_variant.value})")

        self.section("Layout:")
        self.kv("  timeline", f"{layout.timeline_mode.value} ({layout.timeline_width:g}px)")
        self.kv("  focus height", f"{layout.focus_height_ratio:g}")
        self.kv(
            "  secondary",
            f"{layout.secondary_mode.value}: "
            + ", ".join(panel.value for panel in layout.secondary_panels),
        )

        self.section("Risks:")
        self.table(
            ("SEVERITY", "RULE", "EVENT", "TITLE"),
            [
                (risk.severity.value, risk.rule_id or "-", risk.event_id or "-", risk.title)
                for risk in frame.risks
            ],
        )

        self.section("Alignment:")
        self.table(
            ("STATUS", "KEY", "CLAIMED", "OBSERVED"),
            [
                (row.status.value, row.key, row.claimed_value, row.observed_value)
                for row in frame.alignment
            ],
        )

        banner = frame.consent_banner
        if banner.is_active:
            self.section("Pending consent:")
            self.kv("  count", banner.pending_count)
            self.kv("  latest", f"{banner.latest_event_id} ({banner.latest_trace_id})")

        action = frame.priority_action
        self.section("Next action:")
        self.kv(f"  {action.tier.value}", action.title)
        self.text(f"  {action.message}")

    def rules(self, rules: Sequence[RiskRule]) -> None:
        self.table(
            ("RULE", "SEVERITY", "CATEGORY", "TITLE"),
            [
                (rule.rule_id, rule.severity.value, rule.category.value, rule.title)
                for rule in rules
            ],
        )


__all__ = ["FrameRenderer"]
