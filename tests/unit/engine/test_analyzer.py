"""
live-analysis - unit tests for the frame analyzer pipeline

File: tests/unit/engine/test_analyzer.py

Purpose
- Check that filtered views drive focus and risks while the consent banner
  and priority action still see the whole stream.
- Check decision logging through an injected logger.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from live_analysis.config.schema import default_config
from live_analysis.domain.events import EventType, LiveEvent
from live_analysis.domain.models import EventFilter, PanelId, Viewport
from live_analysis.domain.sequence import EventFactory
from live_analysis.engine.analyzer import EngineSettings, LiveAnalyzer
from live_analysis.engine.priority import PriorityTier
from live_analysis.engine.verification import BadgeVariant, can_claim_proof_of_execution

VIEWPORT = Viewport(1440, 900)


@dataclass
class RecordingLogger:
    events: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    def info(self, event: str, **kwargs: object) -> None:
        self.events.append((event, dict(kwargs)))


def _two_trace_stream() -> list[LiveEvent]:
    factory = EventFactory()
    return [
        factory.create(
            EventType.CONSENT_REQUIRED,
            timestamp=100,
            trace_id="trace_A",
            resolved=False,
            payload={"scope": "external_api"},
        ),
        factory.create(
            EventType.PACKAGING,
            timestamp=200,
            trace_id="trace_B",
            payload={"externalEgress": True},
        ),
        factory.create(EventType.AUTOMATION_STEP, timestamp=300, trace_id="trace_A"),
    ]


def test_trace_filter_scopes_focus_but_not_consent_banner() -> None:
    events = _two_trace_stream()
    logger = RecordingLogger()

    frame = LiveAnalyzer(logger=logger).analyze(
        events, event_filter=EventFilter(trace_id="trace_B"), viewport=VIEWPORT
    )

    assert frame.total_event_count == 3
    assert frame.visible_event_count == 1
    assert frame.focus.focused_panel_id is PanelId.PACKAGING
    assert frame.focus.focus_event_id == events[1].event_id
    assert not frame.focus.is_consent_override
    assert frame.focus.unresolved_consent_count == 0
    assert {risk.trace_id for risk in frame.risks} == {"trace_B"}

    assert frame.consent_banner.pending_count == 1
    assert frame.consent_banner.latest_trace_id == "trace_A"
    assert frame.priority_action.tier is PriorityTier.P0
    assert frame.priority_action.title == "Approval Request"

    assert [name for name, _ in logger.events] == ["focus_decision"]
    fields = logger.events[0][1]
    assert fields["panel"] == "packaging"
    assert fields["trace_filter"] == "trace_B"
    assert fields["pending_consents_global"] == 1


def test_unfiltered_view_is_overridden_by_pending_consent() -> None:
    frame = LiveAnalyzer(logger=RecordingLogger()).analyze(
        _two_trace_stream(), viewport=VIEWPORT
    )
    assert frame.focus.focused_panel_id is PanelId.CONSENT
    assert frame.focus.is_consent_override
    assert frame.layout.focus_height_ratio == 0.75
    assert frame.style_vars["--lea-focus-height"] == "75%"


def test_stickiness_threads_through_successive_frames() -> None:
    factory = EventFactory()
    analyzer = LiveAnalyzer(logger=RecordingLogger())
    events: list[LiveEvent] = []
    stickiness = analyzer.initial_stickiness()
    panels = []
    for event_type in (EventType.PACKAGING, EventType.AUTOMATION_STEP, EventType.INTENT_DETECTION):
        events.append(factory.create(event_type, timestamp=len(events), trace_id="t"))
        frame = analyzer.analyze(events, stickiness=stickiness, viewport=VIEWPORT)
        stickiness = frame.new_stickiness
        panels.append((frame.focus.focused_panel_id, frame.focus.stickiness_applied))

    assert panels == [
        (PanelId.PACKAGING, False),
        (PanelId.PACKAGING, True),
        (PanelId.PACKAGING, True),
    ]


def test_settings_from_config_reach_the_engine() -> None:
    config = default_config()
    config["focus"]["stickiness_threshold"] = 0
    config["layout"]["narrow_breakpoint"] = 1500
    config["layout"]["medium_breakpoint"] = 1600
    settings = EngineSettings.from_config(config)

    factory = EventFactory()
    events = [
        factory.create(EventType.PACKAGING, timestamp=1, trace_id="t"),
        factory.create(EventType.AUTOMATION_STEP, timestamp=2, trace_id="t"),
    ]
    analyzer = LiveAnalyzer(settings, logger=RecordingLogger())
    first = analyzer.analyze(events[:1], viewport=VIEWPORT)
    second = analyzer.analyze(events, stickiness=first.new_stickiness, viewport=VIEWPORT)

    assert settings.stickiness_threshold == 0
    assert second.focus.focused_panel_id is PanelId.AUTOMATION
    assert second.layout.timeline_mode.value == "strip"


def test_frame_serializes_to_json() -> None:
    frame = LiveAnalyzer(logger=RecordingLogger()).analyze(
        _two_trace_stream(), viewport=VIEWPORT, is_streaming=False
    )
    payload = json.loads(json.dumps(frame.to_dict()))

    assert payload["focus"]["focused_panel_id"] == "consent"
    assert payload["event_filter"]["trace_id"] == "all"
    assert payload["risks"][0]["severity"] == "critical"
    assert {row["key"] for row in payload["alignment"]} >= {"readme.noExternalEgress"}
    assert payload["verification"]["badge_text"] == "Mock Data"
    assert payload["verification"]["can_claim_proof_of_execution"] is False


def test_empty_stream_renders_idle_frame() -> None:
    frame = LiveAnalyzer(logger=RecordingLogger()).analyze([], viewport=Viewport(0, 0))
    assert frame.focus.focused_panel_id is PanelId.FOCUS
    assert frame.risks == ()
    assert not frame.consent_banner.is_active
    assert frame.priority_action.title == "Ready for Analysis"


def test_every_frame_is_badged_as_unverified() -> None:
    analyzer = LiveAnalyzer(logger=RecordingLogger())
    events = _two_trace_stream()
    stickiness = analyzer.initial_stickiness()
    for count in range(len(events) + 1):
        frame = analyzer.analyze(events[:count], stickiness=stickiness, viewport=VIEWPORT)
        stickiness = frame.new_stickiness

        assert can_claim_proof_of_execution(frame.verification) is False
        assert frame.badge_text != "Verified"
        assert frame.badge_variant is not BadgeVariant.VERIFIED
        assert frame.to_dict()["verification"]["can_claim_verified"] is False  # type: ignore[index]
