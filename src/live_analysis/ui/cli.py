"""Command-line interface router for live-analysis."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from live_analysis.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from live_analysis.domain.events import EventDomain
from live_analysis.domain.models import Viewport
from live_analysis.engine.analyzer import AnalysisFrame, EngineSettings, LiveAnalyzer
from live_analysis.engine.filtering import available_traces, build_filter
from live_analysis.engine.risk_rules import RISK_RULES
from live_analysis.observability import correlation_scope, setup_logging, shutdown_logging
from live_analysis.scenarios import Scenario, ScenarioLoadError, load_scenario
from live_analysis.ui.render import FrameRenderer


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="lea",
        description=(
            "live-analysis - deterministic risk, alignment and focus engine.\n\n"
            "Common workflows:\n"
            "  lea replay scenario.yaml            Replay a scenario event by event\n"
            "  lea replay scenario.yaml --json     Emit one JSON frame per event\n"
            "  lea rules                           List the risk rules\n"
            "  lea config                          Show the effective config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./live_analysis.toml if present).",
    )
    common.add_argument("--json", action="store_true", help="Emit deterministic JSON output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # replay --------------------------------------------------------------
    replay_parser = subparsers.add_parser(
        "replay",
        parents=[common],
        help="Replay a YAML scenario through the engine",
        description=(
            "Feed scenario events to the engine one at a time, threading focus\n"
            "stickiness between steps, and print the resulting frames.\n\n"
            "Examples:\n"
            "  lea replay samples/scenarios/two_trace_demo.yaml\n"
            "  lea replay demo.yaml --trace trace_B --domain packaging --domain consent\n"
            "  lea replay demo.yaml --width 800 --height 600 --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    replay_parser.add_argument("scenario_path", help="Path to the scenario YAML file")
    replay_parser.add_argument("--trace", default=None, help="Only analyze this trace id")
    replay_parser.add_argument(
        "--domain",
        dest="domains",
        action="append",
        choices=[domain.value for domain in EventDomain],
        default=None,
        help="Enable an event domain (repeatable; default: all domains)",
    )
    replay_parser.add_argument("--width", type=float, default=None, help="Viewport width (px)")
    replay_parser.add_argument("--height", type=float, default=None, help="Viewport height (px)")
    replay_parser.add_argument(
        "--final-only",
        action="store_true",
        help="Print only the frame after the last event",
    )
    replay_parser.set_defaults(handler=_cmd_replay)

    # rules ---------------------------------------------------------------
    rules_parser = subparsers.add_parser(
        "rules", parents=[common], help="List the declarative risk rules"
    )
    rules_parser.set_defaults(handler=_cmd_rules)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config", parents=[common], help="Show the effective config"
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_replay(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    scenario = _load_scenario(args.scenario_path)
    viewport = _resolve_viewport(args, scenario)
    try:
        event_filter = build_filter(trace_id=args.trace, domains=args.domains)
    except ValueError as exc:
        raise CLIError(f"invalid filter: {exc}", exit_code=2) from exc

    if args.trace is not None and args.trace not in scenario.trace_ids:
        known = ", ".join(available_traces(scenario.events)) or "(none)"
        raise CLIError(f"unknown trace {args.trace!r}; scenario traces: {known}", exit_code=2)

    analyzer = LiveAnalyzer(EngineSettings.from_config(config))
    stickiness = analyzer.initial_stickiness()
    renderer = FrameRenderer()
    json_output = bool(args.json)

    setup_logging(config["observability"], run_id=scenario.name)
    try:
        frame: AnalysisFrame | None = None
        for index, event in enumerate(scenario.events, start=1):
            with correlation_scope(trace_id=event.trace_id, event_id=event.event_id):
                frame = analyzer.analyze(
                    scenario.events[:index],
                    stickiness=stickiness,
                    event_filter=event_filter,
                    claims=scenario.claims,
                    viewport=viewport,
                    is_streaming=True,
                )
            stickiness = frame.new_stickiness
            if args.final_only:
                continue
            if json_output:
                _emit_json({"step": index, "event": event.to_dict(), "frame": frame.to_dict()})
            else:
                renderer.step(index, event, frame)

        if frame is None:
            frame = analyzer.analyze(
                (),
                stickiness=stickiness,
                event_filter=event_filter,
                claims=scenario.claims,
                viewport=viewport,
                is_streaming=False,
            )
        if json_output:
            if args.final_only:
                _emit_json({"step": len(scenario.events), "frame": frame.to_dict()})
        else:
            renderer.kv("Scenario", f"{scenario.name} ({len(scenario.events)} events)")
            renderer.summary(frame)
    finally:
        shutdown_logging()
    return 0


def _cmd_rules(args: argparse.Namespace) -> int:
    if args.json:
        _emit_json({"command": "rules", "rules": [rule.describe() for rule in RISK_RULES]})
        return 0
    FrameRenderer().rules(RISK_RULES)
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    if args.json:
        _emit_json({"command": "config", "config": config})
        return 0
    print(dump_effective_config(config))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    try:
        return load_config(getattr(args, "config_path", None))
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _load_scenario(path: str) -> Scenario:
    try:
        return load_scenario(path)
    except ScenarioLoadError as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _resolve_viewport(args: argparse.Namespace, scenario: Scenario) -> Viewport:
    width = args.width if args.width is not None else scenario.viewport.width
    height = args.height if args.height is not None else scenario.viewport.height
    try:
        return Viewport(width=width, height=height)
    except ValueError as exc:
        raise CLIError(f"invalid viewport: {exc}", exit_code=2) from exc


__all__ = ["CLIError", "build_parser", "run_cli"]
