#!/usr/bin/env python3
"""
Module: scripts/arc_agent.py
Summary: Run the affinity diagram agent for one instruction from the command line.
Inputs: instruction text (argument, --instruction-file or stdin); ARC_* env; OPENAI_API_KEY
Outputs: JSON result on stdout, or the raw rendered image with --image
Related: arcagent/runtime/arc/*, arcagent/config/settings.py
Stability: beta

Usage:
  python scripts/arc_agent.py "Build an affinity diagram for Login, Database, Cache" --dry-run
  python scripts/arc_agent.py "Login, Database, Cache, Search" --svg --image arc.svg
  echo "Kitchen, Dining, Storage" | python scripts/arc_agent.py - --run-log runs.jsonl

Environment:
  - OPENAI_API_KEY
  - ARC_MODEL, ARC_RENDER_URL, ARC_RETURN_SVG, ARC_SCORE_LOCALE
  - ARC_MAX_ROUNDS, ARC_MAX_WALL_CLOCK_S, ARC_LOG_LEVEL (see arcagent/config/settings.py)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

from arcagent.config import AgentSettings, resolve_settings
from arcagent.logging import build_failure_record, build_record, log_run
from arcagent.runtime.arc import (
    ArcAgentOrchestrator,
    ArcRenderer,
    ArcRunError,
    LoggingTelemetryClient,
    OpenAIResponsesEngine,
    OrchestratorConfig,
    ResponsesEngineConfig,
)

logger = logging.getLogger("arc_agent")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build an affinity diagram with a tool-calling agent")
    p.add_argument("instruction", nargs="?", default=None, help="Instruction text, or '-' to read stdin")
    p.add_argument("--instruction-file", default=None, help="Read the instruction from a file")
    p.add_argument("--model", default=None, help="Inference model name (overrides ARC_MODEL)")
    p.add_argument("--render-url", default=None, help="Rendering service endpoint (overrides ARC_RENDER_URL)")
    p.add_argument("--svg", action="store_true", default=None, help="Request SVG instead of PNG")
    p.add_argument("--locale", default=None, help="Score table locale: en or id")
    p.add_argument("--max-rounds", type=int, default=None, help="Abort after N dispatch rounds")
    p.add_argument("--max-seconds", type=float, default=None, help="Abort after N seconds of wall clock")
    p.add_argument("--render-on-finish", action="store_true", default=None, help="Render once if the agent never did")
    p.add_argument("--image", default=None, help="Write the raw rendered image here instead of printing JSON")
    p.add_argument("--output", default=None, help="Write the JSON result to this file")
    p.add_argument("--run-log", default=None, help="Append a JSONL run record to this file")
    p.add_argument("--label", default="arc-run", help="Label stored in the run record")
    p.add_argument("--telemetry", action="store_true", help="Log telemetry spans")
    p.add_argument("--dry-run", action="store_true", help="Print the resolved plan and exit without calling the model")
    return p.parse_args(argv)


def read_instruction(args: argparse.Namespace) -> str:
    if args.instruction_file:
        return Path(args.instruction_file).expanduser().read_text(encoding="utf-8").strip()
    if args.instruction == "-" or (args.instruction is None and not sys.stdin.isatty()):
        return sys.stdin.read().strip()
    return (args.instruction or "").strip()


def build_settings(args: argparse.Namespace) -> AgentSettings:
    return resolve_settings(
        model=args.model,
        render_url=args.render_url,
        return_svg=args.svg,
        score_locale=args.locale,
        max_rounds=args.max_rounds,
        max_wall_clock_s=args.max_seconds,
        render_on_finish=args.render_on_finish,
    )


def build_orchestrator(settings: AgentSettings, *, telemetry: bool = False) -> ArcAgentOrchestrator:
    engine = OpenAIResponsesEngine(
        ResponsesEngineConfig(model=settings.model, base_url=settings.openai_base_url)
    )
    renderer = ArcRenderer(settings.render_url, timeout=settings.render_timeout_s)
    return ArcAgentOrchestrator(
        engine=engine,
        renderer=renderer,
        config=OrchestratorConfig.from_settings(settings),
        telemetry=LoggingTelemetryClient() if telemetry else None,
    )


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except ValueError as exc:
        print(f"[error] invalid settings: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    instruction = read_instruction(args)
    if not instruction:
        print("[error] no instruction given", file=sys.stderr)
        return 2

    if args.dry_run:
        print("[plan] Ready to run arc agent with:")
        print(f"  model={settings.model}")
        print(f"  render_url={settings.render_url} svg={settings.return_svg} locale={settings.score_locale}")
        print(f"  max_rounds={settings.max_rounds} max_wall_clock_s={settings.max_wall_clock_s}")
        print(f"  render_on_finish={settings.render_on_finish}")
        print(f"  instruction={instruction[:120]!r}")
        print("[plan] No model call due to --dry-run")
        return 0

    orchestrator = build_orchestrator(settings, telemetry=args.telemetry)
    run_log = Path(args.run_log) if args.run_log else None
    started = time.monotonic()
    try:
        result = orchestrator.run(instruction)
    except ArcRunError as exc:
        logger.error(f"Arc run failed: {exc}")
        log_run(
            build_failure_record(
                label=args.label,
                instruction=instruction,
                error=exc,
                duration_s=time.monotonic() - started,
            ),
            output_path=run_log,
        )
        print(json.dumps({"error": "AI agent failure", "detail": str(exc)}), file=sys.stderr)
        return 1
    finally:
        if orchestrator.operations.renderer is not None:
            orchestrator.operations.renderer.close()

    log_run(
        build_record(
            label=args.label,
            instruction=instruction,
            result=result,
            duration_s=time.monotonic() - started,
        ),
        output_path=run_log,
    )

    if args.image:
        image = result.image_bytes()
        if image is None:
            logger.warning("No diagram was rendered during this run; printing JSON instead")
        else:
            Path(args.image).expanduser().write_bytes(image)
            print(f"[arc] wrote {result.media_type} ({len(image)} bytes) to {args.image}", file=sys.stderr)
            return 0

    payload = json.dumps(result.to_payload(), ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).expanduser().write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
