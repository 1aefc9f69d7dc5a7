"""
Arc Orchestrator - Agent loop driving the relation model to convergence

WHAT: Dispatch/execute loop between the inference backend and the operations
WHERE: arcagent/runtime/arc/orchestrator.py - top of the runtime stack
WHO: Entry point for one instruction -> diagram run
TIME: Dominated by inference round trips; operations are in-process

State machine per run:
- Init: fresh RelationModel, transcript seeded with system directive + instruction
- Dispatch: transcript + tool schemas -> backend -> zero or more tool calls
- Execute: each call in proposal order; result appended to the transcript
- Convergence: a round with zero tool calls ends the loop
- Finalize: one more backend call, tools withheld, answer restricted to
  changes actually applied

Boundary Notes:
- Invalid arguments, referential and duplication failures, and rendering
  failures become tool results; the loop continues
- Unknown operations, backend errors and exhausted budgets end the run
- Within a round each call observes the effects of the previous ones
"""

from __future__ import annotations

import base64
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ...config.settings import AgentSettings
from .errors import RunBudgetExceededError
from .model_engine import InferenceEngine, ModelResponse, ToolCallRequest
from .models import RelationModel
from .operations import OperationResult, OperationSet
from .prompting import FINAL_ANSWER_INSTRUCTIONS, compose_system_prompt
from .renderer import ArcRenderer
from .score_tables import DEFAULT_LOCALE
from .session import ArcRun
from .telemetry import NoOpTelemetryClient, TelemetryClient
from .turn_manager import ConversationTurn

logger = logging.getLogger(__name__)

RENDER_OPERATION = "getRenderedArc"


@dataclass(slots=True)
class OrchestratorConfig:
    max_rounds: Optional[int] = 50
    max_wall_clock_s: Optional[float] = 600.0
    render_on_finish: bool = False
    return_svg: bool = False
    score_locale: str = DEFAULT_LOCALE
    extra_rules: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: AgentSettings, **overrides: Any) -> "OrchestratorConfig":
        values: Dict[str, Any] = {
            "max_rounds": settings.max_rounds,
            "max_wall_clock_s": settings.max_wall_clock_s,
            "render_on_finish": settings.render_on_finish,
            "return_svg": settings.return_svg,
            "score_locale": settings.score_locale,
        }
        values.update(overrides)
        return cls(**values)


class RunResult(BaseModel):
    """Caller-facing outcome of one run."""

    model_config = ConfigDict(populate_by_name=True)

    msg: str
    render: Optional[str] = None
    render_type: Optional[str] = Field(default=None, alias="renderType")
    data: Dict[str, Any] = Field(default_factory=dict)
    n_tool_calls: int = 0
    rounds: int = 0
    run_id: str = ""
    usage: Dict[str, int] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def media_type(self) -> Optional[str]:
        if self.render_type == "svg-base64":
            return "image/svg+xml"
        if self.render_type == "png-base64":
            return "image/png"
        return None

    def image_bytes(self) -> Optional[bytes]:
        """Decoded artifact for callers that want the raw image instead of JSON."""

        if not self.render or self.media_type is None:
            return None
        return base64.b64decode(self.render)


class ArcAgentOrchestrator:
    """Coordinates the inference backend, the operation catalog and one model per run."""

    def __init__(
        self,
        *,
        engine: InferenceEngine,
        operations: OperationSet | None = None,
        renderer: ArcRenderer | None = None,
        config: OrchestratorConfig | None = None,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._engine = engine
        self._operations = operations or OperationSet(renderer=renderer)
        self._config = config or OrchestratorConfig()
        self._telemetry = telemetry or NoOpTelemetryClient()

    @property
    def engine(self) -> InferenceEngine:
        return self._engine

    @property
    def operations(self) -> OperationSet:
        return self._operations

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def telemetry(self) -> TelemetryClient:
        return self._telemetry

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def new_run(self, instruction: str, *, run_id: str | None = None) -> ArcRun:
        model = RelationModel(return_svg=self._config.return_svg, score_locale=self._config.score_locale)
        system_prompt = compose_system_prompt(
            score_table=model.score_table,
            operation_names=self._operations.names,
            extra_rules=self._config.extra_rules,
        )
        return ArcRun.new(instruction=instruction, system_prompt=system_prompt, model=model, run_id=run_id)

    def run(self, instruction: str, *, run_id: str | None = None) -> RunResult:
        """Drive one instruction to a final answer."""

        run = self.new_run(instruction, run_id=run_id)
        logger.info(f"Starting arc run {run.run_id}")
        tools = self._operations.tool_specs()

        while True:
            self._check_budget(run)
            run.rounds += 1
            response = self._generate(run, tools=tools, stage="dispatch")
            executed = self.dispatch(run, response)
            logger.debug(f"Round {run.rounds}: {executed} calls, model={run.model.summary()}")
            if executed == 0:
                break

        if self._config.render_on_finish and not run.has_render:
            self.force_render(run)

        final = self._generate(run, tools=(), instructions=FINAL_ANSWER_INSTRUCTIONS, stage="finalize")
        if final.has_tool_calls:
            logger.info(f"Ignoring {len(final.tool_calls)} tool calls proposed while finalizing")

        logger.info(f"Finished arc run {run.run_id}: {run.rounds} rounds, {run.tool_calls} tool calls")
        return self.build_result(run, final.text)

    def dispatch(self, run: ArcRun, response: ModelResponse) -> int:
        """Record the backend reply and execute its tool calls; returns how many ran."""

        if response.text:
            run.transcript.add_turn(ConversationTurn.create(role="assistant", content=response.text))
        for call in response.tool_calls:
            run.transcript.add_turn(
                ConversationTurn.tool_call(call_id=call.call_id, name=call.name, arguments=call.arguments)
            )

        for call in response.tool_calls:
            run.tool_calls += 1
            result = self.execute_call(run, call)
            run.transcript.add_turn(
                ConversationTurn.tool_result(
                    call_id=call.call_id,
                    name=call.name,
                    output=result.to_tool_output(),
                    success=result.success,
                )
            )
        return len(response.tool_calls)

    def execute_call(self, run: ArcRun, call: ToolCallRequest, *, forced: bool = False) -> OperationResult:
        attributes = {"operation": call.name, "round": run.rounds, "call_id": call.call_id}
        with self._telemetry.span("arc.operation", attributes=attributes) as span:
            if call.name == RENDER_OPERATION:
                result = self._render(run, call, forced=forced)
            else:
                result = self._operations.execute(call.name, call.arguments, run.model)
            span.set_attribute("operation_success", result.success)

        if result.artifact is not None:
            run.last_render = result.artifact
        if result.success:
            logger.info(f"{call.name}: {result.message}")
        else:
            logger.warning(f"{call.name} failed: {result.message}")
        return result

    def force_render(self, run: ArcRun) -> OperationResult:
        """Render once on the agent's behalf, recorded like any other tool call."""

        call = ToolCallRequest(call_id=f"forced-{uuid.uuid4().hex[:12]}", name=RENDER_OPERATION, arguments="{}")
        run.transcript.add_turn(ConversationTurn.tool_call(call_id=call.call_id, name=call.name, arguments=call.arguments))
        run.tool_calls += 1
        result = self.execute_call(run, call, forced=True)
        run.transcript.add_turn(
            ConversationTurn.tool_result(
                call_id=call.call_id,
                name=call.name,
                output=result.to_tool_output(),
                success=result.success,
            )
        )
        return result

    def build_result(self, run: ArcRun, text: str) -> RunResult:
        artifact = run.last_render
        return RunResult(
            msg=text,
            render=artifact.content if artifact else None,
            render_type=artifact.encoding if artifact else None,
            data=run.model.snapshot().to_payload(),
            n_tool_calls=run.tool_calls,
            rounds=run.rounds,
            run_id=run.run_id,
            usage=dict(run.usage),
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _check_budget(self, run: ArcRun) -> None:
        cfg = self._config
        if cfg.max_rounds is not None and run.rounds >= cfg.max_rounds:
            raise RunBudgetExceededError("max_rounds", rounds=run.rounds, elapsed_s=run.elapsed_s)
        if cfg.max_wall_clock_s is not None and run.elapsed_s > cfg.max_wall_clock_s:
            raise RunBudgetExceededError("max_wall_clock_s", rounds=run.rounds, elapsed_s=run.elapsed_s)

    def _render(self, run: ArcRun, call: ToolCallRequest, *, forced: bool) -> OperationResult:
        attributes = {"forced": forced, "round": run.rounds, "svg": run.model.return_svg}
        with self._telemetry.span("arc.render", attributes=attributes) as span:
            result = self._operations.execute(call.name, call.arguments, run.model)
            span.set_attribute("rendered", result.artifact is not None)
        return result

    def _generate(
        self,
        run: ArcRun,
        *,
        tools: Sequence[Dict[str, Any]],
        instructions: str | None = None,
        stage: str,
    ) -> ModelResponse:
        summary = run.transcript.summarize()
        span_attributes = {
            "stage": stage,
            "round": run.rounds,
            "turn_count": summary["turn_count"],
            "transcript_chars": summary["chars"],
            "tool_count": len(tools),
        }
        with self._telemetry.span("arc.model_generate", attributes=span_attributes) as span:
            response = self._engine.respond(run.transcript.turns, tools=tools, instructions=instructions)
            span.set_attribute("tool_calls", len(response.tool_calls))
            span.set_attribute("response_chars", len(response.text))
            for key, value in response.usage.items():
                span.set_attribute(key, value)
        run.add_usage(response.usage)
        return response


__all__ = [
    "ArcAgentOrchestrator",
    "OrchestratorConfig",
    "RENDER_OPERATION",
    "RunResult",
]
