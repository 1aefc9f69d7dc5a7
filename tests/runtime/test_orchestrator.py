import json

import pytest

from arcagent.runtime.arc.errors import InferenceBackendError, RunBudgetExceededError, UnknownOperationError
from arcagent.runtime.arc.model_engine import InferenceEngine, ModelResponse, ToolCallRequest
from arcagent.runtime.arc.models import RenderedArtifact
from arcagent.runtime.arc.orchestrator import ArcAgentOrchestrator, OrchestratorConfig
from arcagent.runtime.arc.prompting import FINAL_ANSWER_INSTRUCTIONS
from arcagent.runtime.arc.renderer import ArcRenderer
from arcagent.runtime.arc.telemetry import RecordingTelemetryClient


def call(name, call_id=None, **arguments):
    return ToolCallRequest(call_id=call_id or f"call-{name}", name=name, arguments=json.dumps(arguments))


class ScriptedEngine(InferenceEngine):
    def __init__(self, responses, *, repeat_last=False):
        self.responses = list(responses)
        self.repeat_last = repeat_last
        self.calls = []

    def respond(self, turns, *, tools=(), instructions=None):
        self.calls.append({"turns": list(turns), "tools": list(tools), "instructions": instructions})
        if len(self.responses) == 1 and self.repeat_last:
            return self.responses[0]
        return self.responses.pop(0)


class FailingEngine(InferenceEngine):
    def respond(self, turns, *, tools=(), instructions=None):
        raise InferenceBackendError("Inference backend error: connection reset")


class DummyRenderer(ArcRenderer):
    def __init__(self):
        super().__init__("http://render.invalid/arc")
        self.calls = 0

    def render(self, model):
        self.calls += 1
        return RenderedArtifact.from_bytes(b"<svg/>", svg=model.return_svg)


def test_run_converges_and_finalizes_without_tools():
    engine = ScriptedEngine(
        [
            ModelResponse(tool_calls=[call("addItem", "c1", itemName="Login"), call("addItem", "c2", itemName="Database")]),
            ModelResponse(tool_calls=[call("setItemRelation", "c3", item1="Login", item2="Database", score="A")]),
            ModelResponse(text="All relations are set."),
            ModelResponse(text="Built a two item diagram."),
        ]
    )
    orchestrator = ArcAgentOrchestrator(engine=engine)

    result = orchestrator.run("Login and Database")

    assert result.msg == "Built a two item diagram."
    assert result.n_tool_calls == 3
    assert result.rounds == 3
    assert result.render is None
    assert result.data["relations"]["Login"]["Database"]["score"] == "A"

    assert len(engine.calls) == 4
    assert engine.calls[0]["tools"]
    assert engine.calls[-1]["tools"] == []
    assert engine.calls[-1]["instructions"] == FINAL_ANSWER_INSTRUCTIONS

    first_turns = engine.calls[0]["turns"]
    assert [t.role for t in first_turns] == ["system", "user"]
    assert "getRenderedArc" in first_turns[0].content
    assert first_turns[1].content == "Login and Database"


def test_calls_in_one_round_see_earlier_effects():
    engine = ScriptedEngine(
        [
            ModelResponse(
                tool_calls=[
                    call("addItem", "c1", itemName="Login"),
                    call("addItem", "c2", itemName="Database"),
                    call("setItemRelation", "c3", item1="Login", item2="Database", score="E"),
                ]
            ),
            ModelResponse(),
            ModelResponse(text="done"),
        ]
    )
    result = ArcAgentOrchestrator(engine=engine).run("go")

    assert result.data["relations"]["Database"]["Login"]["score"] == "E"
    results = [t for t in engine.calls[-1]["turns"] if t.kind == "tool_result"]
    assert [t.metadata["success"] for t in results] == [True, True, True]


def test_failed_operations_are_fed_back():
    engine = ScriptedEngine(
        [
            ModelResponse(tool_calls=[call("addItem", "c1", itemName=""), call("deleteItem", "c2", itemName="Ghost")]),
            ModelResponse(text="nothing else to do"),
            ModelResponse(text="No changes were applied."),
        ]
    )
    result = ArcAgentOrchestrator(engine=engine).run("go")

    assert result.n_tool_calls == 2
    assert result.data["relations"] == {}

    turns = engine.calls[1]["turns"]
    kinds = [t.kind for t in turns]
    assert kinds == ["message", "message", "tool_call", "tool_call", "tool_result", "tool_result"]
    outputs = [json.loads(t.content) for t in turns if t.kind == "tool_result"]
    assert all(not out["success"] for out in outputs)
    assert turns[4].call_id == "c1"
    assert turns[5].call_id == "c2"


def test_unknown_operation_ends_run():
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("dropTable", "c1")])])
    with pytest.raises(UnknownOperationError):
        ArcAgentOrchestrator(engine=engine).run("go")


def test_backend_error_ends_run():
    with pytest.raises(InferenceBackendError):
        ArcAgentOrchestrator(engine=FailingEngine()).run("go")


def test_round_budget_is_enforced():
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("getArcModel", "c1")])], repeat_last=True)
    orchestrator = ArcAgentOrchestrator(engine=engine, config=OrchestratorConfig(max_rounds=2))

    with pytest.raises(RunBudgetExceededError) as info:
        orchestrator.run("loop forever")

    assert info.value.reason == "max_rounds"
    assert info.value.rounds == 2
    assert len(engine.calls) == 2


class StaleClockOrchestrator(ArcAgentOrchestrator):
    def new_run(self, instruction, *, run_id=None):
        run = super().new_run(instruction, run_id=run_id)
        run.started_at -= 1000.0
        return run


def test_wall_clock_budget_is_enforced():
    engine = ScriptedEngine([ModelResponse(text="unused")])
    orchestrator = StaleClockOrchestrator(engine=engine, config=OrchestratorConfig(max_wall_clock_s=5.0))

    with pytest.raises(RunBudgetExceededError) as info:
        orchestrator.run("slow")

    assert info.value.reason == "max_wall_clock_s"
    assert engine.calls == []


def test_disabled_bounds_allow_long_runs():
    responses = [ModelResponse(tool_calls=[call("getArcModel", f"c{i}")]) for i in range(60)]
    responses += [ModelResponse(), ModelResponse(text="done")]
    engine = ScriptedEngine(responses)
    orchestrator = ArcAgentOrchestrator(
        engine=engine,
        config=OrchestratorConfig(max_rounds=None, max_wall_clock_s=None),
    )

    result = orchestrator.run("go")
    assert result.rounds == 61
    assert result.n_tool_calls == 60


def test_rendered_artifact_is_cached_on_the_result():
    renderer = DummyRenderer()
    engine = ScriptedEngine(
        [
            ModelResponse(tool_calls=[call("addItem", "c1", itemName="Login"), call("getRenderedArc", "c2")]),
            ModelResponse(),
            ModelResponse(text="Rendered."),
        ]
    )
    orchestrator = ArcAgentOrchestrator(engine=engine, renderer=renderer, config=OrchestratorConfig(return_svg=True))

    result = orchestrator.run("render it")

    assert renderer.calls == 1
    assert result.render_type == "svg-base64"
    assert result.media_type == "image/svg+xml"
    assert result.image_bytes() == b"<svg/>"
    assert result.to_payload()["renderType"] == "svg-base64"

    render_output = [t for t in engine.calls[-1]["turns"] if t.kind == "tool_result"][-1]
    assert result.render not in render_output.content


def test_render_on_finish_forces_one_render():
    renderer = DummyRenderer()
    telemetry = RecordingTelemetryClient()
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("addItem", "c1", itemName="Login")]), ModelResponse(), ModelResponse(text="ok")])
    orchestrator = ArcAgentOrchestrator(
        engine=engine,
        renderer=renderer,
        config=OrchestratorConfig(render_on_finish=True),
        telemetry=telemetry,
    )

    result = orchestrator.run("go")

    assert renderer.calls == 1
    assert result.render_type == "png-base64"
    assert result.n_tool_calls == 2
    forced = telemetry.named("arc.render")
    assert len(forced) == 1
    assert forced[0]["rendered"] is True
    assert forced[0]["forced"] is True
    assert engine.calls[-1]["turns"][-1].kind == "tool_result"


def test_render_on_finish_skipped_when_agent_rendered():
    renderer = DummyRenderer()
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("getRenderedArc", "c1")]), ModelResponse(), ModelResponse(text="ok")])
    orchestrator = ArcAgentOrchestrator(engine=engine, renderer=renderer, config=OrchestratorConfig(render_on_finish=True))

    result = orchestrator.run("go")
    assert renderer.calls == 1
    assert result.n_tool_calls == 1


def test_tool_calls_proposed_while_finalizing_are_ignored():
    engine = ScriptedEngine([ModelResponse(), ModelResponse(text="done", tool_calls=[call("addItem", "late", itemName="Late")])])
    result = ArcAgentOrchestrator(engine=engine).run("go")

    assert result.msg == "done"
    assert result.n_tool_calls == 0
    assert result.data["relations"] == {}


def test_orchestrator_emits_telemetry():
    telemetry = RecordingTelemetryClient()
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("addItem", "c1", itemName="Login")]), ModelResponse(), ModelResponse(text="ok")])
    ArcAgentOrchestrator(engine=engine, telemetry=telemetry).run("go")

    generate = telemetry.named("arc.model_generate")
    assert [attrs["stage"] for attrs in generate] == ["dispatch", "dispatch", "finalize"]
    assert generate[-1]["tool_count"] == 0
    assert generate[0]["tool_calls"] == 1

    operations = telemetry.named("arc.operation")
    assert len(operations) == 1
    assert operations[0]["operation"] == "addItem"
    assert operations[0]["operation_success"] is True
    assert "duration_ms" in operations[0]


def test_runs_do_not_share_models():
    engine = ScriptedEngine(
        [
            ModelResponse(tool_calls=[call("addItem", "c1", itemName="Login")]),
            ModelResponse(),
            ModelResponse(text="first"),
            ModelResponse(),
            ModelResponse(text="second"),
        ]
    )
    orchestrator = ArcAgentOrchestrator(engine=engine)

    first = orchestrator.run("one")
    second = orchestrator.run("two")

    assert list(first.data["relations"]) == ["Login"]
    assert second.data["relations"] == {}
    assert first.run_id != second.run_id


def test_agent_render_records_render_span():
    telemetry = RecordingTelemetryClient()
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("getRenderedArc", "c1")]), ModelResponse(), ModelResponse(text="ok")])
    orchestrator = ArcAgentOrchestrator(engine=engine, renderer=DummyRenderer(), telemetry=telemetry)

    orchestrator.run("go")

    renders = telemetry.named("arc.render")
    assert len(renders) == 1
    assert renders[0]["forced"] is False
    assert renders[0]["rendered"] is True
    assert renders[0]["round"] == 1
    assert len(telemetry.named("arc.operation")) == 1


def test_failed_agent_render_is_still_recorded():
    telemetry = RecordingTelemetryClient()
    engine = ScriptedEngine([ModelResponse(tool_calls=[call("getRenderedArc", "c1")]), ModelResponse(), ModelResponse(text="ok")])
    result = ArcAgentOrchestrator(engine=engine, telemetry=telemetry).run("go")

    renders = telemetry.named("arc.render")
    assert len(renders) == 1
    assert renders[0]["rendered"] is False
    assert result.render is None


def test_token_usage_is_accumulated():
    telemetry = RecordingTelemetryClient()
    engine = ScriptedEngine(
        [
            ModelResponse(tool_calls=[call("addItem", "c1", itemName="Login")], usage={"input_tokens": 100, "output_tokens": 10}),
            ModelResponse(usage={"input_tokens": 150, "output_tokens": 5}),
            ModelResponse(text="ok", usage={"input_tokens": 160, "output_tokens": 20}),
        ]
    )
    result = ArcAgentOrchestrator(engine=engine, telemetry=telemetry).run("go")

    assert result.usage == {"input_tokens": 410, "output_tokens": 35}
    assert [attrs["input_tokens"] for attrs in telemetry.named("arc.model_generate")] == [100, 150, 160]
