from types import SimpleNamespace

import pytest
from openai import OpenAIError

from arcagent.runtime.arc.errors import InferenceBackendError
from arcagent.runtime.arc.model_engine import OpenAIResponsesEngine, ResponsesEngineConfig
from arcagent.runtime.arc.turn_manager import ConversationTurn


class FakeResponses:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def create(self, **request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def _fake_client(responses):
    return SimpleNamespace(responses=responses)


def _response(*, text="", calls=()):
    output = [SimpleNamespace(type="message", content=[])]
    output += [
        SimpleNamespace(type="function_call", call_id=cid, name=name, arguments=args) for cid, name, args in calls
    ]
    usage = SimpleNamespace(input_tokens=12, output_tokens=3, total_tokens=15)
    return SimpleNamespace(output=output, output_text=text, usage=usage)


def _turns():
    return [
        ConversationTurn.create(role="system", content="rules"),
        ConversationTurn.create(role="user", content="Login, Database"),
        ConversationTurn.tool_call(call_id="c1", name="addItem", arguments='{"itemName": "Login"}'),
        ConversationTurn.tool_result(call_id="c1", name="addItem", output='{"success": true}', success=True),
    ]


def test_build_input_maps_tool_turns():
    items = OpenAIResponsesEngine(client=object()).build_input(_turns())

    assert items[0] == {"role": "system", "content": "rules"}
    assert items[1] == {"role": "user", "content": "Login, Database"}
    assert items[2] == {
        "type": "function_call",
        "call_id": "c1",
        "name": "addItem",
        "arguments": '{"itemName": "Login"}',
    }
    assert items[3] == {"type": "function_call_output", "call_id": "c1", "output": '{"success": true}'}


def test_respond_sends_tools_and_parses_calls():
    responses = FakeResponses(_response(text="  working  ", calls=[("c9", "addItem", '{"itemName": "Cache"}')]))
    engine = OpenAIResponsesEngine(ResponsesEngineConfig(model="test-model"), client=_fake_client(responses))
    tools = [{"type": "function", "name": "addItem", "parameters": {"type": "object", "properties": {}}}]

    reply = engine.respond(_turns(), tools=tools)

    request = responses.requests[0]
    assert request["model"] == "test-model"
    assert request["tools"] == tools
    assert "instructions" not in request
    assert "temperature" not in request
    assert len(request["input"]) == 4

    assert reply.text == "working"
    assert reply.has_tool_calls
    assert reply.tool_calls[0].call_id == "c9"
    assert reply.tool_calls[0].name == "addItem"
    assert reply.tool_calls[0].arguments == '{"itemName": "Cache"}'
    assert reply.usage == {"input_tokens": 12, "output_tokens": 3, "total_tokens": 15}


def test_respond_without_tools_passes_instructions():
    responses = FakeResponses(_response(text="Final answer."))
    engine = OpenAIResponsesEngine(ResponsesEngineConfig(temperature=0.2), client=_fake_client(responses))

    reply = engine.respond(_turns(), instructions="Be brief.")

    request = responses.requests[0]
    assert "tools" not in request
    assert request["instructions"] == "Be brief."
    assert request["temperature"] == 0.2
    assert not reply.has_tool_calls


def test_missing_arguments_default_to_empty_object():
    reply = OpenAIResponsesEngine.parse_response(_response(calls=[("c1", "getArcModel", None)]))
    assert reply.tool_calls[0].arguments == "{}"


def test_backend_errors_are_wrapped():
    responses = FakeResponses(error=OpenAIError("connection reset"))
    engine = OpenAIResponsesEngine(client=_fake_client(responses))

    with pytest.raises(InferenceBackendError) as info:
        engine.respond(_turns())
    assert "connection reset" in str(info.value)
