from arcagent.runtime.arc.turn_manager import ConversationTurn, TurnManager


def test_turns_are_kept_in_order():
    manager = TurnManager()
    manager.add_turn(ConversationTurn.create(role="system", content="rules"))
    manager.add_turn(ConversationTurn.create(role="user", content="hello"))

    assert len(manager) == 2
    assert [t.content for t in manager.turns] == ["rules", "hello"]
    assert manager.turns[0].kind == "message"


def test_tool_turns_share_call_id():
    call = ConversationTurn.tool_call(call_id="c1", name="addItem", arguments='{"itemName": "A"}')
    result = ConversationTurn.tool_result(call_id="c1", name="addItem", output="{}", success=True)

    assert call.role == "assistant"
    assert call.kind == "tool_call"
    assert call.content == '{"itemName": "A"}'
    assert result.role == "tool"
    assert result.kind == "tool_result"
    assert result.call_id == call.call_id
    assert result.metadata == {"success": True}


def test_no_turns_are_dropped():
    manager = TurnManager()
    for i in range(500):
        manager.add_turn(ConversationTurn.create(role="user", content=str(i)))
    assert len(manager) == 500
    assert manager.turns[0].content == "0"


def test_summarize_counts_failures():
    manager = TurnManager()
    manager.add_turn(ConversationTurn.create(role="user", content="abc"))
    manager.add_turn(ConversationTurn.tool_call(call_id="c1", name="addItem", arguments="{}"))
    manager.add_turn(ConversationTurn.tool_result(call_id="c1", name="addItem", output="fail", success=False))

    summary = manager.summarize()
    assert summary["turn_count"] == 3
    assert summary["roles"] == ["user", "assistant", "tool"]
    assert summary["tool_calls"] == 1
    assert summary["failed_tool_results"] == 1
    assert summary["chars"] == len("abc") + len("{}") + len("fail")
