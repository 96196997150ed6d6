from __future__ import annotations

import asyncio

import pytest

from courier.memory.conversation import ConversationStore, Role, ToolInvocationRequest, Turn


def test_append_then_snapshot_preserves_order_and_content():
    store = ConversationStore()
    question = "Qu'est-ce que c'est? ☃\n  trailing  "
    store.append(Turn.human(question))
    store.append(Turn.assistant("Un bonhomme de neige."))

    history = store.snapshot()

    assert [t.role for t in history] == [Role.HUMAN, Role.ASSISTANT]
    assert history[0].content == question
    assert history[1].content == "Un bonhomme de neige."


def test_snapshot_is_a_point_in_time_copy():
    store = ConversationStore()
    store.append(Turn.human("one"))

    before = store.snapshot()
    store.append(Turn.assistant("two"))

    assert len(before) == 1
    assert len(store.snapshot()) == 2
    assert len(store) == 2


def test_turns_are_immutable():
    turn = Turn.human("hello")

    with pytest.raises(AttributeError):
        turn.content = "changed"


def test_tool_turn_helpers():
    request = ToolInvocationRequest(tool_name="echo", arguments={"text": "hi"}, id="call_1")
    assistant = Turn.assistant("", [request])
    result = Turn.tool_result("call_1", "Echo: hi")

    assert assistant.requests_tools
    assert assistant.tool_calls == (request,)
    assert result.role is Role.TOOL_RESULT
    assert result.tool_call_id == "call_1"


def test_session_serializes_writers():
    store = ConversationStore()

    async def writer(name):
        async with store.session():
            store.append(Turn.human(f"{name}-question"))
            await asyncio.sleep(0.01)
            store.append(Turn.assistant(f"{name}-answer"))

    async def main():
        await asyncio.gather(writer("a"), writer("b"), writer("c"))

    asyncio.run(main())

    contents = [t.content for t in store.snapshot()]
    assert contents == [
        "a-question", "a-answer",
        "b-question", "b-answer",
        "c-question", "c-answer",
    ]
