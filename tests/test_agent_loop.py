from __future__ import annotations

import asyncio

import pytest
from fakes import ScriptedCompletion, answer, call, tool_request, unavailable

from courier.agent.core import CANCELLED_REPLY, UNAVAILABLE_REPLY, Agent
from courier.errors import CompletionError
from courier.memory.conversation import ConversationStore, Role
from courier.tools import ArgumentSpec, ToolDefinition, ToolRegistry, ToolResult, register_default_tools
from courier.utils.config import AgentConfig

FAST = AgentConfig(
    max_iterations=5,
    completion_timeout_seconds=5,
    completion_retries=2,
    retry_backoff_seconds=0,
    tool_timeout_seconds=1,
)


def _agent(script, registry=None, settings=FAST):
    completion = ScriptedCompletion(script)
    agent = Agent(
        completion=completion,
        registry=registry or register_default_tools(ToolRegistry()),
        history=ConversationStore(),
        settings=settings,
    )
    return agent, completion


def test_final_answer_is_returned_and_recorded():
    agent, completion = _agent([answer("Hello there!")])

    reply = asyncio.run(agent.run("hi"))

    assert reply == "Hello there!"
    history = agent.history.snapshot()
    assert [t.role for t in history] == [Role.HUMAN, Role.ASSISTANT]
    assert history[0].content == "hi"
    assert len(completion.calls) == 1
    assert "calculator" in completion.tools_seen[0]


def test_tool_round_trip_feeds_results_back():
    agent, completion = _agent([
        tool_request(call("calculator", "call_1", expression="25*17")),
        answer("25 * 17 = 425"),
    ])

    reply = asyncio.run(agent.run("What is 25 times 17?"))

    assert reply == "25 * 17 = 425"
    roles = [t.role for t in agent.history.snapshot()]
    assert roles == [Role.HUMAN, Role.ASSISTANT, Role.TOOL_RESULT, Role.ASSISTANT]

    tool_turn = agent.history.snapshot()[2]
    assert tool_turn.tool_call_id == "call_1"
    assert tool_turn.content == "Result: 425"

    # Second completion saw the tool result
    assert completion.calls[1][-1].content == "Result: 425"


def test_multiple_calls_in_one_turn_keep_request_order():
    agent, _ = _agent([
        tool_request(
            call("echo", "c1", text="first"),
            call("calculator", "c2", expression="1+1"),
            call("echo", "c3", text="third"),
        ),
        answer("done"),
    ])

    asyncio.run(agent.run("do three things"))

    results = [t for t in agent.history.snapshot() if t.role is Role.TOOL_RESULT]
    assert [t.tool_call_id for t in results] == ["c1", "c2", "c3"]
    assert [t.content for t in results] == ["Echo: first", "Result: 2", "Echo: third"]


def test_unknown_tool_becomes_error_text_and_loop_continues():
    agent, completion = _agent([
        tool_request(call("teleport", "call_x", destination="mars")),
        answer("I can't teleport, sorry."),
    ])

    reply = asyncio.run(agent.run("teleport me"))

    assert reply == "I can't teleport, sorry."
    tool_turn = agent.history.snapshot()[2]
    assert tool_turn.role is Role.TOOL_RESULT
    assert "Unknown tool 'teleport'" in tool_turn.content
    assert len(completion.calls) == 2


def test_model_that_never_stops_calling_tools_hits_the_bound():
    agent, completion = _agent([tool_request(call("echo", text="again"))])

    reply = asyncio.run(agent.run("loop forever"))

    assert len(completion.calls) == FAST.max_iterations
    assert "5 tool round-trips" in reply
    history = agent.history.snapshot()
    assert history[-1].role is Role.ASSISTANT
    assert history[-1].content == reply
    tool_results = [t for t in history if t.role is Role.TOOL_RESULT]
    assert len(tool_results) == FAST.max_iterations


def test_unknown_tool_forever_still_terminates():
    agent, completion = _agent([tool_request(call("nope"))])

    asyncio.run(agent.run("go"))

    assert len(completion.calls) == FAST.max_iterations


def test_transient_completion_failure_is_retried():
    agent, completion = _agent([unavailable(), unavailable(), answer("finally")])

    reply = asyncio.run(agent.run("hello"))

    assert reply == "finally"
    assert len(completion.calls) == 3


def test_completion_unavailable_after_retries_returns_generic_text():
    agent, completion = _agent([unavailable()])

    reply = asyncio.run(agent.run("hello"))

    assert reply == UNAVAILABLE_REPLY
    assert len(completion.calls) == FAST.completion_retries + 1
    roles = [t.role for t in agent.history.snapshot()]
    assert roles == [Role.HUMAN, Role.ASSISTANT]


def test_rejected_completion_is_not_retried():
    agent, completion = _agent([CompletionError("bad request")])

    reply = asyncio.run(agent.run("hello"))

    assert "couldn't process" in reply
    assert len(completion.calls) == 1


def test_unexpected_error_does_not_escape():
    agent, _ = _agent([RuntimeError("surprise")])

    reply = asyncio.run(agent.run("hello"))

    assert reply.startswith("Sorry")


def test_slow_tool_times_out_into_error_text():
    async def _slow(params):
        await asyncio.sleep(5)
        return ToolResult.ok("too late")

    registry = ToolRegistry()
    registry.register(ToolDefinition(name="slow", description="slow", execute=_slow))
    agent, _ = _agent([tool_request(call("slow", "s1")), answer("gave up")], registry=registry)

    reply = asyncio.run(agent.run("be slow"))

    assert reply == "gave up"
    tool_turn = agent.history.snapshot()[2]
    assert "timed out" in tool_turn.content


def test_slow_completion_times_out_and_retries():
    async def _hang(history):
        await asyncio.sleep(5)

    settings = AgentConfig(
        max_iterations=5,
        completion_timeout_seconds=0.05,
        completion_retries=1,
        retry_backoff_seconds=0,
        tool_timeout_seconds=1,
    )
    agent, completion = _agent([_hang], settings=settings)

    reply = asyncio.run(agent.run("hello"))

    assert reply == UNAVAILABLE_REPLY
    assert len(completion.calls) == 2


def test_history_grows_in_arrival_order_across_requests():
    agent, completion = _agent([
        answer("first answer"),
        tool_request(call("echo", "e1", text="x")),
        answer("second answer"),
        answer("third answer"),
    ])

    async def main():
        return await asyncio.gather(
            agent.run("first"),
            agent.run("second"),
            agent.run("third"),
        )

    replies = asyncio.run(main())

    assert replies == ["first answer", "second answer", "third answer"]
    history = agent.history.snapshot()
    # 2 + 4 + 2 turns; each request starts with its human turn
    assert len(history) == 8
    humans = [t.content for t in history if t.role is Role.HUMAN]
    assert humans == ["first", "second", "third"]
    assert [t.role for t in history] == [
        Role.HUMAN, Role.ASSISTANT,
        Role.HUMAN, Role.ASSISTANT, Role.TOOL_RESULT, Role.ASSISTANT,
        Role.HUMAN, Role.ASSISTANT,
    ]
    # Every request replays the whole history so far
    assert [len(c) for c in completion.calls] == [1, 3, 5, 7]


def _cancel_after(agent, text, delay=0.05):
    async def main():
        task = asyncio.create_task(agent.run(text))
        await asyncio.sleep(delay)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return agent.history.busy

    return asyncio.run(main())


def test_cancel_during_tools_answers_every_call():
    async def _slow(params):
        await asyncio.sleep(5)
        return ToolResult.ok("too late")

    registry = ToolRegistry()
    registry.register(ToolDefinition(name="slow", description="slow", execute=_slow))
    settings = AgentConfig(max_iterations=5, completion_timeout_seconds=5, completion_retries=0,
                           retry_backoff_seconds=0, tool_timeout_seconds=10)
    agent, _ = _agent([tool_request(call("slow", "s1"), call("slow", "s2")), answer("done")],
                      registry=registry, settings=settings)

    busy = _cancel_after(agent, "be slow")

    assert busy is False
    history = agent.history.snapshot()
    assert [t.role for t in history] == [
        Role.HUMAN, Role.ASSISTANT, Role.TOOL_RESULT, Role.TOOL_RESULT, Role.ASSISTANT,
    ]
    assert [t.tool_call_id for t in history[2:4]] == ["s1", "s2"]
    assert "cancelled" in history[2].content
    assert history[-1].content == CANCELLED_REPLY
    assert not history[-1].requests_tools


def test_cancel_during_ask_closes_the_request():
    async def _hang(history):
        await asyncio.sleep(5)

    agent, _ = _agent([_hang])

    _cancel_after(agent, "abandoned")

    history = agent.history.snapshot()
    assert [t.role for t in history] == [Role.HUMAN, Role.ASSISTANT]
    assert history[-1].content == CANCELLED_REPLY


def test_request_after_cancel_sees_consistent_history():
    async def _hang(history):
        await asyncio.sleep(5)

    agent, completion = _agent([_hang, answer("fresh start")])

    async def main():
        task = asyncio.create_task(agent.run("abandoned"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return await agent.run("again")

    assert asyncio.run(main()) == "fresh start"
    roles = [t.role for t in completion.calls[-1]]
    assert roles == [Role.HUMAN, Role.ASSISTANT, Role.HUMAN]


def test_invalid_arguments_are_reported_to_the_model():
    registry = ToolRegistry()

    async def _add(params):
        return ToolResult.ok(str(params["a"] + params["b"]))

    registry.register(ToolDefinition(
        name="add",
        description="add",
        arguments=(ArgumentSpec("a", "integer", "a"), ArgumentSpec("b", "integer", "b")),
        execute=_add,
    ))
    agent, completion = _agent([
        tool_request(call("add", "a1", a="one")),
        tool_request(call("add", "a2", a=1, b=2)),
        answer("3"),
    ], registry=registry)

    asyncio.run(agent.run("add"))

    results = [t.content for t in agent.history.snapshot() if t.role is Role.TOOL_RESULT]
    assert "'a' must be of type integer" in results[0]
    assert "missing required argument 'b'" in results[0]
    assert results[1] == "3"
