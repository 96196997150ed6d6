from __future__ import annotations

from courier.agent.completion import FinalAnswer, ToolCallRequest
from courier.errors import CompletionUnavailableError
from courier.memory.conversation import ToolInvocationRequest


class ScriptedCompletion:
    """
    Stand-in for CompletionClient.

    `script` items are returned in order: a FinalAnswer/ToolCallRequest is
    returned, an exception is raised, a callable is called with the history.
    Once the script is exhausted the last item repeats.
    """

    model = "scripted-model"

    def __init__(self, script):
        self.script = list(script)
        self.calls: list[tuple] = []
        self.tools_seen: list[list[str]] = []

    async def complete(self, history, tools=None):
        self.calls.append(tuple(history))
        self.tools_seen.append([t.name for t in (tools or [])])
        index = min(len(self.calls) - 1, len(self.script) - 1)
        step = self.script[index]
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return await step(history)
        return step

    async def generate_text(self, prompt):
        step = self.script[0]
        if isinstance(step, BaseException):
            raise step
        return step.text


def call(tool_name, call_id=None, **arguments):
    request = ToolInvocationRequest(tool_name=tool_name, arguments=arguments)
    if call_id:
        request = ToolInvocationRequest(tool_name=tool_name, arguments=arguments, id=call_id)
    return request


def tool_request(*calls):
    return ToolCallRequest(calls=tuple(calls))


def answer(text):
    return FinalAnswer(text=text)


def unavailable():
    return CompletionUnavailableError("connection reset")
