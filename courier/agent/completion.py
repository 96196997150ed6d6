"""
Completion Client
=================

Wraps one call to the hosted chat-completion model.

Given the conversation history (and optionally the tool definitions), a call
returns exactly one of:
- FinalAnswer: the model replied with text
- ToolCallRequest: the model wants one or more tools run first

Any OpenAI-compatible endpoint works; set OPENAI_BASE_URL to point the SDK
somewhere other than api.openai.com.

Transport problems (connection errors, timeouts, rate limits, 5xx) raise
CompletionUnavailableError so the turn loop can retry. Anything else the API
rejects raises CompletionError.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Sequence, Union

import openai
from openai import AsyncOpenAI

from courier.errors import CompletionError, CompletionUnavailableError
from courier.memory.conversation import Role, ToolInvocationRequest, Turn
from courier.tools import ToolDefinition
from courier.utils.logger import Logger

logger = Logger("Completion")


@dataclass(frozen=True)
class FinalAnswer:
    """The model answered with text."""
    text: str


@dataclass(frozen=True)
class ToolCallRequest:
    """
    The model asked for tools to be run.

    Attributes:
        calls: Requested calls, in the order the model listed them
        text: Any text the model sent alongside the calls
    """
    calls: tuple[ToolInvocationRequest, ...]
    text: str = ""


CompletionOutcome = Union[FinalAnswer, ToolCallRequest]


SYSTEM_PROMPT = """You are Courier, a helpful assistant that lives in Slack.

You can use tools to do arithmetic, tell the time, echo text, send email, and
write or publish LinkedIn posts. Use a tool whenever it gives a more reliable
answer than guessing. If a tool returns an error, read it, fix the arguments
and try again, or explain the problem to the user.

Keep replies concise and friendly. Ask before sending email or publishing
anything if the user's intent is unclear."""


def turn_to_message(turn: Turn) -> dict[str, Any]:
    """Convert a Turn to an OpenAI chat message."""
    if turn.role is Role.HUMAN:
        return {"role": "user", "content": turn.content}

    if turn.role is Role.TOOL_RESULT:
        return {"role": "tool", "tool_call_id": turn.tool_call_id, "content": turn.content}

    message: dict[str, Any] = {"role": "assistant", "content": turn.content or None}
    if turn.tool_calls:
        message["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.tool_name,
                    "arguments": json.dumps(call.arguments),
                },
            }
            for call in turn.tool_calls
        ]
    return message


def _decode_arguments(raw: str | None, tool_name: str) -> dict[str, Any]:
    """
    Decode tool-call arguments.

    Malformed JSON becomes an empty dict; schema validation then reports
    the missing arguments back to the model.
    """
    if not raw:
        return {}
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse arguments for {tool_name}: {e}")
        return {}
    if not isinstance(arguments, dict):
        logger.warning(f"Arguments for {tool_name} are not a JSON object")
        return {}
    return arguments


def parse_response(response: Any) -> CompletionOutcome:
    """Turn a chat completion response into a CompletionOutcome."""
    if not response.choices:
        raise CompletionError("Completion response contained no choices")

    message = response.choices[0].message

    if message.tool_calls:
        calls = tuple(
            ToolInvocationRequest(
                id=tc.id,
                tool_name=tc.function.name,
                arguments=_decode_arguments(tc.function.arguments, tc.function.name),
            )
            for tc in message.tool_calls
        )
        logger.debug(f"Model requested {len(calls)} tool call(s)")
        return ToolCallRequest(calls=calls, text=message.content or "")

    return FinalAnswer(text=message.content or "")


class CompletionClient:
    """
    Client for the chat-completion model.

    Example:
        client = CompletionClient(api_key="sk-...", model="gpt-4o-mini")

        outcome = await client.complete(store.snapshot(), registry.definitions())
        if isinstance(outcome, ToolCallRequest):
            ...
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 60.0,
        system_prompt: str = SYSTEM_PROMPT,
        client: AsyncOpenAI | None = None
    ):
        """
        Args:
            api_key: Inference service API key
            model: Model name for chat completions
            base_url: Optional OpenAI-compatible endpoint
            timeout: Per-request timeout in seconds
            system_prompt: Prepended to every request
            client: Pre-built SDK client (mainly for tests)
        """
        # Retries are decided by the turn loop, not the SDK
        self.openai = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.model = model
        self.system_prompt = system_prompt

    def build_messages(self, history: Sequence[Turn]) -> list[dict]:
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(turn_to_message(turn) for turn in history)
        return messages

    async def complete(
        self,
        history: Sequence[Turn],
        tools: Sequence[ToolDefinition] | None = None
    ) -> CompletionOutcome:
        """
        Ask the model for the next step of the conversation.

        Raises:
            CompletionUnavailableError: On transport failure or timeout
            CompletionError: If the service rejected the request
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(history),
        }
        if tools:
            kwargs["tools"] = [tool.to_openai_function() for tool in tools]
            kwargs["tool_choice"] = "auto"

        response = await self._create(**kwargs)
        return parse_response(response)

    async def generate_text(self, prompt: str) -> str:
        """
        One-shot generation with no history and no tools.

        Raises:
            CompletionUnavailableError: On transport failure or timeout
            CompletionError: If the service rejected the request
        """
        response = await self._create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
        )
        outcome = parse_response(response)
        if not isinstance(outcome, FinalAnswer):
            raise CompletionError("Model requested tools during plain text generation")
        return outcome.text

    async def _create(self, **kwargs) -> Any:
        try:
            return await self.openai.chat.completions.create(**kwargs)
        except (openai.APIConnectionError, openai.RateLimitError, asyncio.TimeoutError) as e:
            raise CompletionUnavailableError(f"Inference service unavailable: {e}") from e
        except openai.APIStatusError as e:
            if e.status_code >= 500:
                raise CompletionUnavailableError(
                    f"Inference service error (status {e.status_code})"
                ) from e
            raise CompletionError(f"Inference request rejected (status {e.status_code}): {e}") from e
        except openai.APIError as e:
            raise CompletionError(f"Inference request failed: {e}") from e
