"""
Agent Core
==========

The turn loop that answers one request.

Agent Loop:
    Inbound text
         │
         ▼
    Append Human turn
         │
         ▼
    Ask the model (full history + tools)  ◄──────────┐
         │                                            │
    ┌─── Tool calls requested? ───┐                   │
    │                             │                   │
    Yes                           No                  │
    │                             │                   │
    ▼                             ▼                   │
    Append Assistant turn     Append Assistant turn   │
    Execute tools             Return its text         │
    Append ToolResult turns                           │
    │                                                 │
    └─────────────────────────────────────────────────┘
                (at most max_iterations round-trips)

The whole loop runs inside the conversation store's session, so requests
that arrive together are answered one after another and their turns never
interleave in the shared history.

Failures never escape a request: an unreachable model, a rejected request,
a model that keeps calling tools, or any unexpected error is turned into a
reply the user can read, recorded as the request's final assistant turn. A
cancelled request is closed the same way (unfinished tool calls get a
cancellation result) before the cancellation propagates.
"""

import asyncio

from courier.agent.completion import CompletionClient, FinalAnswer
from courier.agent.tools_executor import ToolExecutor
from courier.errors import (
    CompletionError,
    CompletionUnavailableError,
    MaxIterationsExceededError,
)
from courier.memory.conversation import ConversationStore, Role, Turn
from courier.tools import ToolRegistry
from courier.utils.config import AgentConfig
from courier.utils.logger import Logger

logger = Logger("Agent")

UNAVAILABLE_REPLY = (
    "Sorry, I couldn't reach the language model right now. Please try again in a moment."
)
REJECTED_REPLY = "Sorry, the language model couldn't process that request."
UNEXPECTED_REPLY = "Sorry, something went wrong while handling your request."
CANCELLED_REPLY = "This request was cancelled before it finished."


class Agent:
    """
    Answers requests using the model, the tools and the shared history.

    Example:
        agent = Agent(
            completion=CompletionClient(api_key="sk-...", model="gpt-4o-mini"),
            registry=register_default_tools(ToolRegistry()),
            history=ConversationStore(),
        )

        reply = await agent.run("What's 25 * 17?")
        print(reply)   # "25 * 17 = 425"
    """

    def __init__(
        self,
        completion: CompletionClient,
        registry: ToolRegistry,
        history: ConversationStore,
        settings: AgentConfig | None = None
    ):
        """
        Args:
            completion: Client for the chat-completion model
            registry: Tools the model may call
            history: Shared conversation history
            settings: Loop limits and timeouts
        """
        self.completion = completion
        self.registry = registry
        self.history = history
        self.settings = settings if settings is not None else AgentConfig()
        self.executor = ToolExecutor(registry, self.settings.tool_timeout_seconds)

        logger.info(
            f"Agent initialized with {len(registry)} tools "
            f"(max {self.settings.max_iterations} tool round-trips)"
        )

    @property
    def model(self) -> str:
        return getattr(self.completion, "model", "unknown")

    async def run(self, text: str) -> str:
        """
        Answer one request.

        Appends the request and every turn produced while answering it to
        the shared history, and returns the reply text. Only cancellation
        propagates, after the request's turns are closed off; every other
        failure becomes the reply.
        """
        logger.info(f"Processing request: {text[:50]}...")

        async with self.history.session():
            self.history.append(Turn.human(text))

            try:
                reply = await self._loop()
            except asyncio.CancelledError:
                logger.warning("Request cancelled before it finished")
                self._close_cancelled_request()
                raise
            except MaxIterationsExceededError as e:
                logger.warning(str(e))
                reply = (
                    f"I couldn't finish this request: {e}. "
                    "Try rephrasing it or breaking it into smaller steps."
                )
            except CompletionUnavailableError as e:
                logger.error("Inference service unavailable", e)
                reply = UNAVAILABLE_REPLY
            except CompletionError as e:
                logger.error("Inference request rejected", e)
                reply = REJECTED_REPLY
            except Exception as e:
                logger.error("Error processing request", e)
                reply = UNEXPECTED_REPLY
            else:
                logger.info(f"Generated response ({len(reply)} chars)")
                return reply

            self.history.append(Turn.assistant(reply))
            return reply

    async def _loop(self) -> str:
        """
        Run Ask/Execute round-trips until the model answers.

        Raises:
            MaxIterationsExceededError: If the model still wants tools after
                max_iterations round-trips
        """
        for iteration in range(1, self.settings.max_iterations + 1):
            outcome = await self._ask()

            if isinstance(outcome, FinalAnswer):
                self.history.append(Turn.assistant(outcome.text))
                return outcome.text

            logger.debug(f"Tool iteration {iteration}: {[c.tool_name for c in outcome.calls]}")
            self.history.append(Turn.assistant(outcome.text, outcome.calls))

            results = await self.executor.execute_all(outcome.calls)
            for result in results:
                self.history.append(result.to_turn())

        raise MaxIterationsExceededError(self.settings.max_iterations)

    def _close_cancelled_request(self) -> None:
        """
        Leave the history well-formed after a cancelled request.

        Every tool call still waiting for a result gets a cancellation
        result, and the request ends with an assistant turn, so later
        requests never replay an unanswered tool call.
        """
        history = self.history.snapshot()

        answered: set[str] = set()
        pending: tuple = ()
        for turn in reversed(history):
            if turn.role is Role.TOOL_RESULT:
                answered.add(turn.tool_call_id)
                continue
            if turn.role is Role.ASSISTANT and turn.requests_tools:
                pending = tuple(c for c in turn.tool_calls if c.id not in answered)
            break

        for call in pending:
            self.history.append(Turn.tool_result(
                call.id, f"Error: tool '{call.tool_name}' was cancelled before it finished"
            ))
        self.history.append(Turn.assistant(CANCELLED_REPLY))

    async def _ask(self):
        """
        Call the model with the current history, retrying transport failures
        with exponential backoff.

        Raises:
            CompletionUnavailableError: If every attempt failed
            CompletionError: If the request was rejected
        """
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(
                    self.completion.complete(self.history.snapshot(), self.registry.definitions()),
                    timeout=self.settings.completion_timeout_seconds,
                )
            except (CompletionUnavailableError, asyncio.TimeoutError) as e:
                if attempt >= self.settings.completion_retries:
                    if isinstance(e, CompletionUnavailableError):
                        raise
                    raise CompletionUnavailableError(
                        f"Completion timed out after {self.settings.completion_timeout_seconds:g}s"
                    ) from e

                delay = self.settings.retry_backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.warning(
                    f"Completion attempt {attempt} failed, retrying in {delay:g}s",
                    {"error": str(e) or type(e).__name__},
                )
                await asyncio.sleep(delay)
