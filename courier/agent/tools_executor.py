"""
Tool Executor
=============

Runs the tool calls the model requested in one assistant turn.

The executor:
1. Runs every requested call concurrently
2. Applies a timeout to each call
3. Returns one tool-result turn per call, in the order the model asked

Calls within a turn are independent, so they run in parallel, but the turn
loop only continues once all of them have finished.
"""

import asyncio
from dataclasses import dataclass

from courier.memory.conversation import ToolInvocationRequest, Turn
from courier.tools import ToolErrorKind, ToolRegistry, ToolResult
from courier.utils.logger import Logger

logger = Logger("ToolExecutor")


@dataclass(frozen=True)
class ToolCallResult:
    """
    Result of executing one tool call.

    Attributes:
        request: The call the model made
        result: What the tool returned
    """
    request: ToolInvocationRequest
    result: ToolResult

    def to_turn(self) -> Turn:
        """Format as a tool-result turn for the history."""
        return Turn.tool_result(self.request.id, self.result.to_message())


class ToolExecutor:
    """
    Executes tool calls against a registry.

    Example:
        executor = ToolExecutor(registry, timeout_seconds=30)
        results = await executor.execute_all(outcome.calls)
        for result in results:
            store.append(result.to_turn())
    """

    def __init__(self, registry: ToolRegistry, timeout_seconds: float = 30.0):
        self.registry = registry
        self.timeout_seconds = timeout_seconds

    async def execute_one(self, request: ToolInvocationRequest) -> ToolCallResult:
        """Run a single tool call with a timeout. Never raises for tool errors."""
        try:
            result = await asyncio.wait_for(
                self.registry.invoke(request.tool_name, request.arguments),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Tool {request.tool_name} timed out after {self.timeout_seconds}s")
            result = ToolResult.failure(
                ToolErrorKind.TIMEOUT,
                f"Error: tool '{request.tool_name}' timed out after {self.timeout_seconds:g} seconds"
            )

        if result.success:
            logger.debug(f"Tool {request.tool_name} succeeded")
        else:
            logger.warning(f"Tool {request.tool_name} failed ({result.error_kind.value})")

        return ToolCallResult(request=request, result=result)

    async def execute_all(
        self,
        requests: tuple[ToolInvocationRequest, ...] | list[ToolInvocationRequest]
    ) -> list[ToolCallResult]:
        """
        Run all calls concurrently.

        Returns:
            Results in the same order as the requests
        """
        if not requests:
            return []
        results = await asyncio.gather(*(self.execute_one(request) for request in requests))
        return list(results)
