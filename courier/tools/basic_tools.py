"""
Basic Tools
===========

Small self-contained tools with no external services:
- calculator: arithmetic on numeric literals
- time: the current local time
- echo: repeat text back unchanged
"""

from datetime import datetime

from courier.tools import ArgumentSpec, ToolDefinition, ToolErrorKind, ToolResult
from courier.tools.calculator import InvalidExpression, evaluate, format_number
from courier.utils.logger import Logger

logger = Logger("BasicTools")


# ==============================================================================
# Tool: Calculator
# ==============================================================================

async def _calculator(params: dict) -> ToolResult:
    expression = params["expression"]

    try:
        value = evaluate(expression)
    except InvalidExpression as e:
        logger.debug(f"Rejected expression {expression!r}: {e}")
        return ToolResult.failure(ToolErrorKind.EXECUTION_FAILED, "Invalid math expression")

    return ToolResult.ok(f"Result: {format_number(value)}")


calculator_tool = ToolDefinition(
    name="calculator",
    description=(
        "Evaluate an arithmetic expression. Supports numbers, + - * / and "
        "parentheses, e.g. '(12 + 3) * 4'."
    ),
    arguments=(
        ArgumentSpec("expression", "string", "The arithmetic expression to evaluate"),
    ),
    execute=_calculator,
)


# ==============================================================================
# Tool: Time
# ==============================================================================

async def _time(params: dict) -> ToolResult:
    return ToolResult.ok(f"Current time: {datetime.now().strftime('%c')}")


time_tool = ToolDefinition(
    name="time",
    description="Get the current date and time.",
    execute=_time,
)


# ==============================================================================
# Tool: Echo
# ==============================================================================

async def _echo(params: dict) -> ToolResult:
    return ToolResult.ok(f"Echo: {params['text']}")


echo_tool = ToolDefinition(
    name="echo",
    description="Echo back the provided text exactly as given.",
    arguments=(
        ArgumentSpec("text", "string", "The text to echo"),
    ),
    execute=_echo,
)


TOOLS = (calculator_tool, time_tool, echo_tool)
