"""
Tools System
============

Tools are the capabilities the model may ask the bot to run.

- Each tool has a unique name, a description shown to the model and a typed
  argument schema
- The model decides which tools to call based on the conversation
- The registry validates the arguments, runs the tool and returns text

Every outcome of a tool call is text. Successful results, bad arguments,
unknown tool names and crashed handlers all come back as a ToolResult whose
content is replayed to the model on the next round, so the model can see what
went wrong and correct itself.

This module provides:
- ArgumentSpec / ToolDefinition for declaring tools
- ToolResult and ToolErrorKind for standardized results
- ToolRegistry for registering, validating and invoking tools
- register_default_tools() to install the built-in tool set
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from courier.errors import (
    ArgumentValidationError,
    DuplicateToolNameError,
    ToolExecutionError,
    UnknownToolError,
)
from courier.utils.logger import Logger

logger = Logger("Tools")


class ToolErrorKind(str, Enum):
    """Why a tool call did not succeed."""
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"
    NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True)
class ToolResult:
    """
    Standardized result from a tool call.

    Attributes:
        content: Text returned to the model
        success: Whether the tool did what was asked
        error_kind: Category of failure when success is False
    """
    content: str
    success: bool = True
    error_kind: ToolErrorKind | None = None

    @classmethod
    def ok(cls, content: str) -> "ToolResult":
        return cls(content=content)

    @classmethod
    def failure(cls, kind: ToolErrorKind, content: str) -> "ToolResult":
        return cls(content=content, success=False, error_kind=kind)

    def to_message(self) -> str:
        """Format as tool-result text for the model."""
        return self.content


# Python types accepted for each schema type name
_TYPE_CHECKS: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


@dataclass(frozen=True)
class ArgumentSpec:
    """
    One argument in a tool's schema.

    Attributes:
        name: Argument name as the model must send it
        type: "string", "integer", "number" or "boolean"
        description: Shown to the model
        required: Whether the model must provide it
        default: Value used when an optional argument is omitted
        choices: Allowed values, if restricted
    """
    name: str
    type: str
    description: str
    required: bool = True
    default: Any = None
    choices: tuple[Any, ...] | None = None

    def __post_init__(self):
        if self.type not in _TYPE_CHECKS:
            raise ValueError(f"Unsupported argument type '{self.type}' for '{self.name}'")

    def check(self, value: Any) -> str | None:
        """Return a problem description, or None if the value is acceptable."""
        # bool is a subclass of int; never accept it as a number
        if isinstance(value, bool) and self.type != "boolean":
            return f"'{self.name}' must be of type {self.type}, got boolean"
        if not isinstance(value, _TYPE_CHECKS[self.type]):
            return f"'{self.name}' must be of type {self.type}, got {type(value).__name__}"
        if self.choices is not None and value not in self.choices:
            allowed = ", ".join(str(c) for c in self.choices)
            return f"'{self.name}' must be one of: {allowed}"
        return None

    def to_json_schema(self) -> dict:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.choices is not None:
            schema["enum"] = list(self.choices)
        if not self.required and self.default is not None:
            schema["default"] = self.default
        return schema


ToolHandler = Callable[[dict], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDefinition:
    """
    Declaration of a tool the model may call.

    Example:
        async def _echo(params: dict) -> ToolResult:
            return ToolResult.ok(f"Echo: {params['text']}")

        echo_tool = ToolDefinition(
            name="echo",
            description="Echo back the provided text",
            arguments=(ArgumentSpec("text", "string", "Text to echo"),),
            execute=_echo,
        )
    """
    name: str
    description: str
    execute: ToolHandler
    arguments: tuple[ArgumentSpec, ...] = field(default_factory=tuple)

    def to_json_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {arg.name: arg.to_json_schema() for arg in self.arguments},
            "required": [arg.name for arg in self.arguments if arg.required],
        }

    def to_openai_function(self) -> dict:
        """Convert to the OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.to_json_schema(),
            },
        }

    def validate(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        Check arguments against the schema and fill in defaults.

        Every argument is checked before failing, so the error lists all
        problems at once.

        Returns:
            The validated arguments with defaults applied

        Raises:
            ArgumentValidationError: If any argument is missing, mistyped,
                outside its allowed values, or not part of the schema
        """
        problems: list[str] = []
        validated: dict[str, Any] = {}
        known = {arg.name for arg in self.arguments}

        for arg in self.arguments:
            value = arguments.get(arg.name)
            if value is None:
                if arg.required:
                    problems.append(f"missing required argument '{arg.name}'")
                else:
                    validated[arg.name] = arg.default
                continue

            problem = arg.check(value)
            if problem:
                problems.append(problem)
            else:
                validated[arg.name] = value

        for name in sorted(set(arguments) - known):
            problems.append(f"unexpected argument '{name}'")

        if problems:
            raise ArgumentValidationError(self.name, problems)

        return validated


class ToolRegistry:
    """
    Registry of the tools the model may call.

    Tools are registered once at startup; afterwards the registry is only
    read.

    Example:
        registry = ToolRegistry()
        registry.register(echo_tool)

        result = await registry.invoke("echo", {"text": "hi"})
        result.content   # "Echo: hi"
    """

    def __init__(self):
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, tool: ToolDefinition) -> None:
        """
        Register a tool.

        Raises:
            DuplicateToolNameError: If a tool with this name already exists
        """
        if tool.name in self._tools:
            raise DuplicateToolNameError(tool.name)

        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def resolve(self, name: str) -> ToolDefinition:
        """
        Look up a tool by name.

        Raises:
            UnknownToolError: If no tool has this name
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def definitions(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def invoke(self, name: str, params: dict[str, Any]) -> ToolResult:
        """
        Validate arguments and run a tool.

        Never raises for tool-level problems: unknown names, invalid
        arguments and handler exceptions all come back as a failed
        ToolResult whose text explains what happened.
        """
        try:
            tool = self.resolve(name)
        except UnknownToolError as e:
            logger.warning(str(e))
            available = ", ".join(self.list_names()) or "none"
            return ToolResult.failure(
                ToolErrorKind.UNKNOWN_TOOL,
                f"Error: {e}. Available tools: {available}"
            )

        try:
            arguments = tool.validate(params)
        except ArgumentValidationError as e:
            logger.warning(str(e))
            return ToolResult.failure(ToolErrorKind.INVALID_ARGUMENTS, f"Error: {e}")

        try:
            logger.info(f"Executing tool: {name}")
            return await tool.execute(arguments)
        except ToolExecutionError as e:
            logger.warning(f"Tool {name} failed: {e}")
            return ToolResult.failure(ToolErrorKind.EXECUTION_FAILED, f"Error: {e}")
        except Exception as e:
            logger.error(f"Tool execution failed: {name}", e)
            return ToolResult.failure(
                ToolErrorKind.EXECUTION_FAILED,
                f"Error: tool '{name}' failed: {e}"
            )


def register_default_tools(registry: ToolRegistry) -> ToolRegistry:
    """
    Register the built-in tool set.

    Raises:
        DuplicateToolNameError: If any tool is registered twice
    """
    # Imported here to avoid circular imports with the tool modules
    from courier.tools import basic_tools, email_tools, linkedin_tools

    for tool in (*basic_tools.TOOLS, *email_tools.TOOLS, *linkedin_tools.TOOLS):
        registry.register(tool)

    logger.info(f"Registered {len(registry)} tools")
    return registry


__all__ = [
    "ArgumentSpec",
    "ToolDefinition",
    "ToolErrorKind",
    "ToolRegistry",
    "ToolResult",
    "register_default_tools",
]
