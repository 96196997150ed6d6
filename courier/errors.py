"""
Error Types
===========

Exceptions raised inside the bot.

Configuration-time errors (duplicate tool names, missing required settings)
are fatal and stop startup. Everything that can happen while answering a
request is caught at the turn loop boundary and turned into text.
"""


class CourierError(Exception):
    """Base class for all bot errors."""


class ConfigurationError(CourierError, ValueError):
    """Required configuration is missing or invalid."""


# ==============================================================================
# Completion errors
# ==============================================================================

class CompletionError(CourierError):
    """The inference service rejected the request."""


class CompletionUnavailableError(CompletionError):
    """The inference service could not be reached or timed out. Retryable."""


# ==============================================================================
# Tool errors
# ==============================================================================

class ToolRegistryError(CourierError):
    """Base class for tool registry errors."""


class UnknownToolError(ToolRegistryError):
    """A tool name is not present in the registry."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool '{name}'")
        self.name = name


class DuplicateToolNameError(ToolRegistryError):
    """A tool with the same name was already registered."""

    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' is already registered")
        self.name = name


class ArgumentValidationError(ToolRegistryError):
    """
    Tool arguments did not match the tool's schema.

    Attributes:
        tool_name: The tool being called
        problems: Every problem found, one message per argument
    """

    def __init__(self, tool_name: str, problems: list[str]):
        self.tool_name = tool_name
        self.problems = list(problems)
        super().__init__(
            f"Invalid arguments for tool '{tool_name}': " + "; ".join(self.problems)
        )


class ToolExecutionError(CourierError):
    """A tool handler failed. The message is shown to the model."""


class MaxIterationsExceededError(CourierError):
    """The model kept requesting tools past the round-trip bound."""

    def __init__(self, max_iterations: int):
        super().__init__(
            f"Stopped after {max_iterations} tool round-trips without a final answer"
        )
        self.max_iterations = max_iterations
