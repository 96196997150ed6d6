"""
Agent Runner
============

Wires the default agent together and exposes the plain function entry
point:

    from courier.agent.runner import run_agent

    reply = await run_agent("What time is it?")

The agent, its tools and the conversation history are created on first use
and shared by every caller in the process, including the Slack adapter.
"""

from courier.agent.completion import CompletionClient
from courier.agent.core import Agent
from courier.memory.conversation import ConversationStore
from courier.tools import ToolRegistry, register_default_tools
from courier.tools.linkedin_tools import set_completion_client
from courier.utils.config import Config, get_config
from courier.utils.logger import Logger

logger = Logger("Runner")

_agent_instance: Agent | None = None


def build_agent(config: Config, history: ConversationStore | None = None) -> Agent:
    """
    Create an agent from configuration.

    Raises:
        DuplicateToolNameError: If the tool set is misconfigured
    """
    completion = CompletionClient(
        api_key=config.openai.api_key,
        model=config.openai.model,
        base_url=config.openai.base_url,
        timeout=config.agent.completion_timeout_seconds,
    )
    set_completion_client(completion)

    registry = register_default_tools(ToolRegistry())

    return Agent(
        completion=completion,
        registry=registry,
        history=history if history is not None else ConversationStore(),
        settings=config.agent,
    )


def get_agent() -> Agent:
    """Get the process-wide agent, building it on first access."""
    global _agent_instance
    if _agent_instance is None:
        _agent_instance = build_agent(get_config())
    return _agent_instance


async def run_agent(text: str) -> str:
    """Answer one request with the process-wide agent."""
    return await get_agent().run(text)
