"""
Agent System
============

The agent turns inbound text into a reply. It:
1. Records the request in the shared conversation history
2. Asks the model what to do next
3. Runs any tools the model asks for and feeds the results back
4. Returns the model's final answer

This module provides:
- Agent: The turn loop
- CompletionClient: Calls the chat-completion model
- ToolExecutor: Runs one turn's tool calls
- run_agent: Function entry point backed by the process-wide agent
"""

from courier.agent.completion import CompletionClient, FinalAnswer, ToolCallRequest
from courier.agent.core import Agent
from courier.agent.runner import build_agent, get_agent, run_agent
from courier.agent.tools_executor import ToolExecutor

__all__ = [
    "Agent",
    "CompletionClient",
    "FinalAnswer",
    "ToolCallRequest",
    "ToolExecutor",
    "build_agent",
    "get_agent",
    "run_agent",
]
