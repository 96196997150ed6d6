"""
Memory System
=============

The bot's only memory is the conversation history: every human, assistant
and tool-result turn in arrival order, shared by all requests and kept in
RAM for the life of the process.
"""

from courier.memory.conversation import ConversationStore, Role, ToolInvocationRequest, Turn

__all__ = [
    "ConversationStore",
    "Role",
    "ToolInvocationRequest",
    "Turn",
]
