"""
Conversation History
====================

The in-memory conversation log shared by every request the bot handles.

- Holds human, assistant and tool-result turns in arrival order
- Replayed verbatim to the model on every completion call
- Lives only in RAM (discarded on restart)
- Append-only: turns are never edited or removed

All requests share one history, so a turn loop must own it from its first
append to its last read. `session()` provides that exclusive ownership:

    async with store.session():
        store.append(Turn.human("What's 2+2?"))
        ...
        history = store.snapshot()
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator


class Role(str, Enum):
    """Who produced a turn."""
    HUMAN = "human"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool_result"


@dataclass(frozen=True)
class ToolInvocationRequest:
    """
    A tool call requested by the model.

    Attributes:
        id: Provider tool-call id, used to correlate the result
        tool_name: Name of the tool to run
        arguments: Arguments decoded from the model's JSON
    """
    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")


@dataclass(frozen=True)
class Turn:
    """
    One message unit in the conversation.

    Attributes:
        role: Who produced the turn
        content: Message text (empty for a pure tool-call turn)
        tool_calls: Calls the model asked for (assistant turns only)
        tool_call_id: The call this result answers (tool-result turns only)
        timestamp: When the turn was created
    """
    role: Role
    content: str
    tool_calls: tuple[ToolInvocationRequest, ...] = ()
    tool_call_id: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def human(cls, content: str) -> "Turn":
        return cls(role=Role.HUMAN, content=content)

    @classmethod
    def assistant(
        cls,
        content: str,
        tool_calls: tuple[ToolInvocationRequest, ...] | list[ToolInvocationRequest] = ()
    ) -> "Turn":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> "Turn":
        return cls(role=Role.TOOL_RESULT, content=content, tool_call_id=tool_call_id)

    @property
    def requests_tools(self) -> bool:
        return bool(self.tool_calls)


class ConversationStore:
    """
    Process-wide, append-only conversation history.

    Example:
        store = ConversationStore()

        async with store.session():
            store.append(Turn.human("Hello!"))
            store.append(Turn.assistant("Hi there!"))

        history = store.snapshot()   # (Turn(HUMAN), Turn(ASSISTANT))
    """

    def __init__(self):
        self._turns: list[Turn] = []
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def session(self) -> AsyncIterator["ConversationStore"]:
        """
        Hold exclusive ownership of the history for one turn loop.

        Other requests wait here until the current one finishes, so turns
        from concurrent requests are never interleaved.
        """
        async with self._lock:
            yield self

    @property
    def busy(self) -> bool:
        """True while a turn loop holds the session."""
        return self._lock.locked()

    def append(self, turn: Turn) -> None:
        """Add a turn to the end of the history."""
        self._turns.append(turn)

    def snapshot(self) -> tuple[Turn, ...]:
        """Return a point-in-time copy of the full history."""
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)
