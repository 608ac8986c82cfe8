"""
Conversation log for one editing session.

Keeps the most recent messages (user and assistant) so they can be fed
back to the assistant as context. Older messages fall off the front.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from studio.config import settings
from studio.kernel.types import new_id, now_iso

Role = Literal["user", "assistant"]


@dataclass
class Message:
    id: str
    role: Role
    content: str
    timestamp: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
            **self.metadata,
        }


class ConversationLog:
    def __init__(self, limit: int | None = None) -> None:
        self.limit = settings.CONVERSATION_LIMIT if limit is None else limit
        self._messages: list[Message] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def add_message(self, role: Role, content: str, **metadata: Any) -> Message:
        message = Message(
            id=new_id("msg"),
            role=role,
            content=content,
            timestamp=now_iso(),
            metadata=metadata,
        )
        self._messages.append(message)
        self._messages = self._messages[-self.limit :]
        return message

    def get_context(self, limit: int | None = None) -> list[Message]:
        """The last `limit` messages, oldest first."""
        limit = settings.CONVERSATION_CONTEXT if limit is None else limit
        if limit <= 0:
            return []
        return self._messages[-limit:]

    def clear(self) -> None:
        self._messages = []
