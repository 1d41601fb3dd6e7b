"""
Domain models for conversations and their append-only messages.
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Conversation:
    id: str
    participant_key: str
    created_at: str
    kind: str = "CHAT"
    title: str = ""
    last_message: str = ""

    @classmethod
    def from_row(cls, row) -> "Conversation":
        return cls(
            id=row["id"],
            kind=row.get("kind") or "CHAT",
            title=row.get("title") or "",
            participant_key=row["participant_key"],
            last_message=row.get("last_message") or "",
            created_at=row["created_at"],
        )

    def to_row(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Message:
    id: str
    conversation_id: str
    role: MessageRole
    content: str
    created_at: str
    user_id: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Message":
        return cls(
            id=row["id"],
            conversation_id=row["conversation_id"],
            user_id=row.get("user_id"),
            role=MessageRole(row["role"]),
            content=row["content"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict:
        row = asdict(self)
        row["role"] = self.role.value
        return row
