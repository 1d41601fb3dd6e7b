"""
Pydantic schemas for conversations and messages.
"""
from pydantic import Field
from typing import Optional

from trade_exchange.models.conversation import MessageRole
from trade_exchange.schemas.base import CamelModel


class ConversationCreate(CamelModel):
    participant_ids: list[str] = []
    # Adds the provider's trader accounts to the participants
    provider_id: Optional[str] = None
    hint: str = Field("", max_length=200)
    kind: str = Field("CHAT", max_length=30)


class MessageCreate(CamelModel):
    content: str = Field(..., max_length=5000)


class ConversationResponse(CamelModel):
    id: str
    kind: str
    title: str
    last_message: str
    created_at: str


class MessageResponse(CamelModel):
    id: str
    conversation_id: str
    user_id: Optional[str] = None
    role: MessageRole
    content: str
    created_at: str


class PostMessageResponse(CamelModel):
    message: MessageResponse
    reply: Optional[MessageResponse] = None
