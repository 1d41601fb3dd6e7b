"""
Repository layer for conversations, their members and messages.
Messages are append-only.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.conversation import Conversation, Message, MessageRole

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Data access layer for conversation and membership records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing ConversationRepository")
        self._store = store

    def get_by_id(self, conversation_id: str) -> Optional[Conversation]:
        logger.trace("Fetching conversation by id=%s", conversation_id)
        row = self._store.get(Kind.CONVERSATIONS, conversation_id)
        return Conversation.from_row(row) if row else None

    def get_by_participant_key(self, participant_key: str) -> Optional[Conversation]:
        logger.trace("Fetching conversation by participant_key=%s", participant_key)
        rows = self._store.list(
            Kind.CONVERSATIONS, {"participant_key": participant_key}, limit=1
        )
        return Conversation.from_row(rows[0]) if rows else None

    def create(self, participant_key: str, kind: str = "CHAT", title: str = "") -> Conversation:
        conversation = Conversation(
            id=new_id(),
            kind=kind,
            title=title,
            participant_key=participant_key,
            created_at=now_iso(),
        )
        logger.info("Creating conversation id=%s", conversation.id)
        row = self._store.insert(Kind.CONVERSATIONS, conversation.to_row())
        return Conversation.from_row(row)

    def set_last_message(self, conversation_id: str, content: str) -> None:
        self._store.update(Kind.CONVERSATIONS, conversation_id, {"last_message": content})

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def add_member(self, conversation_id: str, user_id: str) -> None:
        logger.trace("Adding user_id=%s to conversation id=%s", user_id, conversation_id)
        self._store.insert(
            Kind.CONVERSATION_MEMBERS,
            {"id": new_id(), "conversation_id": conversation_id, "user_id": user_id},
        )

    def member_ids(self, conversation_id: str) -> list[str]:
        rows = self._store.list(
            Kind.CONVERSATION_MEMBERS, {"conversation_id": conversation_id}
        )
        return [r["user_id"] for r in rows]

    def is_member(self, conversation_id: str, user_id: str) -> bool:
        rows = self._store.list(
            Kind.CONVERSATION_MEMBERS,
            {"conversation_id": conversation_id, "user_id": user_id},
            limit=1,
        )
        return bool(rows)

    def list_for_user(self, user_id: str) -> list[Conversation]:
        """Return the conversations *user_id* belongs to, newest first."""
        logger.trace("Listing conversations for user_id=%s", user_id)
        memberships = self._store.list(Kind.CONVERSATION_MEMBERS, {"user_id": user_id})
        conversations = []
        for membership in memberships:
            conversation = self.get_by_id(membership["conversation_id"])
            if conversation:
                conversations.append(conversation)
        conversations.sort(key=lambda c: c.created_at, reverse=True)
        return conversations


class MessageRepository:
    """Data access layer for message records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing MessageRepository")
        self._store = store

    def append(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        user_id: Optional[str] = None,
    ) -> Message:
        message = Message(
            id=new_id(),
            conversation_id=conversation_id,
            user_id=user_id,
            role=role,
            content=content,
            created_at=now_iso(),
        )
        logger.info(
            "Appending %s message id=%s to conversation id=%s",
            role.value,
            message.id,
            conversation_id,
        )
        row = self._store.insert(Kind.MESSAGES, message.to_row())
        return Message.from_row(row)

    def list_by_conversation(self, conversation_id: str) -> list[Message]:
        """Return the conversation's messages in chronological order."""
        rows = self._store.list(
            Kind.MESSAGES, {"conversation_id": conversation_id}, order_by="created_at"
        )
        return [Message.from_row(r) for r in rows]
