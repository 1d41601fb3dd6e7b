"""
Conversation and message service.

Business rules:
  - A conversation is identified by its participants plus a topic hint;
    asking again for the same pair returns the existing one.
  - Only members may read or post; admins may read any conversation.
  - Messages are append-only. A customer's message in a conversation linked
    to their order is also logged on the order as a follow-up.
  - After each human message the responder may add an assistant reply.
"""
from typing import Iterable, Optional
import logging

from trade_exchange.core.config import settings
from trade_exchange.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from trade_exchange.db.store import RowStore, now_iso
from trade_exchange.models.conversation import Conversation, Message, MessageRole
from trade_exchange.models.user import User
from trade_exchange.repositories.conversation_repository import ConversationRepository, MessageRepository
from trade_exchange.repositories.order_repository import OrderRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.schemas.conversation import ConversationCreate
from trade_exchange.services.responder import EchoResponder, Responder

logger = logging.getLogger(__name__)


def participant_key(participant_ids: Iterable[str], hint: str = "") -> str:
    ids = sorted({pid for pid in participant_ids if pid})
    normalized_hint = " ".join((hint or "").lower().split())
    return f"{'|'.join(ids)}#{normalized_hint}"


class ConversationService:
    """Business logic for conversations and messages."""

    def __init__(
        self,
        store: RowStore,
        responder: Optional[Responder] = None,
        auto_reply: Optional[bool] = None,
    ) -> None:
        logger.trace("Initializing ConversationService")
        self._store = store
        self._responder = responder or EchoResponder()
        self._auto_reply = settings.CHAT_AUTO_REPLY if auto_reply is None else auto_reply
        self._conversations = ConversationRepository(store)
        self._messages = MessageRepository(store)
        self._orders = OrderRepository(store)
        self._users = UserRepository(store)
        self._providers = ProviderRepository(store)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def ensure_conversation(
        self,
        participant_ids: Iterable[str],
        hint: str = "",
        kind: str = "CHAT",
        title: Optional[str] = None,
    ) -> Conversation:
        """Return the conversation for these participants and hint, creating it once."""
        ids = sorted({pid for pid in participant_ids if pid})
        if not ids:
            raise InvalidInputError("A conversation needs at least one participant")
        key = participant_key(ids, hint)
        with self._store.transaction():
            existing = self._conversations.get_by_participant_key(key)
            if existing:
                logger.trace("Reusing conversation id=%s", existing.id)
                return existing
            try:
                conversation = self._conversations.create(key, kind=kind, title=title or hint)
            except ConflictError:
                existing = self._conversations.get_by_participant_key(key)
                if existing is None:
                    raise
                logger.info("Conversation for key created concurrently, reusing id=%s", existing.id)
                return existing
            for user_id in ids:
                self._conversations.add_member(conversation.id, user_id)
        logger.info("Created conversation id=%s members=%s", conversation.id, len(ids))
        return conversation

    def start_conversation(self, user: User, data: ConversationCreate) -> Conversation:
        participants = [user.id]
        for user_id in data.participant_ids:
            if self._users.get_by_id(user_id) is None:
                raise NotFoundError("User not found")
            participants.append(user_id)
        if data.provider_id:
            if self._providers.get_by_id(data.provider_id) is None:
                raise NotFoundError("Provider not found")
            participants.extend(u.id for u in self._users.list_by_provider(data.provider_id))
        return self.ensure_conversation(participants, hint=data.hint, kind=data.kind)

    def list_conversations(self, user: User) -> list[Conversation]:
        return self._conversations.list_for_user(user.id)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def list_messages(self, conversation_id: str, user: User) -> list[Message]:
        self._require_access(conversation_id, user, allow_admin=True)
        return self._messages.list_by_conversation(conversation_id)

    def post_message(
        self, conversation_id: str, author: User, content: str
    ) -> tuple[Message, Optional[Message]]:
        """Append a message and the responder's reply; return both."""
        self._require_access(conversation_id, author, allow_admin=False)
        text = (content or "").strip()
        if not text:
            raise InvalidInputError("Message content is required")

        with self._store.transaction():
            message = self._messages.append(
                conversation_id, MessageRole.USER, text, user_id=author.id
            )
            self._conversations.set_last_message(conversation_id, text)
            self._record_follow_ups(conversation_id, author, text)

        reply = None
        if self._auto_reply:
            history = self._messages.list_by_conversation(conversation_id)
            reply_text = self._responder.reply(history, message)
            if reply_text:
                reply = self._messages.append(conversation_id, MessageRole.ASSISTANT, reply_text)
                self._conversations.set_last_message(conversation_id, reply_text)
        logger.info("Message id=%s posted to conversation id=%s", message.id, conversation_id)
        return message, reply

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_access(self, conversation_id: str, user: User, allow_admin: bool) -> Conversation:
        conversation = self._conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if allow_admin and user.is_admin:
            return conversation
        if not self._conversations.is_member(conversation_id, user.id):
            logger.warning(
                "User id=%s is not a member of conversation id=%s", user.id, conversation_id
            )
            raise ForbiddenError("Not a member of this conversation")
        return conversation

    def _record_follow_ups(self, conversation_id: str, author: User, text: str) -> None:
        at = now_iso()
        for order in self._orders.list_by_conversation(conversation_id):
            if order.customer_id != author.id:
                continue
            order.add_customer_update(text, at)
            self._orders.save(order)
            logger.info("Recorded customer follow-up on order id=%s", order.id)
