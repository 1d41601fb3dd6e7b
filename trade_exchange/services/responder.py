"""
Automatic chat replies.

A Responder turns the conversation so far into an assistant reply, or
None to stay silent. EchoResponder is the built-in stand-in.
"""
from typing import Optional, Protocol, Sequence
import logging

from trade_exchange.models.conversation import Message

logger = logging.getLogger(__name__)


class Responder(Protocol):
    def reply(self, history: Sequence[Message], latest: Message) -> Optional[str]:
        ...


class EchoResponder:
    """Replies to every human message by echoing it back."""

    def reply(self, history: Sequence[Message], latest: Message) -> Optional[str]:
        logger.trace("Echo reply for message id=%s", latest.id)
        return f"You said: {latest.content}"
