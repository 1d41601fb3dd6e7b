"""
Messaging endpoints (members only):
  GET  /conversations                   – My conversations
  POST /conversations                   – Open (or reuse) a conversation
  GET  /conversations/{id}/messages     – Messages, oldest first
  POST /conversations/{id}/messages     – Post a message; may return a reply
"""
from fastapi import APIRouter, Depends, status
import logging

from trade_exchange.core.dependencies import get_current_user, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.conversation import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    PostMessageResponse,
)
from trade_exchange.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.get("", response_model=list[ConversationResponse], summary="List my conversations")
def list_conversations(
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return ConversationService(store).list_conversations(current_user)


@router.post(
    "",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a conversation",
)
def open_conversation(
    data: ConversationCreate,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    """Idempotent: the same participants and **hint** return the same conversation."""
    return ConversationService(store).start_conversation(current_user, data)


@router.get(
    "/{conversation_id}/messages",
    response_model=list[MessageResponse],
    summary="List messages",
)
def list_messages(
    conversation_id: str,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return ConversationService(store).list_messages(conversation_id, current_user)


@router.post(
    "/{conversation_id}/messages",
    response_model=PostMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a message",
)
def post_message(
    conversation_id: str,
    data: MessageCreate,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    message, reply = ConversationService(store).post_message(
        conversation_id, current_user, data.content
    )
    return {"message": message, "reply": reply}
