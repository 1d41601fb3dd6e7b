"""
Customer data endpoints (any authenticated user):
  GET    /history                     – Past checkouts
  GET    /favorites                   – Favorite providers
  POST   /favorites                   – Add a favorite
  DELETE /favorites/{provider_id}     – Remove a favorite
"""
from fastapi import APIRouter, Depends, status
import logging

from trade_exchange.core.dependencies import get_current_user, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.checkout import HistoryEntry
from trade_exchange.schemas.user_data import FavoriteCreate, FavoriteResponse
from trade_exchange.services.user_data_service import UserDataService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["User data"])


@router.get("/history", response_model=list[HistoryEntry], summary="My checkout history")
def history(
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return UserDataService(store).history(current_user)


@router.get("/favorites", response_model=list[FavoriteResponse], summary="My favorites")
def list_favorites(
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return UserDataService(store).list_favorites(current_user)


@router.post(
    "/favorites",
    response_model=FavoriteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a favorite",
)
def add_favorite(
    data: FavoriteCreate,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return UserDataService(store).add_favorite(current_user, data.provider_id)


@router.delete(
    "/favorites/{provider_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a favorite",
)
def remove_favorite(
    provider_id: str,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    UserDataService(store).remove_favorite(current_user, provider_id)
