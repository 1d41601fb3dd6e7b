"""
Administration endpoints (ADMIN only):
  GET    /admin/users                 – List users
  PATCH  /admin/users/{id}/role       – Change a user's role
  DELETE /admin/users/{id}            – Delete a user
  DELETE /admin/providers/{id}        – Delete a provider and its data
  DELETE /admin/listings/{id}         – Delete a listing
"""
from fastapi import APIRouter, Depends, status
import logging

from trade_exchange.core.dependencies import require_admin, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.user import RoleUpdate, UserResponse
from trade_exchange.services.admin_service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=list[UserResponse], summary="List users")
def list_users(store=Depends(store_dependency), _: User = Depends(require_admin)):
    return AdminService(store).list_users()


@router.patch("/users/{user_id}/role", response_model=UserResponse, summary="Change a user's role")
def change_role(
    user_id: str,
    data: RoleUpdate,
    store=Depends(store_dependency),
    current_user: User = Depends(require_admin),
):
    return AdminService(store).change_role(current_user, user_id, data.role)


@router.delete(
    "/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user"
)
def delete_user(
    user_id: str,
    store=Depends(store_dependency),
    current_user: User = Depends(require_admin),
):
    AdminService(store).delete_user(current_user, user_id)


@router.delete("/providers/{provider_id}", summary="Delete a provider and its data")
def delete_provider(
    provider_id: str,
    store=Depends(store_dependency),
    _: User = Depends(require_admin),
):
    """Removes listings, reviews, orders and favorites in one transaction."""
    return {"ok": True, "removed": AdminService(store).delete_provider(provider_id)}


@router.delete(
    "/listings/{listing_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a listing"
)
def delete_listing(
    listing_id: str,
    store=Depends(store_dependency),
    _: User = Depends(require_admin),
):
    AdminService(store).delete_listing(listing_id)
