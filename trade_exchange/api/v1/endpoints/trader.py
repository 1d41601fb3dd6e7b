"""
Trader endpoints (TRADER or ADMIN unless noted):
  GET    /trader/listings                 – Own listings, drafts included
  POST   /trader/listings                 – Create a listing
  PUT    /trader/listings/{id}            – Update a listing
  DELETE /trader/listings/{id}            – Delete a listing
  GET    /trader/profile                  – Own provider profile (any user)
  POST   /trader/profile                  – Upsert provider profile (any user)
  PUT    /trader/profile                  – Same as POST
  GET    /trader/orders                   – Incoming orders
  POST   /trader/orders/{id}/action       – approve / deny / refund / exchange / complete
  POST   /trader/orders/{id}/complete-with-details – Complete with notes / photo link
  GET    /trader/summary                  – Earnings, jobs, rating, clients
  GET    /trader/history                  – Orders with customer names
"""
from fastapi import APIRouter, Depends, status
import logging

from trade_exchange.core.dependencies import get_current_user, require_trader, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.listing import ListingCreate, ListingResponse, ListingUpdate
from trade_exchange.schemas.order import CompletionDetails, OrderActionRequest, OrderResponse
from trade_exchange.schemas.provider import ProviderProfileUpdate, ProviderResponse
from trade_exchange.schemas.user_data import TraderHistoryEntry, TraderSummary
from trade_exchange.services.listing_service import ListingService
from trade_exchange.services.order_service import OrderService
from trade_exchange.services.provider_service import ProviderService
from trade_exchange.services.user_data_service import UserDataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trader", tags=["Trader"])


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

@router.get("/listings", response_model=list[ListingResponse], summary="List own listings")
def list_own_listings(
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    return ListingService(store).list_for_trader(current_user)


@router.post(
    "/listings",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing",
)
def create_listing(
    data: ListingCreate,
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    logger.info("Creating listing for user id=%s", current_user.id)
    return ListingService(store).create_listing(current_user, data)


@router.put("/listings/{listing_id}", response_model=ListingResponse, summary="Update a listing")
def update_listing(
    listing_id: str,
    data: ListingUpdate,
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    """Send the **version** you last read to guard against concurrent edits."""
    return ListingService(store).update_listing(current_user, listing_id, data)


@router.delete(
    "/listings/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a listing",
)
def delete_listing(
    listing_id: str,
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    ListingService(store).delete_listing(current_user, listing_id)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

@router.get("/profile", response_model=ProviderResponse, summary="Get own provider profile")
def get_profile(
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return ProviderService(store).get_profile(current_user)


@router.api_route(
    "/profile",
    methods=["POST", "PUT"],
    response_model=ProviderResponse,
    summary="Create or update own provider profile",
)
def upsert_profile(
    data: ProviderProfileUpdate,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    """Omitted fields keep their stored value."""
    return ProviderService(store).upsert_profile(current_user, data)


# ---------------------------------------------------------------------------
# Orders and dashboard
# ---------------------------------------------------------------------------

@router.get("/orders", response_model=list[OrderResponse], summary="List incoming orders")
def list_trader_orders(
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    orders = OrderService(store).list_for_trader(current_user)
    return [OrderResponse.from_order(o) for o in orders]


@router.post(
    "/orders/{order_id}/action",
    response_model=OrderResponse,
    summary="Apply an action to an order",
)
def apply_order_action(
    order_id: str,
    data: OrderActionRequest,
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    logger.info("Order action %r on order id=%s", data.action, order_id)
    order = OrderService(store).apply_action(
        current_user, order_id, data.action, expected_version=data.version
    )
    return OrderResponse.from_order(order)


@router.post(
    "/orders/{order_id}/complete-with-details",
    response_model=OrderResponse,
    summary="Complete an order with notes and a photo link",
)
def complete_order_with_details(
    order_id: str,
    data: CompletionDetails,
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    """
    Marks the order **complete** and appends *notes* and *photoUrl* to its
    details. Follows the same transition rules as the ``complete`` action.
    """
    order = OrderService(store).complete_with_details(current_user, order_id, data)
    return OrderResponse.from_order(order)


@router.get("/summary", response_model=TraderSummary, summary="Trader dashboard summary")
def trader_summary(
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    return UserDataService(store).trader_summary(current_user)


@router.get("/history", response_model=list[TraderHistoryEntry], summary="Trader order history")
def trader_history(
    store=Depends(store_dependency),
    current_user: User = Depends(require_trader),
):
    return UserDataService(store).trader_history(current_user)
