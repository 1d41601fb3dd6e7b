"""
Customer order endpoints (any authenticated user):
  POST /orders/request          – Request an order from a provider
  GET  /orders/status           – Latest order with a provider (or none)
  GET  /orders/mine             – All of the caller's orders
  POST /orders/{id}/review      – Review a completed order
  POST /orders/{id}/schedule-consultation – Set the requested date / time
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from trade_exchange.core.dependencies import get_current_user, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.order import (
    ConsultationSchedule,
    OrderCreate,
    OrderResponse,
    OrderStatusResponse,
    ReviewCreate,
    ReviewResponse,
)
from trade_exchange.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "/request",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request an order",
)
def request_order(
    data: OrderCreate,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    """
    Opens an order in **discuss**. Without a **conversationId** the order is
    linked to a conversation between the caller and the provider's traders.
    """
    order = OrderService(store).create_order(current_user, data)
    return OrderResponse.from_order(order)


@router.get("/status", response_model=OrderStatusResponse, summary="Look up an order")
def order_status(
    provider_id: str = Query(..., alias="providerId"),
    listing_id: Optional[str] = Query(None, alias="listingId"),
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    result = OrderService(store).find_order(current_user.id, provider_id, listing_id)
    order = result.pop("order")
    return OrderStatusResponse(
        **result, order=OrderResponse.from_order(order) if order else None
    )


@router.get("/mine", response_model=list[OrderResponse], summary="List my orders")
def my_orders(
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return [OrderResponse.from_order(o) for o in OrderService(store).list_for_customer(current_user)]


@router.post(
    "/{order_id}/review",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a completed order",
)
def review_order(
    order_id: str,
    data: ReviewCreate,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    return OrderService(store).add_review(current_user, order_id, data)


@router.post(
    "/{order_id}/schedule-consultation",
    response_model=OrderResponse,
    summary="Schedule a consultation for an order",
)
def schedule_consultation(
    order_id: str,
    data: ConsultationSchedule,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    order = OrderService(store).schedule_consultation(current_user, order_id, data)
    return OrderResponse.from_order(order)
