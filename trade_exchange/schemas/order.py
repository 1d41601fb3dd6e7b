"""
Pydantic schemas for orders, order actions and reviews.
"""
from pydantic import Field
from typing import Optional

from trade_exchange.models.order import Order, OrderStatus
from trade_exchange.schemas.base import CamelModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrderCreate(CamelModel):
    provider_id: str = Field(..., min_length=1)
    listing_id: Optional[str] = None
    service: Optional[str] = Field(None, max_length=200)
    details: str = Field("", max_length=5000)
    date: str = ""
    time: str = ""
    amount: Optional[float] = Field(None, ge=0)
    conversation_id: Optional[str] = None


class OrderActionRequest(CamelModel):
    action: str
    version: Optional[int] = None


class CompletionDetails(CamelModel):
    notes: str = Field("", max_length=5000)
    photo_url: str = Field("", max_length=2000)
    version: Optional[int] = None


class ConsultationSchedule(CamelModel):
    """Requested consultation slot; the conversation is kept when omitted."""

    date: str = Field("", max_length=50)
    time: str = Field("", max_length=50)
    conversation_id: Optional[str] = None
    version: Optional[int] = None


class ReviewCreate(CamelModel):
    # Clamped to 1..5 by the service
    rating: int
    text: str = Field("", max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrderUpdateEntry(CamelModel):
    at: str
    from_: str = Field(..., alias="from")
    message: str


class OrderRequestInfo(CamelModel):
    details: str
    date: str
    time: str
    ack: bool
    conversation_id: Optional[str] = None
    updates: list[OrderUpdateEntry] = []
    last_message: str = ""


class OrderResponse(CamelModel):
    id: str
    customer_id: str
    customer_name: str
    provider_id: str
    listing_id: Optional[str] = None
    service: str
    status: OrderStatus
    amount: float
    request: OrderRequestInfo
    created_at: str
    updated_at: Optional[str] = None
    version: int

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            customer_name=order.customer_name,
            provider_id=order.provider_id,
            listing_id=order.listing_id,
            service=order.service,
            status=order.status,
            amount=order.amount,
            request=OrderRequestInfo(
                details=order.details,
                date=order.req_date,
                time=order.req_time,
                ack=order.ack,
                conversation_id=order.conversation_id,
                updates=[OrderUpdateEntry.model_validate(u) for u in order.updates],
                last_message=order.last_message,
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
            version=order.version,
        )


class OrderStatusResponse(CamelModel):
    """Result of an order lookup; ``found`` is false when no order matches."""

    found: bool
    status: str
    ack: bool
    order: Optional[OrderResponse] = None


class ReviewResponse(CamelModel):
    id: str
    provider_id: str
    order_id: Optional[str] = None
    author: str
    rating: int
    text: str
    at: str
