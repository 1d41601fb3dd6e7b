"""
Pydantic schemas for checkout and the interaction history it produces.
"""
from pydantic import Field
from typing import Optional

from trade_exchange.schemas.base import CamelModel


class CheckoutRequest(CamelModel):
    provider_id: str = Field(..., min_length=1)
    listing_id: Optional[str] = None
    # Defaults to the listing price when omitted
    amount: Optional[float] = Field(None, ge=0)
    note: str = Field("", max_length=500)


class InteractionResponse(CamelModel):
    id: str
    user_id: str
    provider_id: str
    listing_id: Optional[str] = None
    at: str
    note: str
    amount: float
    payment_ref: str


class HistoryEntry(InteractionResponse):
    provider_name: str = ""
