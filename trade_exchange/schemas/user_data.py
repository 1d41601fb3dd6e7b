"""
Pydantic schemas for per-user data: favorites and trader dashboards.
"""
from pydantic import Field
from typing import Optional

from trade_exchange.schemas.base import CamelModel


class FavoriteCreate(CamelModel):
    provider_id: str = Field(..., min_length=1)


class FavoriteResponse(CamelModel):
    id: str
    user_id: str
    provider_id: str
    created_at: str
    provider_name: str = ""


class TraderSummary(CamelModel):
    earnings: float
    jobs: int
    rating: float
    clients: int


class TraderHistoryEntry(CamelModel):
    id: str
    user_name: str
    service: str
    status: str
    amount: float
    created_at: str
    listing_id: Optional[str] = None
