"""
Pydantic schemas for provider profiles.
"""
from pydantic import Field
from typing import Optional

from trade_exchange.schemas.base import CamelModel
from trade_exchange.schemas.listing import ListingResponse


class ProviderProfileUpdate(CamelModel):
    """Upsert payload: omitted fields keep their stored value."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=200)
    website: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    specialties: Optional[str] = Field(None, max_length=500)
    hourly_rate: Optional[float] = Field(None, ge=0)
    availability: Optional[str] = Field(None, max_length=200)
    experience_years: Optional[int] = Field(None, ge=0)
    languages: Optional[str] = Field(None, max_length=200)
    certifications: Optional[str] = Field(None, max_length=1000)
    portfolio: Optional[str] = Field(None, max_length=2000)


class ProviderResponse(CamelModel):
    id: str
    name: str
    role: str
    rating: float
    completed_jobs: int
    bio: str
    location: str
    website: str
    phone: str
    specialties: str
    hourly_rate: float
    availability: str
    experience_years: int
    languages: str
    certifications: str
    portfolio: str
    created_at: str
    updated_at: str


class ScoredProviderResponse(ProviderResponse):
    score: float


class ProviderDetailResponse(CamelModel):
    provider: ProviderResponse
    listings: list[ListingResponse]


class SearchResponse(CamelModel):
    query: str
    providers: list[ScoredProviderResponse]
    listings: list[ListingResponse]
