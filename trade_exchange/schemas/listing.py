"""
Pydantic schemas for Listing request/response validation.
Tags are a comma-joined string in storage and a list on the wire.
"""
from pydantic import Field, field_validator
from typing import Optional, Union

from trade_exchange.models.listing import ListingStatus
from trade_exchange.schemas.base import CamelModel


class ListingCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    price: float = Field(0.0, ge=0)
    status: ListingStatus = ListingStatus.LISTED
    tags: Union[str, list[str]] = ""


class ListingUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    status: Optional[ListingStatus] = None
    tags: Optional[Union[str, list[str]]] = None
    # Version the client last read; a stale value is rejected with 409
    version: Optional[int] = None


class ListingResponse(CamelModel):
    id: str
    title: str
    description: str
    price: float
    provider_id: str
    status: ListingStatus
    tags: list[str]
    created_at: str
    updated_at: str
    version: int

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        if isinstance(v, str):
            return [t for t in v.split(",") if t]
        return v
