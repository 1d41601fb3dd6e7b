"""
Public catalogue endpoints (no authentication):
  GET /providers                – List providers
  GET /providers/{id}           – Provider with its public listings
  GET /providers/{id}/reviews   – Reviews of a provider
  GET /listings                 – Public (LISTED) listings
  GET /categories               – Distinct listing tags
  GET /search?q=                – Ranked providers and matching listings
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
import logging

from trade_exchange.core.dependencies import store_dependency
from trade_exchange.schemas.listing import ListingResponse
from trade_exchange.schemas.order import ReviewResponse
from trade_exchange.schemas.provider import ProviderDetailResponse, ProviderResponse, SearchResponse
from trade_exchange.services.order_service import OrderService
from trade_exchange.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Public"])


@router.get("/providers", response_model=list[ProviderResponse], summary="List providers")
def list_providers(store=Depends(store_dependency)):
    return SearchService(store).list_providers()


@router.get(
    "/providers/{provider_id}",
    response_model=ProviderDetailResponse,
    summary="Get a provider and its listings",
)
def get_provider(provider_id: str, store=Depends(store_dependency)):
    provider, listings = SearchService(store).get_provider(provider_id)
    return {"provider": provider, "listings": listings}


@router.get(
    "/providers/{provider_id}/reviews",
    response_model=list[ReviewResponse],
    summary="List a provider's reviews",
)
def list_provider_reviews(provider_id: str, store=Depends(store_dependency)):
    return OrderService(store).list_reviews(provider_id)


@router.get("/listings", response_model=list[ListingResponse], summary="List public listings")
def list_listings(store=Depends(store_dependency)):
    return SearchService(store).list_listings()


@router.get("/categories", response_model=list[str], summary="List categories")
def list_categories(store=Depends(store_dependency)):
    return SearchService(store).list_categories()


@router.get("/search", response_model=SearchResponse, summary="Search providers")
def search(
    q: Optional[str] = Query("", description="Free-text query"),
    store=Depends(store_dependency),
):
    """
    Rank providers for **q**. A blank query ranks by rating and completed
    jobs; otherwise matching listing text and price weigh in.
    """
    logger.info("Search endpoint called")
    return SearchService(store).search(q)
