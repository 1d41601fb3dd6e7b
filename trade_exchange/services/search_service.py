"""
Public catalogue and search service.

Only LISTED listings are public: DRAFT listings are visible to their owner
through the trader endpoints and never appear here or in search.
"""
import logging

from trade_exchange.core.exceptions import NotFoundError
from trade_exchange.db.store import RowStore
from trade_exchange.models.listing import Listing, ListingStatus
from trade_exchange.models.provider import Provider
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.services.matching import matches_query, normalize_query, rank_providers

logger = logging.getLogger(__name__)

# Offered when no listing carries tags yet
DEFAULT_CATEGORIES = ["home", "outdoor", "photo", "creative", "tutor", "algebra"]


class SearchService:
    """Read-only access to providers and public listings."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing SearchService")
        self._providers = ProviderRepository(store)
        self._listings = ListingRepository(store)

    def list_providers(self) -> list[Provider]:
        logger.info("Listing providers")
        return self._providers.list_all()

    def get_provider(self, provider_id: str) -> tuple[Provider, list[Listing]]:
        """Return a provider and its public listings, or 404."""
        provider = self._providers.get_by_id(provider_id)
        if provider is None:
            logger.warning("Provider id=%s not found", provider_id)
            raise NotFoundError("Provider not found")
        return provider, self._listings.list_by_provider(provider_id, ListingStatus.LISTED)

    def list_listings(self) -> list[Listing]:
        logger.info("Listing public listings")
        return self._listings.list_all(ListingStatus.LISTED)

    def list_categories(self) -> list[str]:
        """Return the distinct tags used by public listings, in first-seen order."""
        categories: list[str] = []
        for listing in self._listings.list_all(ListingStatus.LISTED):
            for tag in listing.tags.split(","):
                if tag and tag not in categories:
                    categories.append(tag)
        return categories or list(DEFAULT_CATEGORIES)

    def search(self, q: str | None) -> dict:
        """Rank providers for *q* and return the matching public listings."""
        query = normalize_query(q)
        logger.info("Searching query=%r", query)
        listings = self._listings.list_all(ListingStatus.LISTED)
        ranked = rank_providers(self._providers.list_all(), listings, query)
        return {
            "query": query,
            "providers": [
                {**provider.to_row(), "score": score} for provider, score in ranked
            ],
            "listings": [l for l in listings if matches_query(l, query)],
        }
