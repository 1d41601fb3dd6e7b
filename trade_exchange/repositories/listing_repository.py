"""
Repository layer for Listing persistence.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.listing import Listing, ListingStatus

logger = logging.getLogger(__name__)


class ListingRepository:
    """Data access layer for listing records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing ListingRepository")
        self._store = store

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, listing_id: str) -> Optional[Listing]:
        """Return a listing by id or None if missing."""
        logger.trace("Fetching listing by id=%s", listing_id)
        row = self._store.get(Kind.LISTINGS, listing_id)
        return Listing.from_row(row) if row else None

    def list_all(self, status: Optional[ListingStatus] = None) -> list[Listing]:
        """Return listings newest first, optionally filtered by status."""
        logger.trace("Listing listings status=%s", status)
        filters = {"status": status.value} if status else None
        rows = self._store.list(Kind.LISTINGS, filters, order_by="created_at", descending=True)
        return [Listing.from_row(r) for r in rows]

    def list_by_provider(
        self, provider_id: str, status: Optional[ListingStatus] = None
    ) -> list[Listing]:
        """Return the listings owned by a provider, newest first."""
        logger.trace("Listing listings for provider_id=%s", provider_id)
        filters = {"provider_id": provider_id}
        if status:
            filters["status"] = status.value
        rows = self._store.list(Kind.LISTINGS, filters, order_by="created_at", descending=True)
        return [Listing.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(
        self,
        provider_id: str,
        title: str,
        description: str = "",
        price: float = 0.0,
        status: ListingStatus = ListingStatus.LISTED,
        tags: str = "",
    ) -> Listing:
        """Insert a listing for a provider and return it."""
        now = now_iso()
        listing = Listing(
            id=new_id(),
            title=title,
            description=description,
            price=price,
            provider_id=provider_id,
            status=status,
            tags=tags,
            created_at=now,
            updated_at=now,
        )
        logger.info("Creating listing id=%s provider_id=%s", listing.id, provider_id)
        row = self._store.insert(Kind.LISTINGS, listing.to_row())
        return Listing.from_row(row)

    def update(
        self, listing_id: str, expected_version: Optional[int] = None, **fields
    ) -> Optional[Listing]:
        """Apply *fields*; a stale *expected_version* raises ConflictError."""
        if isinstance(fields.get("status"), ListingStatus):
            fields["status"] = fields["status"].value
        fields["updated_at"] = now_iso()
        logger.info("Updating listing id=%s fields=%s", listing_id, sorted(fields))
        row = self._store.update(Kind.LISTINGS, listing_id, fields, expected_version)
        return Listing.from_row(row) if row else None

    def delete(self, listing_id: str) -> bool:
        logger.info("Deleting listing id=%s", listing_id)
        return self._store.delete(Kind.LISTINGS, listing_id)

    def delete_by_provider(self, provider_id: str) -> int:
        logger.info("Deleting listings for provider id=%s", provider_id)
        return self._store.delete_where(Kind.LISTINGS, {"provider_id": provider_id})
