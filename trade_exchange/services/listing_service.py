"""
Listing management for traders.

Business rules:
  - A trader manages only the listings of their own provider; admins may
    manage any listing.
  - Tags are stored as a comma-joined set.
  - Updates may carry the version the client read; a stale one is a 409.
"""
import logging

from trade_exchange.core.exceptions import ForbiddenError, NotFoundError
from trade_exchange.db.store import RowStore
from trade_exchange.models.listing import Listing, normalize_tags
from trade_exchange.models.user import User
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.schemas.listing import ListingCreate, ListingUpdate

logger = logging.getLogger(__name__)


class ListingService:
    """Business logic for trader listings."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing ListingService")
        self._repo = ListingRepository(store)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_for_trader(self, user: User) -> list[Listing]:
        """Return every listing, drafts included, that the user manages."""
        if user.provider_id:
            return self._repo.list_by_provider(user.provider_id)
        if user.is_admin:
            return self._repo.list_all()
        return []

    def get_listing(self, listing_id: str) -> Listing:
        listing = self._repo.get_by_id(listing_id)
        if listing is None:
            logger.warning("Listing id=%s not found", listing_id)
            raise NotFoundError("Listing not found")
        return listing

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create_listing(self, user: User, data: ListingCreate) -> Listing:
        if not user.provider_id:
            logger.warning("User id=%s has no provider profile", user.id)
            raise ForbiddenError("No provider profile linked to this account")
        return self._repo.create(
            provider_id=user.provider_id,
            title=data.title.strip(),
            description=data.description,
            price=data.price,
            status=data.status,
            tags=normalize_tags(data.tags),
        )

    def update_listing(self, user: User, listing_id: str, data: ListingUpdate) -> Listing:
        listing = self._owned(user, listing_id)
        fields = data.model_dump(exclude_unset=True, exclude={"version"})
        fields = {k: v for k, v in fields.items() if v is not None}
        if "tags" in fields:
            fields["tags"] = normalize_tags(fields["tags"])
        updated = self._repo.update(listing.id, expected_version=data.version, **fields)
        if updated is None:
            raise NotFoundError("Listing not found")
        return updated

    def delete_listing(self, user: User, listing_id: str) -> None:
        listing = self._owned(user, listing_id)
        self._repo.delete(listing.id)

    def _owned(self, user: User, listing_id: str) -> Listing:
        listing = self.get_listing(listing_id)
        if not user.is_admin and listing.provider_id != user.provider_id:
            logger.warning("User id=%s does not own listing id=%s", user.id, listing_id)
            raise ForbiddenError("You do not own this listing")
        return listing
