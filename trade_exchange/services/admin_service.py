"""
Administration service.

Business rules:
  - Admins cannot change their own role or delete themselves.
  - Promoting a user to TRADER links a provider profile if they lack one.
  - Deleting a provider removes its listings, reviews, orders and favorites
    and unlinks its users, all in one transaction.
"""
import logging

from trade_exchange.core.exceptions import InvalidInputError, NotFoundError
from trade_exchange.db.store import Kind, RowStore
from trade_exchange.models.user import User, UserRole
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.order_repository import OrderRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.review_repository import FavoriteRepository, ReviewRepository
from trade_exchange.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing AdminService")
        self._store = store
        self._users = UserRepository(store)
        self._providers = ProviderRepository(store)
        self._listings = ListingRepository(store)
        self._orders = OrderRepository(store)
        self._reviews = ReviewRepository(store)
        self._favorites = FavoriteRepository(store)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        """Return every user account."""
        logger.info("Admin listing users")
        return self._users.list_all()

    def change_role(self, admin: User, user_id: str, role: UserRole) -> User:
        """Set a user's role; promoting to TRADER links a provider profile."""
        if user_id == admin.id and role != UserRole.ADMIN:
            raise InvalidInputError("Admins cannot change their own role")
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        with self._store.transaction():
            fields = {"role": role}
            if role == UserRole.TRADER and not user.provider_id:
                fields["provider_id"] = self._providers.create(user.name or user.email).id
            updated = self._users.update(user.id, **fields)
        logger.info("Admin id=%s set role of user id=%s to %s", admin.id, user_id, role.value)
        return updated or user

    def delete_user(self, admin: User, user_id: str) -> None:
        """Delete a user and their favorites."""
        if user_id == admin.id:
            raise InvalidInputError("Admins cannot delete themselves")
        if self._users.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        with self._store.transaction():
            self._store.delete_where(Kind.FAVORITES, {"user_id": user_id})
            self._users.delete(user_id)
        logger.info("Admin id=%s deleted user id=%s", admin.id, user_id)

    # ------------------------------------------------------------------
    # Providers / listings
    # ------------------------------------------------------------------

    def delete_provider(self, provider_id: str) -> dict:
        """Remove a provider and everything that hangs off it; return counts."""
        if self._providers.get_by_id(provider_id) is None:
            raise NotFoundError("Provider not found")
        with self._store.transaction():
            removed = {
                "listings": self._listings.delete_by_provider(provider_id),
                "reviews": self._reviews.delete_by_provider(provider_id),
                "orders": self._orders.delete_by_provider(provider_id),
                "favorites": self._favorites.delete_by_provider(provider_id),
                "unlinkedUsers": self._users.unlink_provider(provider_id),
            }
            self._providers.delete(provider_id)
        logger.info("Deleted provider id=%s cascade=%s", provider_id, removed)
        return removed

    def delete_listing(self, listing_id: str) -> None:
        """Delete any listing regardless of owner."""
        if not self._listings.delete(listing_id):
            raise NotFoundError("Listing not found")
        logger.info("Admin deleted listing id=%s", listing_id)
