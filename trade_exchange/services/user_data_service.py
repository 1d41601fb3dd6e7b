"""
Per-user data: favorites, purchase history and trader dashboards.
"""
import logging

from trade_exchange.core.exceptions import ConflictError, NotFoundError
from trade_exchange.db.store import RowStore
from trade_exchange.models.user import User
from trade_exchange.repositories.interaction_repository import InteractionRepository
from trade_exchange.repositories.order_repository import OrderRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.review_repository import FavoriteRepository

logger = logging.getLogger(__name__)


class UserDataService:
    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing UserDataService")
        self._favorites = FavoriteRepository(store)
        self._interactions = InteractionRepository(store)
        self._orders = OrderRepository(store)
        self._providers = ProviderRepository(store)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def list_favorites(self, user: User) -> list[dict]:
        return [
            {**f.to_row(), "provider_name": self._provider_name(f.provider_id)}
            for f in self._favorites.list_by_user(user.id)
        ]

    def add_favorite(self, user: User, provider_id: str) -> dict:
        """Favorite a provider; adding the same one twice is a no-op."""
        if self._providers.get_by_id(provider_id) is None:
            raise NotFoundError("Provider not found")
        favorite = self._favorites.get(user.id, provider_id)
        if favorite is None:
            try:
                favorite = self._favorites.add(user.id, provider_id)
            except ConflictError:
                favorite = self._favorites.get(user.id, provider_id)
                if favorite is None:
                    raise
        return {**favorite.to_row(), "provider_name": self._provider_name(provider_id)}

    def remove_favorite(self, user: User, provider_id: str) -> None:
        removed = self._favorites.remove(user.id, provider_id)
        logger.info("Removed %s favorite(s) for user id=%s", removed, user.id)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history(self, user: User) -> list[dict]:
        """The customer's checkouts, newest first."""
        return [
            {**i.to_row(), "provider_name": self._provider_name(i.provider_id)}
            for i in self._interactions.list_by_user(user.id)
        ]

    def trader_summary(self, user: User) -> dict:
        provider = self._providers.get_by_id(user.provider_id) if user.provider_id else None
        if provider is None:
            raise NotFoundError("No provider profile for this account")
        interactions = self._interactions.list_by_provider(provider.id)
        orders = self._orders.list_by_provider(provider.id)
        clients = {i.user_id for i in interactions} | {o.customer_id for o in orders}
        return {
            "earnings": round(sum(i.amount for i in interactions), 2),
            "jobs": provider.completed_jobs,
            "rating": provider.rating,
            "clients": len(clients),
        }

    def trader_history(self, user: User) -> list[dict]:
        if not user.provider_id:
            return []
        return [
            {
                "id": o.id,
                "user_name": o.customer_name,
                "service": o.service,
                "status": o.status.value,
                "amount": o.amount,
                "created_at": o.created_at,
                "listing_id": o.listing_id,
            }
            for o in self._orders.list_by_provider(user.provider_id)
        ]

    def _provider_name(self, provider_id: str) -> str:
        provider = self._providers.get_by_id(provider_id)
        return provider.name if provider else ""
