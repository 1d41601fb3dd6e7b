"""
Repository layer for provider reviews and customer favorites.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.review import Favorite, Review

logger = logging.getLogger(__name__)


class ReviewRepository:
    """Data access layer for review records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing ReviewRepository")
        self._store = store

    def create(
        self,
        provider_id: str,
        rating: int,
        author: str,
        text: str = "",
        order_id: Optional[str] = None,
    ) -> Review:
        review = Review(
            id=new_id(),
            provider_id=provider_id,
            order_id=order_id,
            author=author,
            rating=rating,
            text=text,
            at=now_iso(),
        )
        logger.info("Creating review id=%s provider_id=%s", review.id, provider_id)
        row = self._store.insert(Kind.REVIEWS, review.to_row())
        return Review.from_row(row)

    def list_by_provider(self, provider_id: str) -> list[Review]:
        """Return a provider's reviews, newest first."""
        logger.trace("Listing reviews for provider_id=%s", provider_id)
        rows = self._store.list(
            Kind.REVIEWS, {"provider_id": provider_id}, order_by="at", descending=True
        )
        return [Review.from_row(r) for r in rows]

    def get_by_order(self, order_id: str) -> Optional[Review]:
        rows = self._store.list(Kind.REVIEWS, {"order_id": order_id}, limit=1)
        return Review.from_row(rows[0]) if rows else None

    def delete_by_provider(self, provider_id: str) -> int:
        logger.info("Deleting reviews for provider id=%s", provider_id)
        return self._store.delete_where(Kind.REVIEWS, {"provider_id": provider_id})


class FavoriteRepository:
    """Data access layer for favorite records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing FavoriteRepository")
        self._store = store

    def get(self, user_id: str, provider_id: str) -> Optional[Favorite]:
        rows = self._store.list(
            Kind.FAVORITES, {"user_id": user_id, "provider_id": provider_id}, limit=1
        )
        return Favorite.from_row(rows[0]) if rows else None

    def list_by_user(self, user_id: str) -> list[Favorite]:
        logger.trace("Listing favorites for user_id=%s", user_id)
        rows = self._store.list(
            Kind.FAVORITES, {"user_id": user_id}, order_by="created_at", descending=True
        )
        return [Favorite.from_row(r) for r in rows]

    def add(self, user_id: str, provider_id: str) -> Favorite:
        favorite = Favorite(
            id=new_id(), user_id=user_id, provider_id=provider_id, created_at=now_iso()
        )
        logger.info("Adding favorite user_id=%s provider_id=%s", user_id, provider_id)
        row = self._store.insert(Kind.FAVORITES, favorite.to_row())
        return Favorite.from_row(row)

    def remove(self, user_id: str, provider_id: str) -> int:
        logger.info("Removing favorite user_id=%s provider_id=%s", user_id, provider_id)
        return self._store.delete_where(
            Kind.FAVORITES, {"user_id": user_id, "provider_id": provider_id}
        )

    def delete_by_provider(self, provider_id: str) -> int:
        return self._store.delete_where(Kind.FAVORITES, {"provider_id": provider_id})
