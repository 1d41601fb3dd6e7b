"""
Repository layer for the append-only Interaction audit trail.
Records are inserted once and never updated.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.interaction import Interaction

logger = logging.getLogger(__name__)


class InteractionRepository:
    """Data access layer for interaction records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing InteractionRepository")
        self._store = store

    def append(
        self,
        user_id: str,
        provider_id: str,
        listing_id: Optional[str] = None,
        note: str = "",
        amount: float = 0.0,
        payment_ref: str = "",
    ) -> Interaction:
        """Insert a new interaction row."""
        interaction = Interaction(
            id=new_id(),
            user_id=user_id,
            provider_id=provider_id,
            listing_id=listing_id,
            at=now_iso(),
            note=note,
            amount=amount,
            payment_ref=payment_ref,
        )
        logger.info(
            "Appending interaction id=%s user_id=%s provider_id=%s",
            interaction.id,
            user_id,
            provider_id,
        )
        row = self._store.insert(Kind.INTERACTIONS, interaction.to_row())
        return Interaction.from_row(row)

    def list_by_user(self, user_id: str) -> list[Interaction]:
        """Return a customer's interactions, newest first."""
        logger.trace("Listing interactions for user_id=%s", user_id)
        rows = self._store.list(
            Kind.INTERACTIONS, {"user_id": user_id}, order_by="at", descending=True
        )
        return [Interaction.from_row(r) for r in rows]

    def list_by_provider(self, provider_id: str) -> list[Interaction]:
        """Return a provider's interactions, newest first."""
        logger.trace("Listing interactions for provider_id=%s", provider_id)
        rows = self._store.list(
            Kind.INTERACTIONS, {"provider_id": provider_id}, order_by="at", descending=True
        )
        return [Interaction.from_row(r) for r in rows]
