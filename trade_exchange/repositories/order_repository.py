"""
Repository layer for Order persistence.
The `updates` log is serialized to JSON text by the Order model.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.order import Order

logger = logging.getLogger(__name__)


class OrderRepository:
    """Data access layer for order records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing OrderRepository")
        self._store = store

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, order_id: str) -> Optional[Order]:
        logger.trace("Fetching order by id=%s", order_id)
        row = self._store.get(Kind.ORDERS, order_id)
        return Order.from_row(row) if row else None

    def list_all(self) -> list[Order]:
        """Return every order, newest first."""
        logger.trace("Listing all orders")
        rows = self._store.list(Kind.ORDERS, order_by="created_at", descending=True)
        return [Order.from_row(r) for r in rows]

    def list_by_provider(self, provider_id: str) -> list[Order]:
        logger.trace("Listing orders for provider_id=%s", provider_id)
        rows = self._store.list(
            Kind.ORDERS, {"provider_id": provider_id}, order_by="created_at", descending=True
        )
        return [Order.from_row(r) for r in rows]

    def list_by_customer(self, customer_id: str) -> list[Order]:
        logger.trace("Listing orders for customer_id=%s", customer_id)
        rows = self._store.list(
            Kind.ORDERS, {"customer_id": customer_id}, order_by="created_at", descending=True
        )
        return [Order.from_row(r) for r in rows]

    def list_by_conversation(self, conversation_id: str) -> list[Order]:
        logger.trace("Listing orders for conversation_id=%s", conversation_id)
        rows = self._store.list(Kind.ORDERS, {"conversation_id": conversation_id})
        return [Order.from_row(r) for r in rows]

    def find_latest(
        self,
        customer_id: str,
        provider_id: str,
        listing_id: Optional[str] = None,
    ) -> Optional[Order]:
        """Return the most recent order for a customer/provider (and listing)."""
        filters = {"customer_id": customer_id, "provider_id": provider_id}
        if listing_id:
            filters["listing_id"] = listing_id
        logger.trace("Finding latest order filters=%s", filters)
        rows = self._store.list(
            Kind.ORDERS, filters, order_by="created_at", descending=True, limit=1
        )
        return Order.from_row(rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(self, **fields) -> Order:
        """Insert a new order in the discuss state and return it."""
        order = Order(id=new_id(), created_at=now_iso(), **fields)
        order.updated_at = order.created_at
        logger.info(
            "Creating order id=%s customer_id=%s provider_id=%s",
            order.id,
            order.customer_id,
            order.provider_id,
        )
        row = self._store.insert(Kind.ORDERS, order.to_row())
        return Order.from_row(row)

    def save(self, order: Order) -> Order:
        """
        Persist every mutable field of *order*, guarded by the version the
        order was read at. Raises ConflictError if another writer got there
        first.
        """
        order.updated_at = now_iso()
        patch = order.to_row()
        for immutable in ("id", "customer_id", "provider_id", "created_at", "version"):
            patch.pop(immutable)
        logger.info("Saving order id=%s status=%s", order.id, order.status.value)
        row = self._store.update(Kind.ORDERS, order.id, patch, expected_version=order.version)
        return Order.from_row(row) if row else order

    def delete_by_provider(self, provider_id: str) -> int:
        logger.info("Deleting orders for provider id=%s", provider_id)
        return self._store.delete_where(Kind.ORDERS, {"provider_id": provider_id})
