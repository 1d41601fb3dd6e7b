"""
Repository layer for Provider persistence.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.provider import Provider

logger = logging.getLogger(__name__)


class ProviderRepository:
    """Data access layer for provider records."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing ProviderRepository")
        self._store = store

    def get_by_id(self, provider_id: str) -> Optional[Provider]:
        """Return a provider by id or None if missing."""
        logger.trace("Fetching provider by id=%s", provider_id)
        row = self._store.get(Kind.PROVIDERS, provider_id)
        return Provider.from_row(row) if row else None

    def list_all(self) -> list[Provider]:
        """Return every provider in creation order."""
        logger.trace("Listing providers")
        rows = self._store.list(Kind.PROVIDERS, order_by="created_at")
        return [Provider.from_row(r) for r in rows]

    def create(self, name: str, **profile) -> Provider:
        """Insert a provider with default rating and no completed jobs."""
        now = now_iso()
        provider = Provider(id=new_id(), name=name, created_at=now, updated_at=now, **profile)
        logger.info("Creating provider record id=%s", provider.id)
        row = self._store.insert(Kind.PROVIDERS, provider.to_row())
        return Provider.from_row(row)

    def update(self, provider_id: str, **fields) -> Optional[Provider]:
        """Update provider fields and return the updated provider."""
        fields["updated_at"] = now_iso()
        logger.info("Updating provider id=%s fields=%s", provider_id, sorted(fields))
        row = self._store.update(Kind.PROVIDERS, provider_id, fields)
        return Provider.from_row(row) if row else None

    def increment_completed_jobs(self, provider_id: str) -> Optional[Provider]:
        provider = self.get_by_id(provider_id)
        if provider is None:
            return None
        return self.update(provider_id, completed_jobs=provider.completed_jobs + 1)

    def delete(self, provider_id: str) -> bool:
        logger.info("Deleting provider id=%s", provider_id)
        return self._store.delete(Kind.PROVIDERS, provider_id)
