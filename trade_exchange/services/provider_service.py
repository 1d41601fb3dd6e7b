"""
Trader profile service.
Profile updates are upserts: omitted fields keep their stored value.
"""
import logging

from trade_exchange.core.exceptions import NotFoundError
from trade_exchange.db.store import RowStore
from trade_exchange.models.provider import PROFILE_FIELDS, Provider
from trade_exchange.models.user import User, UserRole
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.schemas.provider import ProviderProfileUpdate

logger = logging.getLogger(__name__)


class ProviderService:
    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing ProviderService")
        self._store = store
        self._providers = ProviderRepository(store)
        self._users = UserRepository(store)

    def get_profile(self, user: User) -> Provider:
        provider = self._providers.get_by_id(user.provider_id) if user.provider_id else None
        if provider is None:
            raise NotFoundError("No provider profile for this account")
        return provider

    def upsert_profile(self, user: User, data: ProviderProfileUpdate) -> Provider:
        """Create the caller's provider profile if missing, then apply *data*."""
        changes = {
            k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None
        }
        with self._store.transaction():
            provider = self._providers.get_by_id(user.provider_id) if user.provider_id else None
            if provider is None:
                provider = self._providers.create(changes.pop("name", None) or user.name or user.email)
                role = user.role if user.role == UserRole.ADMIN else UserRole.TRADER
                self._users.update(user.id, role=role, provider_id=provider.id)
                logger.info("Created provider id=%s for user id=%s", provider.id, user.id)

            fields = {k: v for k, v in changes.items() if k in PROFILE_FIELDS or k == "name"}
            if fields:
                provider = self._providers.update(provider.id, **fields) or provider
        logger.info("Provider profile id=%s saved fields=%s", provider.id, sorted(fields))
        return provider
