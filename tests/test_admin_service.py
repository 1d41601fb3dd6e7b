import pytest

from trade_exchange.core.exceptions import InvalidInputError, NotFoundError
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.order_repository import OrderRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.review_repository import FavoriteRepository
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.schemas.order import OrderCreate
from trade_exchange.services.admin_service import AdminService
from trade_exchange.services.order_service import OrderService


@pytest.fixture
def service(store):
    return AdminService(store)


@pytest.fixture
def catalogue(store, people):
    """Two listings, an order and a favorite hanging off the first provider."""
    provider_id = people["provider"].id
    listings = ListingRepository(store)
    listings.create(provider_id, "Lawn Care", price=85)
    listings.create(provider_id, "Hedge Trimming", price=60)
    OrderService(store).create_order(
        people["customer"], OrderCreate(provider_id=provider_id, service="Lawn Care")
    )
    FavoriteRepository(store).add(people["customer"].id, provider_id)
    return provider_id


class TestDeleteProvider:
    def test_cascade_removes_dependents(self, store, service, people, catalogue):
        removed = service.delete_provider(catalogue)

        assert removed == {
            "listings": 2,
            "reviews": 0,
            "orders": 1,
            "favorites": 1,
            "unlinkedUsers": 1,
        }
        assert ProviderRepository(store).get_by_id(catalogue) is None
        assert ListingRepository(store).list_by_provider(catalogue) == []
        assert UserRepository(store).get_by_id(people["trader"].id).provider_id is None

    def test_failure_mid_cascade_keeps_everything(self, store, service, people, catalogue, monkeypatch):
        def fail(self, provider_id):
            raise RuntimeError("disk full")

        monkeypatch.setattr(FavoriteRepository, "delete_by_provider", fail)

        with pytest.raises(RuntimeError):
            service.delete_provider(catalogue)

        assert len(ListingRepository(store).list_by_provider(catalogue)) == 2
        assert len(OrderRepository(store).list_by_provider(catalogue)) == 1
        assert ProviderRepository(store).get_by_id(catalogue) is not None
        assert UserRepository(store).get_by_id(people["trader"].id).provider_id == catalogue

    def test_unknown_provider(self, service):
        with pytest.raises(NotFoundError):
            service.delete_provider("missing")

    def test_other_providers_untouched(self, store, service, people, catalogue):
        ListingRepository(store).create(people["other_provider"].id, "Portraits", price=220)

        service.delete_provider(catalogue)

        assert len(ListingRepository(store).list_by_provider(people["other_provider"].id)) == 1


class TestUsers:
    def test_admin_cannot_delete_self(self, service, people):
        with pytest.raises(InvalidInputError):
            service.delete_user(people["admin"], people["admin"].id)

    def test_delete_user_drops_favorites(self, store, service, people, catalogue):
        service.delete_user(people["admin"], people["customer"].id)

        assert UserRepository(store).get_by_id(people["customer"].id) is None
        assert FavoriteRepository(store).list_by_user(people["customer"].id) == []
