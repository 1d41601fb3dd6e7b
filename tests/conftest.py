"""
Shared fixtures. Environment defaults are set before the package is
imported because settings are read once at import time.
"""
import os

os.environ["STORAGE_BACKEND"] = "memory"
os.environ["STORAGE_MODE"] = "strict"
os.environ["LOG_FILE_PATH"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["CHAT_AUTO_REPLY"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ.pop("STRIPE_SECRET_KEY", None)

import pytest
from fastapi.testclient import TestClient

import trade_exchange.core.logging_config  # noqa: F401,E402  registers Logger.trace
from trade_exchange.db.memory_store import MemoryRowStore
from trade_exchange.db.sqlite_store import SQLiteRowStore
from trade_exchange.models.user import UserRole
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.services.payment_gateway import DemoPaymentGateway


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Every service and API test runs against both row store backends."""
    if request.param == "memory":
        return MemoryRowStore()
    sqlite_store = SQLiteRowStore(str(tmp_path / "trade_exchange.db"))
    sqlite_store.initialize()
    return sqlite_store


@pytest.fixture
def client(store):
    from trade_exchange.main import create_app

    app = create_app(store=store, payment_gateway=DemoPaymentGateway())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client):
    """Sign up through the API and return ``(auth_headers, body)``."""
    def _signup(email, password="pw", role="USER", name=""):
        response = client.post(
            "/api/v1/signup",
            json={"email": email, "password": password, "role": role, "name": name},
        )
        assert response.status_code == 201, response.text
        # Keep requests explicit: tests pass headers, never the session cookie
        client.cookies.clear()
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body
    return _signup


@pytest.fixture
def admin_headers(client, store):
    from trade_exchange.db.seeder import seed_admin
    from trade_exchange.core.config import settings

    seed_admin(store)
    response = client.post(
        "/api/v1/signin",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def people(store):
    """A customer, a trader with a provider, and a second unrelated trader."""
    users = UserRepository(store)
    providers = ProviderRepository(store)

    provider = providers.create("Ava Provider", rating=4.0, completed_jobs=3)
    other_provider = providers.create("Milo Provider")
    customer = users.create("Cam Customer", "cam@example.com", "x")
    trader = users.create(
        "Ava", "ava@example.com", "x", role=UserRole.TRADER, provider_id=provider.id
    )
    other_trader = users.create(
        "Milo", "milo@example.com", "x", role=UserRole.TRADER, provider_id=other_provider.id
    )
    admin = users.create("Root", "root@example.com", "x", role=UserRole.ADMIN)
    return {
        "customer": customer,
        "trader": trader,
        "other_trader": other_trader,
        "admin": admin,
        "provider": provider,
        "other_provider": other_provider,
    }
