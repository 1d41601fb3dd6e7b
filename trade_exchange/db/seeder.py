"""
Development seeder: creates a default admin account and a small demo
catalogue on first startup.

⚠️  FOR DEVELOPMENT ONLY.
    Set SEED_DEMO_DATA=false before deploying to production.

Default admin credentials come from ADMIN_EMAIL / ADMIN_PASSWORD.
"""
import logging

from trade_exchange.core.config import settings
from trade_exchange.core.security import hash_password
from trade_exchange.db.store import RowStore
from trade_exchange.models.user import UserRole
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Seed data – change these values freely during development
# ---------------------------------------------------------------------------
ADMIN_NAME = "Admin"

DEMO_PROVIDERS = [
    {
        "name": "Ava Provider",
        "profile": {
            "rating": 4.8,
            "completed_jobs": 124,
            "location": "Austin, TX",
            "hourly_rate": 75.0,
            "specialties": "lawn, weekly",
            "bio": "Reliable outdoor work.",
        },
        "listing": {
            "title": "Lawn Care - quarter acre",
            "description": "Mow, trim, and edge. Includes bagging and cleanup.",
            "price": 85.0,
            "tags": "home,outdoor,weekly,lawn,mow",
        },
    },
    {
        "name": "Milo Provider",
        "profile": {
            "rating": 4.6,
            "completed_jobs": 58,
            "location": "Seattle, WA",
            "hourly_rate": 120.0,
            "specialties": "photo, portrait",
            "bio": "Natural light portraits.",
        },
        "listing": {
            "title": "Portrait Session - 1 hour",
            "description": "Natural light portraits. 10 edited photos included.",
            "price": 220.0,
            "tags": "photo,creative,portrait,camera",
        },
    },
]


def seed_admin(store: RowStore) -> None:
    """
    Insert the default admin user if it does not already exist.
    Safe to call on every startup – it is a no-op when the user is present.
    """
    users = UserRepository(store)
    if users.get_by_email(settings.ADMIN_EMAIL):
        logger.info("Seeder: admin '%s' already exists – skipping.", settings.ADMIN_EMAIL)
        return
    users.create(
        name=ADMIN_NAME,
        email=settings.ADMIN_EMAIL,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
    )
    logger.info("Seeder: created default admin (email: %s).", settings.ADMIN_EMAIL)


def seed_demo_catalogue(store: RowStore) -> None:
    """Insert the demo providers and their listings unless already present."""
    providers = ProviderRepository(store)
    listings = ListingRepository(store)
    existing = {p.name for p in providers.list_all()}
    for demo in DEMO_PROVIDERS:
        if demo["name"] in existing:
            logger.info("Seeder: provider '%s' already exists – skipping.", demo["name"])
            continue
        with store.transaction():
            provider = providers.create(demo["name"], **demo["profile"])
            listings.create(provider_id=provider.id, **demo["listing"])
        logger.info("Seeder: created demo provider '%s'.", demo["name"])


def seed_all(store: RowStore) -> None:
    seed_admin(store)
    seed_demo_catalogue(store)
