"""
Repository layer for User persistence.
All access to the `users` record kind goes through here.
"""
from typing import Optional
import logging

from trade_exchange.db.store import Kind, RowStore, new_id, now_iso
from trade_exchange.models.user import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Data access layer for user records."""

    def __init__(self, store: RowStore) -> None:
        """Store the row store used for record access."""
        logger.trace("Initializing UserRepository")
        self._store = store

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Return a user by id or None if missing."""
        logger.trace("Fetching user by id=%s", user_id)
        row = self._store.get(Kind.USERS, user_id)
        return User.from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Return a user by email, compared case-insensitively."""
        logger.trace("Fetching user by email=%s", email)
        rows = self._store.list(Kind.USERS, {"email": email.strip().lower()}, limit=1)
        return User.from_row(rows[0]) if rows else None

    def list_all(self) -> list[User]:
        """Return every user, oldest first."""
        logger.trace("Listing users")
        rows = self._store.list(Kind.USERS, order_by="created_at")
        return [User.from_row(r) for r in rows]

    def list_by_provider(self, provider_id: str) -> list[User]:
        """Return the users linked to a provider."""
        logger.trace("Listing users for provider_id=%s", provider_id)
        rows = self._store.list(Kind.USERS, {"provider_id": provider_id})
        return [User.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
        provider_id: Optional[str] = None,
    ) -> User:
        """Insert a new user record and return the created user."""
        user = User(
            id=new_id(),
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role,
            provider_id=provider_id,
            created_at=now_iso(),
        )
        logger.info("Creating user record id=%s role=%s", user.id, role.value)
        row = self._store.insert(Kind.USERS, user.to_row())
        return User.from_row(row)

    def update(self, user_id: str, **fields) -> Optional[User]:
        """Update user fields and return the updated user."""
        if "role" in fields and isinstance(fields["role"], UserRole):
            fields["role"] = fields["role"].value
        logger.info("Updating user record id=%s fields=%s", user_id, sorted(fields))
        row = self._store.update(Kind.USERS, user_id, fields)
        return User.from_row(row) if row else None

    def unlink_provider(self, provider_id: str) -> int:
        """Clear provider_id on every user linked to *provider_id*."""
        users = self.list_by_provider(provider_id)
        for user in users:
            self._store.update(Kind.USERS, user.id, {"provider_id": None})
        logger.info("Unlinked %s user(s) from provider id=%s", len(users), provider_id)
        return len(users)

    def delete(self, user_id: str) -> bool:
        """Remove the user record."""
        logger.info("Deleting user id=%s", user_id)
        return self._store.delete(Kind.USERS, user_id)
