"""
Domain model (plain Python dataclass) representing a User row from the store.
This is the internal representation used across service and repository layers.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    USER = "USER"
    TRADER = "TRADER"
    ADMIN = "ADMIN"


@dataclass
class User:
    id: str
    name: str
    email: str
    password_hash: str
    role: UserRole
    created_at: str
    provider_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_trader(self) -> bool:
        return self.role == UserRole.TRADER

    @classmethod
    def from_row(cls, row) -> "User":
        """Build a User from a store record."""
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=UserRole(str(row["role"] or "USER").upper()),
            created_at=row["created_at"],
            provider_id=row.get("provider_id") or None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "provider_id": self.provider_id,
            "created_at": self.created_at,
        }
