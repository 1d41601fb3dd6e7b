"""
Domain models for customer-facing extras: provider reviews and favorites.
"""
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class Review:
    id: str
    provider_id: str
    rating: int
    at: str
    order_id: Optional[str] = None
    author: str = "Customer"
    text: str = ""

    @classmethod
    def from_row(cls, row) -> "Review":
        return cls(
            id=row["id"],
            provider_id=row["provider_id"],
            order_id=row.get("order_id"),
            author=row.get("author") or "Customer",
            rating=int(row["rating"]),
            text=row.get("text") or "",
            at=row["at"],
        )

    def to_row(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Favorite:
    id: str
    user_id: str
    provider_id: str
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Favorite":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            provider_id=row["provider_id"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict:
        return asdict(self)
