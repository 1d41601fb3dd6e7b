"""
Domain model representing a Listing row from the store.
"""
from dataclasses import dataclass
from enum import Enum


class ListingStatus(str, Enum):
    DRAFT = "DRAFT"
    LISTED = "LISTED"


def normalize_tags(tags) -> str:
    """Return tags as a comma-joined string of unique, trimmed values."""
    if tags is None:
        return ""
    items = tags.split(",") if isinstance(tags, str) else list(tags)
    seen: list[str] = []
    for item in items:
        value = str(item).strip()
        if value and value not in seen:
            seen.append(value)
    return ",".join(seen)


@dataclass
class Listing:
    id: str
    title: str
    provider_id: str
    created_at: str
    updated_at: str
    description: str = ""
    price: float = 0.0
    status: ListingStatus = ListingStatus.LISTED
    tags: str = ""
    version: int = 1

    @property
    def tag_set(self) -> set[str]:
        return {t for t in self.tags.split(",") if t}

    @property
    def is_listed(self) -> bool:
        return self.status == ListingStatus.LISTED

    @classmethod
    def from_row(cls, row) -> "Listing":
        """Build a Listing from a store record."""
        return cls(
            id=row["id"],
            title=row["title"],
            description=row.get("description") or "",
            price=float(row.get("price") or 0.0),
            provider_id=row["provider_id"],
            status=ListingStatus(row.get("status") or "LISTED"),
            tags=row.get("tags") or "",
            created_at=row["created_at"],
            updated_at=row.get("updated_at") or row["created_at"],
            version=int(row.get("version") or 1),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "provider_id": self.provider_id,
            "status": self.status.value,
            "tags": self.tags,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }
