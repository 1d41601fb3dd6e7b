"""
Domain model for an Interaction: the immutable record of a completed checkout.
"""
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class Interaction:
    id: str
    user_id: str
    provider_id: str
    at: str
    listing_id: Optional[str] = None
    note: str = ""
    amount: float = 0.0
    payment_ref: str = ""

    @classmethod
    def from_row(cls, row) -> "Interaction":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            provider_id=row["provider_id"],
            listing_id=row.get("listing_id"),
            at=row["at"],
            note=row.get("note") or "",
            amount=float(row.get("amount") or 0.0),
            payment_ref=row.get("payment_ref") or "",
        )

    def to_row(self) -> dict:
        return asdict(self)
