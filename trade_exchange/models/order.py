"""
Domain model representing an Order (service request) row from the store.

An order tracks negotiation and fulfilment between a customer and a provider;
completed payments are recorded separately as Interactions.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    DISCUSS = "discuss"
    APPROVED = "approved"
    DENIED = "denied"
    REFUNDED = "refunded"
    EXCHANGE = "exchange"
    COMPLETE = "complete"


@dataclass
class Order:
    id: str
    customer_id: str
    provider_id: str
    created_at: str
    customer_name: str = "Customer"
    listing_id: Optional[str] = None
    service: str = "Service request"
    status: OrderStatus = OrderStatus.DISCUSS
    amount: float = 0.0
    conversation_id: Optional[str] = None
    details: str = ""
    req_date: str = ""
    req_time: str = ""
    ack: bool = False
    updates: list[dict] = field(default_factory=list)
    last_message: str = ""
    updated_at: Optional[str] = None
    version: int = 1

    @classmethod
    def from_row(cls, row) -> "Order":
        """Build an Order from a store record."""
        raw_updates = row.get("updates") or "[]"
        return cls(
            id=row["id"],
            customer_id=row["customer_id"],
            customer_name=row.get("customer_name") or "Customer",
            provider_id=row["provider_id"],
            listing_id=row.get("listing_id"),
            service=row.get("service") or "Service request",
            status=OrderStatus(row.get("status") or "discuss"),
            amount=float(row.get("amount") or 0.0),
            conversation_id=row.get("conversation_id"),
            details=row.get("details") or "",
            req_date=row.get("req_date") or "",
            req_time=row.get("req_time") or "",
            ack=bool(row.get("ack")),
            updates=json.loads(raw_updates) if isinstance(raw_updates, str) else list(raw_updates),
            last_message=row.get("last_message") or "",
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
            version=int(row.get("version") or 1),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "provider_id": self.provider_id,
            "listing_id": self.listing_id,
            "service": self.service,
            "status": self.status.value,
            "amount": self.amount,
            "conversation_id": self.conversation_id,
            "details": self.details,
            "req_date": self.req_date,
            "req_time": self.req_time,
            "ack": int(self.ack),
            "updates": json.dumps(self.updates),
            "last_message": self.last_message,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

    def add_customer_update(self, message: str, at: str) -> None:
        """Append a customer follow-up and mirror it as the latest message."""
        self.updates.append({"at": at, "from": "customer", "message": message})
        self.last_message = message
