"""
Row store contract shared by the persistent and in-memory backends.

Records are flat dictionaries of scalar column values keyed by column name.
Every record kind has a string ``id`` primary key; kinds with a ``version``
column get optimistic concurrency on ``update``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional
import threading
import uuid


class Kind(str, Enum):
    """Record kinds (one table each in the persistent backend)."""

    USERS = "users"
    PROVIDERS = "providers"
    LISTINGS = "listings"
    INTERACTIONS = "interactions"
    ORDERS = "orders"
    CONVERSATIONS = "conversations"
    CONVERSATION_MEMBERS = "conversation_members"
    MESSAGES = "messages"
    FAVORITES = "favorites"
    REVIEWS = "reviews"


VERSIONED_KINDS = frozenset({Kind.LISTINGS, Kind.ORDERS})

Record = dict[str, Any]


def new_id() -> str:
    """Return a short random identifier."""
    return uuid.uuid4().hex[:12]


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(tz=timezone.utc).isoformat()


class RowStore(ABC):
    """Minimal get/list/insert/update/delete capability over record kinds."""

    backend: str = "abstract"

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict
        self._failures = threading.local()

    @property
    def degraded(self) -> bool:
        return not self.strict

    def record_failure(self, exc: Exception) -> None:
        """Remember a failure a degraded store answered with a default value."""
        self._failures.last = exc

    def take_failure(self) -> Optional[Exception]:
        """Return and clear the last failure swallowed on the calling thread."""
        exc = getattr(self._failures, "last", None)
        self._failures.last = None
        return exc

    @abstractmethod
    def get(self, kind: Kind, record_id: str) -> Optional[Record]:
        """Return one record by id, or None."""

    @abstractmethod
    def list(
        self,
        kind: Kind,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        """Return records whose columns equal every value in *filters*."""

    @abstractmethod
    def insert(self, kind: Kind, record: Mapping[str, Any]) -> Record:
        """Insert a record and return it as stored."""

    @abstractmethod
    def update(
        self,
        kind: Kind,
        record_id: str,
        patch: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Record]:
        """
        Apply *patch* to a record and return the updated record, or None if
        it does not exist. Raises ConflictError when *expected_version* is
        given and does not match the stored version.
        """

    @abstractmethod
    def delete(self, kind: Kind, record_id: str) -> bool:
        """Delete one record; return True when a row was removed."""

    @abstractmethod
    def delete_where(self, kind: Kind, filters: Mapping[str, Any]) -> int:
        """Delete every record matching *filters*; return the count removed."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group the operations issued inside the block into one atomic unit."""
