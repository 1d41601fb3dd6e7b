"""
In-memory row store.

State is process-local and lost on restart: use it for demos, tests, and as
the degraded-mode fallback when the database cannot be opened.
"""
from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from trade_exchange.core.exceptions import ConflictError
from trade_exchange.core.logging_config import log_db_timing
from trade_exchange.db.store import VERSIONED_KINDS, Kind, Record, RowStore

logger = logging.getLogger(__name__)


def _matches(record: Record, filters: Optional[Mapping[str, Any]]) -> bool:
    if not filters:
        return True
    return all(record.get(column) == value for column, value in filters.items())


class MemoryRowStore(RowStore):
    """Row store keeping one insertion-ordered dict per record kind."""

    backend = "memory"

    def __init__(self, strict: bool = True) -> None:
        super().__init__(strict=strict)
        self._tables: dict[Kind, dict[str, Record]] = {kind: {} for kind in Kind}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = copy.deepcopy(self._tables)
            try:
                yield
            except Exception:
                logger.error("Row store transaction rolled back", exc_info=True)
                self._tables = snapshot
                raise

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @log_db_timing
    def get(self, kind: Kind, record_id: str) -> Optional[Record]:
        with self._lock:
            record = self._tables[kind].get(record_id)
            return dict(record) if record is not None else None

    @log_db_timing
    def list(
        self,
        kind: Kind,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        with self._lock:
            rows = [dict(r) for r in self._tables[kind].values() if _matches(r, filters)]
        if order_by:
            rows.sort(
                key=lambda r: (r.get(order_by) is None, r.get(order_by)),
                reverse=descending,
            )
        if limit is not None:
            rows = rows[:limit]
        return rows

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_db_timing
    def insert(self, kind: Kind, record: Mapping[str, Any]) -> Record:
        values = dict(record)
        if kind in VERSIONED_KINDS:
            values.setdefault("version", 1)
        with self._lock:
            self._tables[kind][values["id"]] = values
        return dict(values)

    @log_db_timing
    def update(
        self,
        kind: Kind,
        record_id: str,
        patch: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Record]:
        with self._lock:
            current = self._tables[kind].get(record_id)
            if current is None:
                return None
            versioned = kind in VERSIONED_KINDS
            if versioned and expected_version is not None and current.get("version") != expected_version:
                raise ConflictError(
                    f"{kind.value[:-1].capitalize()} was modified by another request"
                )
            current.update({k: v for k, v in patch.items() if k not in ("id", "version")})
            if versioned:
                current["version"] = int(current.get("version") or 1) + 1
            return dict(current)

    @log_db_timing
    def delete(self, kind: Kind, record_id: str) -> bool:
        with self._lock:
            return self._tables[kind].pop(record_id, None) is not None

    @log_db_timing
    def delete_where(self, kind: Kind, filters: Mapping[str, Any]) -> int:
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        with self._lock:
            doomed = [rid for rid, r in self._tables[kind].items() if _matches(r, filters)]
            for rid in doomed:
                del self._tables[kind][rid]
        return len(doomed)
