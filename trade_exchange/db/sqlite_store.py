"""
Persistent row store backed by SQLite.
All generic SQL for the application tables lives here.
"""
from __future__ import annotations

import functools
import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional

from trade_exchange.core.exceptions import ConflictError, StorageUnavailableError
from trade_exchange.core.logging_config import log_db_timing
from trade_exchange.db.database import ensure_db_directory, get_connection, get_db
from trade_exchange.db.schema import column_names, create_tables
from trade_exchange.db.store import VERSIONED_KINDS, Kind, Record, RowStore

logger = logging.getLogger(__name__)


def _guarded(default: Callable[..., Any]):
    """
    Convert sqlite errors raised by a store operation according to the
    store's mode: strict stores raise StorageUnavailableError, degraded
    stores log the failure and return ``default(*args)``. Constraint
    violations are conflicts in either mode.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self: "SQLiteRowStore", *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except sqlite3.IntegrityError as exc:
                logger.warning("Row store %s violated a constraint: %s", func.__name__, exc)
                raise ConflictError("Record already exists") from exc
            except sqlite3.Error as exc:
                self._handle_error(func.__name__, exc)
                return default(*args, **kwargs)
        return wrapper
    return decorator


class SQLiteRowStore(RowStore):
    """Row store over a SQLite database file."""

    backend = "sqlite"

    def __init__(self, db_path: str, strict: bool = True) -> None:
        super().__init__(strict=strict)
        self._db_path = db_path
        self._local = threading.local()
        self._columns: dict[Kind, frozenset[str]] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create tables and apply migrations. Raises sqlite3.Error on failure."""
        logger.info("Initializing SQLite row store at %s", self._db_path)
        ensure_db_directory(self._db_path)
        with get_db(self._db_path) as conn:
            create_tables(conn)
            self._columns = {
                kind: frozenset(column_names(conn, kind.value)) for kind in Kind
            }

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "conn", None) is not None:
            # Nested blocks join the enclosing transaction
            yield
            return
        conn = None
        try:
            conn = get_connection(self._db_path)
            # Take the write lock up front so check-then-insert blocks serialize
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            if conn is not None:
                conn.close()
            self._handle_error("transaction", exc)
            yield
            return

        self._local.conn = conn
        try:
            yield
            conn.commit()
            logger.trace("Row store transaction committed")
        except Exception:
            logger.error("Row store transaction rolled back", exc_info=True)
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @log_db_timing
    @_guarded(lambda *args, **kwargs: None)
    def get(self, kind: Kind, record_id: str) -> Optional[Record]:
        with self._connection() as conn:
            return self._fetch(conn, kind, record_id)

    @log_db_timing
    @_guarded(lambda *args, **kwargs: [])
    def list(
        self,
        kind: Kind,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        where, params = self._where(kind, filters)
        sql = f"SELECT * FROM {kind.value}{where}"
        if order_by:
            self._check_columns(kind, [order_by])
            # Ties keep insertion order
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}, rowid ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [dict(r) for r in rows]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_db_timing
    @_guarded(lambda kind, record, **kwargs: dict(record))
    def insert(self, kind: Kind, record: Mapping[str, Any]) -> Record:
        values = dict(record)
        if kind in VERSIONED_KINDS:
            values.setdefault("version", 1)
        self._check_columns(kind, values)
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._connection() as conn:
            conn.execute(
                f"INSERT INTO {kind.value} ({columns}) VALUES ({placeholders})",
                list(values.values()),
            )
            return self._fetch(conn, kind, values["id"]) or values

    @log_db_timing
    @_guarded(lambda *args, **kwargs: None)
    def update(
        self,
        kind: Kind,
        record_id: str,
        patch: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Record]:
        fields = {k: v for k, v in patch.items() if k not in ("id", "version")}
        self._check_columns(kind, fields)
        versioned = kind in VERSIONED_KINDS

        with self._connection() as conn:
            current = self._fetch(conn, kind, record_id)
            if current is None:
                return None
            if versioned and expected_version is not None and current["version"] != expected_version:
                raise ConflictError(
                    f"{kind.value[:-1].capitalize()} was modified by another request"
                )
            if not fields and not versioned:
                return current

            assignments = [f"{col} = ?" for col in fields]
            params: list[Any] = list(fields.values())
            if versioned:
                assignments.append("version = version + 1")
            sql = f"UPDATE {kind.value} SET {', '.join(assignments)} WHERE id = ?"
            params.append(record_id)
            if versioned and expected_version is not None:
                sql += " AND version = ?"
                params.append(expected_version)

            cursor = conn.execute(sql, params)
            if cursor.rowcount == 0:
                raise ConflictError(
                    f"{kind.value[:-1].capitalize()} was modified by another request"
                )
            return self._fetch(conn, kind, record_id)

    @log_db_timing
    @_guarded(lambda *args, **kwargs: False)
    def delete(self, kind: Kind, record_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(f"DELETE FROM {kind.value} WHERE id = ?", (record_id,))
        return cursor.rowcount > 0

    @log_db_timing
    @_guarded(lambda *args, **kwargs: 0)
    def delete_where(self, kind: Kind, filters: Mapping[str, Any]) -> int:
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        where, params = self._where(kind, filters)
        with self._connection() as conn:
            cursor = conn.execute(f"DELETE FROM {kind.value}{where}", params)
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            yield conn
            return
        with get_db(self._db_path) as conn:
            yield conn

    @staticmethod
    def _fetch(conn: sqlite3.Connection, kind: Kind, record_id: str) -> Optional[Record]:
        row = conn.execute(
            f"SELECT * FROM {kind.value} WHERE id = ?", (record_id,)
        ).fetchone()
        return dict(row) if row else None

    def _where(
        self, kind: Kind, filters: Optional[Mapping[str, Any]]
    ) -> tuple[str, list[Any]]:
        if not filters:
            return "", []
        self._check_columns(kind, filters)
        clauses = []
        params: list[Any] = []
        for column, value in filters.items():
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(value)
        return " WHERE " + " AND ".join(clauses), params

    def _check_columns(self, kind: Kind, columns: Iterable[str]) -> None:
        known = self._columns.get(kind)
        if known is None:
            raise sqlite3.OperationalError(f"table {kind.value} is not initialized")
        unknown = [c for c in columns if c not in known]
        if unknown:
            raise ValueError(f"Unknown column(s) for {kind.value}: {', '.join(unknown)}")

    def _handle_error(self, operation: str, exc: sqlite3.Error) -> None:
        if self.strict:
            logger.error("Row store %s failed: %s", operation, exc)
            raise StorageUnavailableError() from exc
        logger.error("Row store %s failed, continuing in degraded mode: %s", operation, exc)
        self.record_failure(exc)
