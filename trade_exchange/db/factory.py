"""Row store selection, done once at application startup."""

import logging
import sqlite3

from trade_exchange.core.config import Settings, settings
from trade_exchange.core.exceptions import StorageUnavailableError
from trade_exchange.db.database import db_path_from_url
from trade_exchange.db.memory_store import MemoryRowStore
from trade_exchange.db.sqlite_store import SQLiteRowStore
from trade_exchange.db.store import RowStore

logger = logging.getLogger(__name__)


def build_store(config: Settings = settings) -> RowStore:
    """
    Build the configured row store.

    In ``strict`` mode a database that cannot be opened aborts startup; in
    ``degraded`` mode the in-memory store is used instead.
    """
    strict = config.STORAGE_MODE == "strict"
    if config.STORAGE_BACKEND == "memory":
        logger.warning("Using in-memory row store: data is lost on restart")
        return MemoryRowStore(strict=strict)

    store = SQLiteRowStore(db_path_from_url(config.DATABASE_URL), strict=strict)
    try:
        store.initialize()
    except (sqlite3.Error, OSError) as exc:
        if strict:
            logger.error("Could not open the database: %s", exc)
            raise StorageUnavailableError() from exc
        logger.warning(
            "Database unavailable (%s); falling back to the in-memory row store", exc
        )
        return MemoryRowStore(strict=False)
    logger.info("Row store ready backend=sqlite mode=%s", config.STORAGE_MODE)
    return store
