import sqlite3

import pytest

from trade_exchange.core.config import Settings
from trade_exchange.core.exceptions import ConflictError, StorageUnavailableError
from trade_exchange.db.factory import build_store
from trade_exchange.db.memory_store import MemoryRowStore
from trade_exchange.db.sqlite_store import SQLiteRowStore
from trade_exchange.db.store import Kind, new_id, now_iso


def listing_row(provider_id="p1", title="Lawn Care", price=85.0):
    now = now_iso()
    return {
        "id": new_id(),
        "title": title,
        "description": "",
        "price": price,
        "provider_id": provider_id,
        "status": "LISTED",
        "tags": "home,outdoor",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture(params=["memory", "sqlite"])
def row_store(request, tmp_path):
    if request.param == "memory":
        return MemoryRowStore()
    store = SQLiteRowStore(str(tmp_path / "store.db"))
    store.initialize()
    return store


class TestRowStoreContract:
    def test_insert_then_get(self, row_store):
        row = row_store.insert(Kind.LISTINGS, listing_row())

        fetched = row_store.get(Kind.LISTINGS, row["id"])

        assert fetched["title"] == "Lawn Care"
        assert fetched["version"] == 1
        assert row_store.get(Kind.LISTINGS, "missing") is None

    def test_list_filters_orders_and_limits(self, row_store):
        row_store.insert(Kind.LISTINGS, listing_row("p1", "B", 20))
        row_store.insert(Kind.LISTINGS, listing_row("p1", "A", 10))
        row_store.insert(Kind.LISTINGS, listing_row("p2", "C", 30))

        rows = row_store.list(Kind.LISTINGS, {"provider_id": "p1"}, order_by="price")
        top = row_store.list(Kind.LISTINGS, order_by="price", descending=True, limit=1)

        assert [r["title"] for r in rows] == ["A", "B"]
        assert [r["title"] for r in top] == ["C"]

    def test_update_bumps_version(self, row_store):
        row = row_store.insert(Kind.LISTINGS, listing_row())

        updated = row_store.update(Kind.LISTINGS, row["id"], {"price": 99.0}, expected_version=1)

        assert updated["price"] == 99.0
        assert updated["version"] == 2

    def test_stale_version_is_rejected(self, row_store):
        row = row_store.insert(Kind.LISTINGS, listing_row())
        row_store.update(Kind.LISTINGS, row["id"], {"price": 90.0}, expected_version=1)

        with pytest.raises(ConflictError):
            row_store.update(Kind.LISTINGS, row["id"], {"price": 1.0}, expected_version=1)
        assert row_store.get(Kind.LISTINGS, row["id"])["price"] == 90.0

    def test_update_missing_returns_none(self, row_store):
        assert row_store.update(Kind.LISTINGS, "missing", {"price": 1.0}) is None

    def test_delete_and_delete_where(self, row_store):
        a = row_store.insert(Kind.LISTINGS, listing_row("p1"))
        row_store.insert(Kind.LISTINGS, listing_row("p2"))
        row_store.insert(Kind.LISTINGS, listing_row("p2"))

        assert row_store.delete(Kind.LISTINGS, a["id"]) is True
        assert row_store.delete(Kind.LISTINGS, a["id"]) is False
        assert row_store.delete_where(Kind.LISTINGS, {"provider_id": "p2"}) == 2
        assert row_store.list(Kind.LISTINGS) == []

    def test_transaction_rolls_back_on_error(self, row_store):
        kept = row_store.insert(Kind.LISTINGS, listing_row("p1"))

        with pytest.raises(RuntimeError):
            with row_store.transaction():
                row_store.insert(Kind.LISTINGS, listing_row("p2"))
                row_store.delete(Kind.LISTINGS, kept["id"])
                raise RuntimeError("boom")

        rows = row_store.list(Kind.LISTINGS)
        assert [r["id"] for r in rows] == [kept["id"]]

    def test_transaction_commits(self, row_store):
        with row_store.transaction():
            row = row_store.insert(Kind.LISTINGS, listing_row())
            row_store.update(Kind.LISTINGS, row["id"], {"title": "Edited"})

        assert row_store.get(Kind.LISTINGS, row["id"])["title"] == "Edited"


class TestFailureModes:
    def test_strict_store_raises(self, tmp_path):
        store = SQLiteRowStore(str(tmp_path / "empty.db"), strict=True)

        with pytest.raises(StorageUnavailableError):
            store.get(Kind.USERS, "u1")

    def test_degraded_store_swallows_statement_failures(self, tmp_path):
        store = SQLiteRowStore(str(tmp_path / "empty.db"), strict=False)

        assert store.get(Kind.USERS, "u1") is None
        assert store.list(Kind.USERS) == []
        assert store.delete(Kind.USERS, "u1") is False
        assert store.insert(Kind.USERS, {"id": "u1", "name": "x"}) == {"id": "u1", "name": "x"}

    def test_degraded_store_still_raises_conflicts(self, tmp_path):
        store = SQLiteRowStore(str(tmp_path / "store.db"), strict=False)
        store.initialize()
        row = store.insert(Kind.LISTINGS, listing_row())

        with pytest.raises(ConflictError):
            store.update(Kind.LISTINGS, row["id"], {"price": 1.0}, expected_version=7)

    def test_degraded_store_remembers_swallowed_failure(self, tmp_path):
        store = SQLiteRowStore(str(tmp_path / "empty.db"), strict=False)

        assert store.get(Kind.USERS, "u1") is None

        assert isinstance(store.take_failure(), sqlite3.Error)
        assert store.take_failure() is None

    def test_clean_miss_is_not_a_failure(self, tmp_path):
        store = SQLiteRowStore(str(tmp_path / "store.db"), strict=False)
        store.initialize()

        assert store.get(Kind.USERS, "missing") is None
        assert store.take_failure() is None

    @pytest.mark.parametrize("strict", [True, False])
    def test_unique_violation_is_conflict(self, tmp_path, strict):
        store = SQLiteRowStore(str(tmp_path / "store.db"), strict=strict)
        store.initialize()
        favorite = {"user_id": "u1", "provider_id": "p1", "created_at": now_iso()}
        store.insert(Kind.FAVORITES, {"id": new_id(), **favorite})

        with pytest.raises(ConflictError):
            store.insert(Kind.FAVORITES, {"id": new_id(), **favorite})
        assert len(store.list(Kind.FAVORITES)) == 1


class TestBuildStore:
    def test_memory_backend(self):
        store = build_store(Settings(STORAGE_BACKEND="memory"))

        assert store.backend == "memory"

    def test_sqlite_backend_applies_schema(self, tmp_path):
        db_file = tmp_path / "data" / "app.db"

        store = build_store(Settings(STORAGE_BACKEND="sqlite", DATABASE_URL=f"sqlite:///{db_file}"))

        assert store.backend == "sqlite"
        with sqlite3.connect(db_file) as conn:
            columns = {r[1] for r in conn.execute("PRAGMA table_info(orders)")}
        assert {"updates", "last_message", "version"} <= columns

    def test_unopenable_database_fails_in_strict_mode(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        config = Settings(
            STORAGE_BACKEND="sqlite",
            STORAGE_MODE="strict",
            DATABASE_URL=f"sqlite:///{blocker}/app.db",
        )

        with pytest.raises(StorageUnavailableError):
            build_store(config)

    def test_unopenable_database_falls_back_in_degraded_mode(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        config = Settings(
            STORAGE_BACKEND="sqlite",
            STORAGE_MODE="degraded",
            DATABASE_URL=f"sqlite:///{blocker}/app.db",
        )

        store = build_store(config)

        assert store.backend == "memory"
        assert store.degraded
