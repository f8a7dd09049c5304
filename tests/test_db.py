"""Tests for the SQLite key-value store."""

import pytest

from murim_quest.db import STORE_KEYS, Database
from murim_quest.errors import StorageFailure


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()


class TestDatabaseCreation:
    def test_creates_db_file(self, tmp_path):
        db_path = tmp_path / "sub" / "test.db"
        database = Database(db_path=db_path)
        assert db_path.exists()
        database.close()

    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "a" / "b" / "test.db"
        database = Database(db_path=db_path)
        assert db_path.parent.exists()
        database.close()

    def test_store_table_exists(self, db):
        cursor = db.conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = [row["name"] for row in cursor.fetchall()]
        assert "store" in tables

    def test_wal_mode_enabled(self, db):
        result = db.conn.execute("PRAGMA journal_mode").fetchone()
        assert result[0] == "wal"


class TestStore:
    def test_missing_key_returns_none(self, db):
        assert db.load("user") is None

    def test_save_and_load_dict(self, db):
        db.save("user", {"level": 3, "xp": 250})
        assert db.load("user") == {"level": 3, "xp": 250}

    def test_save_and_load_list(self, db):
        db.save("tasks", [{"id": "a"}, {"id": "b"}])
        assert db.load("tasks") == [{"id": "a"}, {"id": "b"}]

    def test_save_none(self, db):
        db.save("active_potion", None)
        assert db.load("active_potion") is None
        assert "active_potion" in db.keys()

    def test_upsert_overwrites(self, db):
        db.save("active_pet", "p1")
        db.save("active_pet", "p2")
        assert db.load("active_pet") == "p2"
        assert db.keys() == ["active_pet"]

    def test_keys_sorted(self, db):
        db.save("tasks", [])
        db.save("items", [])
        assert db.keys() == ["items", "tasks"]

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "test.db"
        first = Database(db_path=path)
        first.save("user", {"gold": 10})
        first.close()
        second = Database(db_path=path)
        assert second.load("user") == {"gold": 10}
        second.close()


class TestStorageFailures:
    def test_unencodable_value(self, db):
        with pytest.raises(StorageFailure):
            db.save("user", {"bad": object()})

    def test_corrupt_value(self, db):
        db.conn.execute("INSERT INTO store (key, value) VALUES ('user', '{not json')")
        db.conn.commit()
        with pytest.raises(StorageFailure):
            db.load("user")

    def test_closed_connection(self, tmp_path):
        database = Database(db_path=tmp_path / "test.db")
        database.close()
        with pytest.raises(StorageFailure):
            database.load("user")


class TestStoreKeys:
    def test_known_collections(self):
        for key in ("user", "tasks", "materials", "items", "pets", "active_pet", "active_potion"):
            assert key in STORE_KEYS
