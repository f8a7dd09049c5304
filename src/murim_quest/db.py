"""SQLite key-value store for murim-quest state collections."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from murim_quest.errors import StorageFailure

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".murim-quest" / "data.db"

STORE_KEYS: tuple[str, ...] = (
    "user",
    "tasks",
    "materials",
    "items",
    "pets",
    "active_pet",
    "active_potion",
    "hobbies",
    "mains",
    "essays",
    "moods",
    "chat_history",
    "stories",
)


class Database:
    """SQLite database manager with WAL mode. Values are JSON documents."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)
        self.conn.commit()

    def load(self, key: str) -> Any | None:
        """Return the decoded value stored under key, or None."""
        try:
            row = self.conn.execute(
                "SELECT value FROM store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageFailure(f"Could not read {key}: {exc}") from exc
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as exc:
            raise StorageFailure(f"Corrupt value for {key}: {exc}") from exc

    def save(self, key: str, value: Any) -> None:
        """Store value under key (upsert)."""
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageFailure(f"Could not encode {key}: {exc}") from exc
        try:
            self.conn.execute(
                "INSERT INTO store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, encoded),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageFailure(f"Could not write {key}: {exc}") from exc

    def keys(self) -> list[str]:
        rows = self.conn.execute("SELECT key FROM store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
