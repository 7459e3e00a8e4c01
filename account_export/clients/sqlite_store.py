"""SQLite-backed key-value storage for local application values."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional


class SQLiteKeyValueStore:
    """Flat string key-value table.

    Multi-key writes and deletes run inside a single transaction, so readers
    never observe a partially applied update.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS key_values (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get_value(self, key: str) -> Optional[str]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT value FROM key_values WHERE key = ?",
                (key,),
            ).fetchone()
        if not row:
            return None
        return row["value"]

    def get_values(self, keys: Iterable[str]) -> Dict[str, str]:
        """Read several keys in one statement; absent keys are omitted."""
        keys = list(keys)
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        with closing(self._connect()) as conn:
            rows = conn.execute(
                f"SELECT key, value FROM key_values WHERE key IN ({placeholders})",
                keys,
            ).fetchall()
        return {row["key"]: row["value"] for row in rows}

    def put_values(self, values: Mapping[str, str]) -> None:
        if not values:
            return
        with closing(self._connect()) as conn, conn:
            conn.executemany(
                """
                INSERT INTO key_values (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                list(values.items()),
            )

    def delete_keys(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        with closing(self._connect()) as conn, conn:
            conn.executemany(
                "DELETE FROM key_values WHERE key = ?",
                [(key,) for key in keys],
            )


__all__ = ["SQLiteKeyValueStore"]
