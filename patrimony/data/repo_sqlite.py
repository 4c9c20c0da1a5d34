"""SQLite-backed repository implementation."""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from .repo_base import BaseRepository, RepositoryError

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class SQLiteRepository(BaseRepository):
    """Repository backed by a SQLite database file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise RepositoryError(str(exc)) from exc
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    # ------------------------------------------------------------------
    def close(self) -> None:
        if getattr(self, "_conn", None) is not None:
            self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    def _apply_migrations(self) -> None:
        conn = self._conn
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (version TEXT PRIMARY KEY);"
        )
        applied = {
            row["version"]
            for row in conn.execute("SELECT version FROM schema_migrations;")
        }
        for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
            version = path.stem.split("_")[0]
            if version in applied:
                continue
            conn.executescript(path.read_text(encoding="utf-8"))
            conn.execute(
                "INSERT INTO schema_migrations(version) VALUES (?);", (version,)
            )
        conn.commit()

    def applied_migrations(self) -> list[str]:
        return [row["version"] for row in self._fetchall("SELECT version FROM schema_migrations ORDER BY version;")]

    # ------------------------------------------------------------------
    def _execute(self, query: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            cur = self._conn.execute(query, params)
            self._conn.commit()
            return cur
        except sqlite3.DatabaseError as exc:
            raise RepositoryError(str(exc)) from exc

    def _fetchall(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        cur = self._execute(query, params)
        return [dict(row) for row in cur.fetchall()]

    # --- key-value -----------------------------------------------------
    def get(self, key: str) -> str | None:
        row = self._execute("SELECT value FROM kv_store WHERE key = ?;", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self._execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
            "updated_at = CURRENT_TIMESTAMP;",
            (key, str(value)),
        )

    def remove(self, key: str) -> None:
        self._execute("DELETE FROM kv_store WHERE key = ?;", (key,))

    def keys(self) -> list[str]:
        return [row["key"] for row in self._fetchall("SELECT key FROM kv_store ORDER BY key;")]


__all__ = ["SQLiteRepository", "MIGRATIONS_DIR"]
