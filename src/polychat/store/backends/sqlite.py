"""SQLite persistence backend.

Stores each document as one row keyed by its storage name.
Uses aiosqlite for async access.
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from .base import PersistenceBackend


class SQLiteBackend(PersistenceBackend):
    """SQLite-backed persistence.

    The schema version is mirrored into its own column so it can be
    inspected without decoding the payload.
    """

    def __init__(self, path: str | Path = "./polychat.db"):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._create_schema()

    async def _create_schema(self) -> None:
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                name TEXT PRIMARY KEY,
                version INTEGER NOT NULL,
                payload TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def load(self, name: str) -> dict[str, Any] | None:
        async with self._connection.execute(
            "SELECT payload FROM documents WHERE name = ?",
            (name,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return json.loads(row[0])

    async def save(self, name: str, document: dict[str, Any]) -> None:
        await self._connection.execute("""
            INSERT INTO documents (name, version, payload, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                version = excluded.version,
                payload = excluded.payload,
                updated_at = excluded.updated_at
        """, (
            name,
            int(document.get("version", 0)),
            json.dumps(document, ensure_ascii=False),
            datetime.now(UTC).isoformat(),
        ))
        await self._connection.commit()

    async def delete(self, name: str) -> None:
        await self._connection.execute("DELETE FROM documents WHERE name = ?", (name,))
        await self._connection.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
