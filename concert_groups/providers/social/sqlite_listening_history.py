"""SQLite-backed listening history.

Stores the top-artist lists pulled from the streaming provider by the
surrounding application: an ``artists`` table keyed by streaming id and a
``user_artists`` follow table.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from concert_groups.interfaces.listening_history_provider import IListeningHistoryProvider
from concert_groups.providers.sqlite import NOW_SQL, open_connection, prepare_path

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLES_SQL = [
    f"""\
CREATE TABLE IF NOT EXISTS artists (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT ({NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS user_artists (
    user_id     TEXT NOT NULL,
    artist_id   TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT ({NOW_SQL}),
    PRIMARY KEY (user_id, artist_id)
);
""",
]

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_user_artists_artist ON user_artists(artist_id);"
)


class SQLiteListeningHistoryProvider(IListeningHistoryProvider):
    """Artist follows stored locally after a streaming-provider sync."""

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout

    async def initialize(self) -> None:
        prepare_path(self._db_path)
        async with open_connection(self._db_path, self._timeout) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            await db.execute(_CREATE_INDEX_SQL)
            await db.commit()

    async def record_artist(self, artist_id: str, name: str) -> None:
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(
                "INSERT INTO artists (id, name) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name",
                (artist_id, name),
            )
            await db.commit()

    async def record_follow(
        self,
        user_id: str,
        artist_id: str,
        artist_name: str | None = None,
    ) -> None:
        """Record that *user_id* follows *artist_id*; repeated calls are no-ops."""
        if artist_name is not None:
            await self.record_artist(artist_id, artist_name)
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(
                "INSERT INTO user_artists (user_id, artist_id) VALUES (?, ?) "
                "ON CONFLICT(user_id, artist_id) DO NOTHING",
                (user_id, artist_id),
            )
            await db.commit()

    async def artist_follows(self) -> dict[str, set[str]]:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                "SELECT user_id, artist_id FROM user_artists ORDER BY user_id, artist_id"
            )
            rows = await cursor.fetchall()

        follows: dict[str, set[str]] = {}
        for row in rows:
            follows.setdefault(row["user_id"], set()).add(row["artist_id"])
        logger.debug("artist_follows_loaded", users=len(follows), follows=len(rows))
        return follows

    async def artist_name(self, artist_id: str) -> str | None:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute("SELECT name FROM artists WHERE id = ?", (artist_id,))
            row = await cursor.fetchone()
        return row["name"] if row else None

    def get_provider_name(self) -> str:
        return "sqlite_listening_history"
