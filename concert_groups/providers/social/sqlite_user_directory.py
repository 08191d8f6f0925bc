"""SQLite-backed user directory.

Users are synchronized from the external auth provider by the surrounding
application; this table only keeps what the engine reads: identity and a
last-known location.  Coordinates are nullable, since a user who never shared
a location is still a valid user, just one the proximity filter skips.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import structlog

from concert_groups.interfaces.user_directory import IUserDirectory
from concert_groups.models.social import Coordinates
from concert_groups.providers.sqlite import NOW_SQL, open_connection, prepare_path

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = f"""\
CREATE TABLE IF NOT EXISTS users (
    id            TEXT PRIMARY KEY,
    display_name  TEXT,
    city          TEXT,
    state         TEXT,
    country       TEXT DEFAULT 'US',
    latitude      REAL,
    longitude     REAL,
    created_at    TEXT NOT NULL DEFAULT ({NOW_SQL}),
    updated_at    TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_UPSERT_USER_SQL = f"""\
INSERT INTO users (id, display_name, city, state, country, latitude, longitude)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    display_name = COALESCE(excluded.display_name, users.display_name),
    city         = COALESCE(excluded.city, users.city),
    state        = COALESCE(excluded.state, users.state),
    country      = COALESCE(excluded.country, users.country),
    latitude     = excluded.latitude,
    longitude    = excluded.longitude,
    updated_at   = {NOW_SQL};
"""


class SQLiteUserDirectory(IUserDirectory):
    """User identity and location lookups over a local SQLite table."""

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout

    async def initialize(self) -> None:
        prepare_path(self._db_path)
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.commit()

    async def upsert_user(
        self,
        user_id: str,
        display_name: str | None = None,
        location: Coordinates | None = None,
        city: str | None = None,
        state: str | None = None,
        country: str | None = None,
    ) -> None:
        """Create or update a user.

        The location is always overwritten, so passing ``location=None``
        clears a previously stored position.
        """
        latitude = location.latitude if location else None
        longitude = location.longitude if location else None
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(
                _UPSERT_USER_SQL,
                (user_id, display_name, city, state, country, latitude, longitude),
            )
            await db.commit()

    async def delete_user(self, user_id: str) -> bool:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute("DELETE FROM users WHERE id = ?", (user_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("user_deleted", user_id=user_id)
        return deleted

    async def exists(self, user_id: str) -> bool:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute("SELECT 1 FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
        return row is not None

    async def location_of(self, user_id: str) -> Coordinates | None:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                "SELECT latitude, longitude FROM users WHERE id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()
        if row is None or row["latitude"] is None or row["longitude"] is None:
            return None
        return Coordinates(latitude=row["latitude"], longitude=row["longitude"])

    async def locations_of(self, user_ids: Iterable[str]) -> dict[str, Coordinates]:
        """Single-query batch lookup; users without coordinates are omitted."""
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                "SELECT id, latitude, longitude FROM users "
                "WHERE id IN (SELECT value FROM json_each(?)) "
                "AND latitude IS NOT NULL AND longitude IS NOT NULL",
                (json.dumps(ids),),
            )
            rows = await cursor.fetchall()
        return {
            row["id"]: Coordinates(latitude=row["latitude"], longitude=row["longitude"])
            for row in rows
        }

    async def existing(self, user_ids: Iterable[str]) -> set[str]:
        ids = sorted(set(user_ids))
        if not ids:
            return set()
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                "SELECT id FROM users WHERE id IN (SELECT value FROM json_each(?))",
                (json.dumps(ids),),
            )
            rows = await cursor.fetchall()
        return {row["id"] for row in rows}

    def get_provider_name(self) -> str:
        return "sqlite_user_directory"
