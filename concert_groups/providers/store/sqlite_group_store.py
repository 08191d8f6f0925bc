"""SQLite-backed concert group store.

Persists concert groups and their members using ``aiosqlite`` for async I/O.

Correctness rests on two schema properties:

* ``UNIQUE(artist_id, venue_id, concert_date)`` on ``concert_groups`` —
  two overlapping runs cannot both create a group for one business key.
  The loser gets :class:`GroupConflictError` and merges instead.
* ``PRIMARY KEY(group_id, user_id)`` on ``concert_group_members`` — adding
  an existing member is a silent no-op.

``create_group`` writes the group row and all member rows in a single
transaction; on any failure the transaction is rolled back so no partial
group is ever visible.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Iterable

import aiosqlite
import structlog

from concert_groups.interfaces.group_store import IGroupStore
from concert_groups.models.concert import Concert
from concert_groups.models.group import MIN_GROUP_SIZE, ConcertGroup
from concert_groups.providers.sqlite import NOW_SQL, open_connection, prepare_path
from concert_groups.utils.errors import GroupConflictError, GroupInvariantError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/concert_groups.db")

_CREATE_TABLES_SQL = [
    f"""\
CREATE TABLE IF NOT EXISTS concert_groups (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    artist_id       TEXT    NOT NULL,
    venue_id        TEXT    NOT NULL,
    venue_name      TEXT    NOT NULL DEFAULT '',
    venue_city      TEXT    NOT NULL DEFAULT '',
    venue_state     TEXT,
    venue_country   TEXT    NOT NULL DEFAULT 'US',
    venue_latitude  REAL,
    venue_longitude REAL,
    concert_date    TEXT    NOT NULL,
    concert_time    TEXT,
    ticket_url      TEXT,
    created_at      TEXT    NOT NULL DEFAULT ({NOW_SQL}),
    updated_at      TEXT    NOT NULL DEFAULT ({NOW_SQL}),
    UNIQUE(artist_id, venue_id, concert_date)
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS concert_group_members (
    group_id   INTEGER NOT NULL REFERENCES concert_groups(id) ON DELETE CASCADE,
    user_id    TEXT    NOT NULL,
    joined_at  TEXT    NOT NULL DEFAULT ({NOW_SQL}),
    PRIMARY KEY (group_id, user_id)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_concert_groups_date ON concert_groups(concert_date);",
    "CREATE INDEX IF NOT EXISTS idx_concert_group_members_user ON concert_group_members(user_id);",
]

_GROUP_COLUMNS = (
    "id, artist_id, venue_id, venue_name, venue_city, venue_state, venue_country, "
    "venue_latitude, venue_longitude, concert_date, concert_time, ticket_url, "
    "created_at, updated_at"
)

_INSERT_GROUP_SQL = """\
INSERT INTO concert_groups (
    artist_id, venue_id, venue_name, venue_city, venue_state, venue_country,
    venue_latitude, venue_longitude, concert_date, concert_time, ticket_url
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_MEMBER_SQL = """\
INSERT INTO concert_group_members (group_id, user_id)
VALUES (?, ?)
ON CONFLICT(group_id, user_id) DO NOTHING;
"""

_TOUCH_GROUP_SQL = f"UPDATE concert_groups SET updated_at = {NOW_SQL} WHERE id = ?;"


class SQLiteGroupStore(IGroupStore):
    """SQLite-backed concert group persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout

    async def initialize(self) -> None:
        """Create the group tables and indices if they don't exist."""
        prepare_path(self._db_path)
        async with open_connection(self._db_path, self._timeout) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("group_store_initialized", path=str(self._db_path))

    async def find_group(
        self,
        artist_id: str,
        venue_id: str,
        concert_date: date,
    ) -> ConcertGroup | None:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                f"SELECT {_GROUP_COLUMNS} FROM concert_groups "
                "WHERE artist_id = ? AND venue_id = ? AND concert_date = ?",
                (artist_id, venue_id, concert_date.isoformat()),
            )
            row = await cursor.fetchone()
        return _row_to_group(dict(row)) if row else None

    async def get_group(self, group_id: int) -> ConcertGroup | None:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                f"SELECT {_GROUP_COLUMNS} FROM concert_groups WHERE id = ?",
                (group_id,),
            )
            row = await cursor.fetchone()
        return _row_to_group(dict(row)) if row else None

    async def create_group(
        self,
        artist_id: str,
        concert: Concert,
        initial_members: Iterable[str],
    ) -> int:
        """Insert the group and its members in one transaction."""
        members = sorted(set(initial_members))
        if len(members) < MIN_GROUP_SIZE:
            msg = (
                f"A concert group needs at least {MIN_GROUP_SIZE} members, "
                f"got {len(members)} for artist={artist_id} venue={concert.venue_id} "
                f"date={concert.concert_date.isoformat()}"
            )
            raise GroupInvariantError(message=msg, provider_name=self.get_provider_name())

        params = (
            artist_id,
            concert.venue_id,
            concert.venue_name,
            concert.venue_city,
            concert.venue_state,
            concert.venue_country,
            concert.venue_location.latitude,
            concert.venue_location.longitude,
            concert.concert_date.isoformat(),
            concert.concert_time.isoformat() if concert.concert_time else None,
            concert.ticket_url,
        )

        async with open_connection(self._db_path, self._timeout) as db:
            try:
                cursor = await db.execute(_INSERT_GROUP_SQL, params)
            except aiosqlite.IntegrityError as exc:
                await db.rollback()
                raise GroupConflictError(
                    message=(
                        f"Group already exists for artist={artist_id} "
                        f"venue={concert.venue_id} date={concert.concert_date.isoformat()}"
                    ),
                    provider_name=self.get_provider_name(),
                ) from exc

            group_id = cursor.lastrowid
            try:
                await db.executemany(_INSERT_MEMBER_SQL, [(group_id, uid) for uid in members])
                await db.commit()
            except aiosqlite.Error:
                await db.rollback()
                raise

        logger.info(
            "concert_group_created",
            group_id=group_id,
            artist_id=artist_id,
            venue_id=concert.venue_id,
            concert_date=concert.concert_date.isoformat(),
            member_count=len(members),
        )
        return group_id

    async def get_members(self, group_id: int) -> set[str]:
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                "SELECT user_id FROM concert_group_members WHERE group_id = ?",
                (group_id,),
            )
            rows = await cursor.fetchall()
        return {row["user_id"] for row in rows}

    async def add_members(self, group_id: int, user_ids: Iterable[str]) -> set[str]:
        """Insert any missing members; return the ids actually inserted."""
        candidates = sorted(set(user_ids))
        if not candidates:
            return set()

        inserted: set[str] = set()
        async with open_connection(self._db_path, self._timeout) as db:
            try:
                for user_id in candidates:
                    cursor = await db.execute(_INSERT_MEMBER_SQL, (group_id, user_id))
                    if cursor.rowcount == 1:
                        inserted.add(user_id)
                if inserted:
                    await db.execute(_TOUCH_GROUP_SQL, (group_id,))
                await db.commit()
            except aiosqlite.IntegrityError as exc:
                await db.rollback()
                raise StoreError(
                    message=f"Cannot add members to unknown group {group_id}",
                    provider_name=self.get_provider_name(),
                ) from exc

        if inserted:
            logger.info(
                "concert_group_members_added",
                group_id=group_id,
                added=sorted(inserted),
            )
        return inserted

    async def list_groups(self, artist_id: str | None = None) -> list[ConcertGroup]:
        async with open_connection(self._db_path, self._timeout) as db:
            if artist_id is None:
                cursor = await db.execute(
                    f"SELECT {_GROUP_COLUMNS} FROM concert_groups ORDER BY id",
                )
            else:
                cursor = await db.execute(
                    f"SELECT {_GROUP_COLUMNS} FROM concert_groups WHERE artist_id = ? ORDER BY id",
                    (artist_id,),
                )
            rows = await cursor.fetchall()
        return [_row_to_group(dict(r)) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite_group_store"


def _row_to_group(row: dict[str, Any]) -> ConcertGroup:
    return ConcertGroup(
        group_id=row["id"],
        artist_id=row["artist_id"],
        venue_id=row["venue_id"],
        venue_name=row["venue_name"],
        venue_city=row["venue_city"],
        venue_state=row["venue_state"],
        venue_country=row["venue_country"],
        venue_latitude=row["venue_latitude"],
        venue_longitude=row["venue_longitude"],
        concert_date=row["concert_date"],
        concert_time=row["concert_time"],
        ticket_url=row["ticket_url"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
