"""SQLite-backed friendship graph.

One row per unordered user pair, always stored as ``(lower_id, higher_id)``
and guarded by a CHECK constraint.  Each side has its own block flag.
Blocking forces the relation to ``declined``; an accepted-but-blocked row can
therefore only appear through direct writes, and the read path still
excludes it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import structlog

from concert_groups.interfaces.friendship_store import IFriendshipGraphStore
from concert_groups.models.social import FriendshipEdge, FriendshipStatus, canonical_pair
from concert_groups.providers.sqlite import NOW_SQL, open_connection, prepare_path

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = f"""\
CREATE TABLE IF NOT EXISTS user_relations (
    user1_id             TEXT    NOT NULL,
    user2_id             TEXT    NOT NULL,
    status               TEXT    NOT NULL DEFAULT 'pending'
                                 CHECK (status IN ('pending', 'accepted', 'declined')),
    initiated_by         TEXT,
    user1_blocked_user2  INTEGER NOT NULL DEFAULT 0,
    user2_blocked_user1  INTEGER NOT NULL DEFAULT 0,
    created_at           TEXT    NOT NULL DEFAULT ({NOW_SQL}),
    updated_at           TEXT    NOT NULL DEFAULT ({NOW_SQL}),
    PRIMARY KEY (user1_id, user2_id),
    CHECK (user1_id < user2_id)
);
"""

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_user_relations_status ON user_relations(status);"
)

_UPSERT_RELATION_SQL = f"""\
INSERT INTO user_relations (user1_id, user2_id, status, initiated_by)
VALUES (?, ?, ?, ?)
ON CONFLICT(user1_id, user2_id) DO UPDATE SET
    status       = excluded.status,
    initiated_by = COALESCE(excluded.initiated_by, user_relations.initiated_by),
    updated_at   = {NOW_SQL};
"""

_ACCEPTED_AMONG_SQL = """\
SELECT user1_id, user2_id
FROM user_relations
WHERE status = 'accepted'
  AND user1_blocked_user2 = 0
  AND user2_blocked_user1 = 0
  AND user1_id IN (SELECT value FROM json_each(?))
  AND user2_id IN (SELECT value FROM json_each(?))
ORDER BY user1_id, user2_id;
"""


class SQLiteFriendshipStore(IFriendshipGraphStore):
    """Friend relations between users, read by the engine and written by the app."""

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout

    async def initialize(self) -> None:
        prepare_path(self._db_path)
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.execute(_CREATE_INDEX_SQL)
            await db.commit()

    async def record_relation(
        self,
        user_a: str,
        user_b: str,
        status: FriendshipStatus = FriendshipStatus.ACCEPTED,
        initiated_by: str | None = None,
    ) -> FriendshipEdge:
        """Create or update the relation between two users.

        Argument order does not matter; the pair is canonicalized first.
        Existing block flags are preserved.
        """
        low, high = canonical_pair(user_a, user_b)
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(
                _UPSERT_RELATION_SQL,
                (low, high, FriendshipStatus(status).value, initiated_by),
            )
            await db.commit()
        edge = await self.get_edge(low, high)
        assert edge is not None
        return edge

    async def block(self, blocker: str, blockee: str) -> FriendshipEdge:
        """Flag *blocker* as blocking *blockee* and force the relation to declined."""
        low, high = canonical_pair(blocker, blockee)
        flag_column = "user1_blocked_user2" if blocker == low else "user2_blocked_user1"
        async with open_connection(self._db_path, self._timeout) as db:
            await db.execute(
                "INSERT INTO user_relations (user1_id, user2_id, status, initiated_by) "
                "VALUES (?, ?, 'declined', ?) "
                "ON CONFLICT(user1_id, user2_id) DO NOTHING",
                (low, high, blocker),
            )
            await db.execute(
                f"UPDATE user_relations SET {flag_column} = 1, status = 'declined', "
                f"updated_at = {NOW_SQL} WHERE user1_id = ? AND user2_id = ?",
                (low, high),
            )
            await db.commit()
        logger.info("user_blocked", blocker=blocker, blockee=blockee)
        edge = await self.get_edge(low, high)
        assert edge is not None
        return edge

    async def get_edge(self, user_a: str, user_b: str) -> FriendshipEdge | None:
        low, high = canonical_pair(user_a, user_b)
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(
                "SELECT user1_id, user2_id, status, user1_blocked_user2, user2_blocked_user1 "
                "FROM user_relations WHERE user1_id = ? AND user2_id = ?",
                (low, high),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return FriendshipEdge(
            user_a=row["user1_id"],
            user_b=row["user2_id"],
            status=FriendshipStatus(row["status"]),
            a_blocked_b=bool(row["user1_blocked_user2"]),
            b_blocked_a=bool(row["user2_blocked_user1"]),
        )

    async def accepted_edges_among(self, user_ids: Iterable[str]) -> list[tuple[str, str]]:
        ids = sorted(set(user_ids))
        if len(ids) < 2:
            return []
        payload = json.dumps(ids)
        async with open_connection(self._db_path, self._timeout) as db:
            cursor = await db.execute(_ACCEPTED_AMONG_SQL, (payload, payload))
            rows = await cursor.fetchall()
        return [(row["user1_id"], row["user2_id"]) for row in rows]

    def get_provider_name(self) -> str:
        return "sqlite_friendship_store"
