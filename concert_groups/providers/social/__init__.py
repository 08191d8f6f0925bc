"""Social-graph providers backed by the application's SQLite database.

    SQLiteUserDirectory             — ``users`` table (identity + location)
    SQLiteFriendshipStore           — ``user_relations`` table (canonical pairs)
    SQLiteListeningHistoryProvider  — ``artists`` and ``user_artists`` tables

All three only read in the engine's hot path; the write helpers
(``upsert_user``, ``record_relation``, ``block``, ``record_follow``) exist so
the host application and the tests can seed data.
"""

from concert_groups.providers.social.sqlite_friendship_store import SQLiteFriendshipStore
from concert_groups.providers.social.sqlite_listening_history import (
    SQLiteListeningHistoryProvider,
)
from concert_groups.providers.social.sqlite_user_directory import SQLiteUserDirectory

__all__ = [
    "SQLiteFriendshipStore",
    "SQLiteListeningHistoryProvider",
    "SQLiteUserDirectory",
]
