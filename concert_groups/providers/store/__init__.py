"""Concert group persistence.

SQLiteGroupStore keeps groups and memberships; a UNIQUE business key on
(artist_id, venue_id, concert_date) makes overlapping runs converge on one row.
"""

from concert_groups.providers.store.sqlite_group_store import SQLiteGroupStore

__all__ = ["SQLiteGroupStore"]
