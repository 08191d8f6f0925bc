"""Public interface definitions for every collaborator of the engine.

The engine reaches the outside world exclusively through the abstract base
classes defined here.  Concrete adapters live in ``concert_groups/providers/``
and are wired together in ``concert_groups/main.py``; tests inject fakes or
temp-file SQLite instances instead.

CONCRETE PROVIDER MAP:
    Interface                   →  Concrete implementations
    ─────────────────────────────────────────────────────────────────
    IUserDirectory              →  SQLiteUserDirectory
    IFriendshipGraphStore       →  SQLiteFriendshipStore
    IListeningHistoryProvider   →  SQLiteListeningHistoryProvider
    IEventCatalogProvider       →  TicketmasterEventCatalogProvider
    IGroupStore                 →  SQLiteGroupStore
"""

from concert_groups.interfaces.event_catalog_provider import IEventCatalogProvider
from concert_groups.interfaces.friendship_store import IFriendshipGraphStore
from concert_groups.interfaces.group_store import IGroupStore
from concert_groups.interfaces.listening_history_provider import IListeningHistoryProvider
from concert_groups.interfaces.user_directory import IUserDirectory

__all__ = [
    "IEventCatalogProvider",
    "IFriendshipGraphStore",
    "IGroupStore",
    "IListeningHistoryProvider",
    "IUserDirectory",
]
