"""Shared pytest fixtures for the concert group engine test suite."""

from __future__ import annotations

from datetime import date, time
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio

from concert_groups.interfaces.event_catalog_provider import IEventCatalogProvider
from concert_groups.models.concert import Attraction, Concert, RawEvent
from concert_groups.models.social import Coordinates
from concert_groups.providers.social.sqlite_friendship_store import SQLiteFriendshipStore
from concert_groups.providers.social.sqlite_listening_history import (
    SQLiteListeningHistoryProvider,
)
from concert_groups.providers.social.sqlite_user_directory import SQLiteUserDirectory
from concert_groups.providers.store.sqlite_group_store import SQLiteGroupStore

# ---------------------------------------------------------------------------
# Reference locations
# ---------------------------------------------------------------------------

# Madison Square Garden.
NYC_VENUE = Coordinates(latitude=40.7505, longitude=-73.9934)
# Central New Jersey, about 33 miles from the venue.
NEAR_NJ = Coordinates(latitude=40.2736, longitude=-74.006)
NEAR_NJ_2 = Coordinates(latitude=40.2737, longitude=-74.006)
# Due south near Philadelphia's latitude, about 55 miles from the venue.
FAR_SOUTH = Coordinates(latitude=39.9526, longitude=-74.006)

FUTURE_DATE = date(2099, 6, 1)


# ---------------------------------------------------------------------------
# SQLite-backed collaborators (one temp database per test)
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "concert_groups.db"


@pytest_asyncio.fixture
async def user_directory(db_path: Path) -> SQLiteUserDirectory:
    directory = SQLiteUserDirectory(db_path)
    await directory.initialize()
    return directory


@pytest_asyncio.fixture
async def friendship_store(db_path: Path) -> SQLiteFriendshipStore:
    store = SQLiteFriendshipStore(db_path)
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def listening_history(db_path: Path) -> SQLiteListeningHistoryProvider:
    provider = SQLiteListeningHistoryProvider(db_path)
    await provider.initialize()
    return provider


@pytest_asyncio.fixture
async def group_store(db_path: Path) -> SQLiteGroupStore:
    store = SQLiteGroupStore(db_path)
    await store.initialize()
    return store


@pytest.fixture
def stores(
    user_directory: SQLiteUserDirectory,
    friendship_store: SQLiteFriendshipStore,
    listening_history: SQLiteListeningHistoryProvider,
    group_store: SQLiteGroupStore,
) -> dict[str, Any]:
    """All four stores over the same database, keyed as main.build_stores keys them."""
    return {
        "user_directory": user_directory,
        "friendship_store": friendship_store,
        "listening_history": listening_history,
        "group_store": group_store,
    }


# ---------------------------------------------------------------------------
# Concert / event factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_concert() -> Callable[..., Concert]:
    def _make(
        venue_id: str = "KovZpZA7AAEA",
        concert_date: date = FUTURE_DATE,
        location: Coordinates = NYC_VENUE,
        attraction_id: str = "K8vZ9171ob7",
    ) -> Concert:
        return Concert(
            attraction_id=attraction_id,
            event_id=f"evt-{venue_id}-{concert_date.isoformat()}",
            name="Live at the Garden",
            venue_id=venue_id,
            venue_name="Madison Square Garden",
            venue_city="New York",
            venue_state="NY",
            venue_country="US",
            venue_location=location,
            concert_date=concert_date,
            concert_time=time(19, 30),
            ticket_url="https://www.ticketmaster.com/event/0001",
        )

    return _make


def make_raw_event(
    event_id: str = "evt-1",
    event_date: date = FUTURE_DATE,
    venue_id: str | None = "KovZpZA7AAEA",
    location: Coordinates | None = NYC_VENUE,
) -> RawEvent:
    return RawEvent(
        event_id=event_id,
        name="Live at the Garden",
        event_date=event_date,
        event_time=time(19, 30),
        venue_id=venue_id,
        venue_name="Madison Square Garden",
        venue_city="New York",
        venue_state="NY",
        venue_country="US",
        venue_latitude=location.latitude if location else None,
        venue_longitude=location.longitude if location else None,
        ticket_url=f"https://www.ticketmaster.com/event/{event_id}",
    )


# ---------------------------------------------------------------------------
# In-memory event catalog
# ---------------------------------------------------------------------------


class StubEventCatalog(IEventCatalogProvider):
    """Scripted catalog: artist name -> one attraction -> fixed events.

    ``fail_names`` makes events_for raise the given exception for that
    artist's attraction.  ``on_search`` is called with each searched name.
    """

    def __init__(self) -> None:
        self.events: dict[str, list[RawEvent]] = {}
        self.fail_names: dict[str, BaseException] = {}
        self.searched: list[str] = []
        self.on_search: Callable[[str], None] | None = None

    def add_artist(self, name: str, events: list[RawEvent]) -> None:
        self.events[name] = events

    @staticmethod
    def _attraction_id(name: str) -> str:
        return f"attr-{name.lower().replace(' ', '-')}"

    async def search_by_name(self, name: str) -> list[Attraction]:
        self.searched.append(name)
        if self.on_search is not None:
            self.on_search(name)
        if name not in self.events and name not in self.fail_names:
            return []
        return [Attraction(attraction_id=self._attraction_id(name), name=name)]

    async def events_for(self, attraction_id: str, since: date | None = None) -> list[RawEvent]:
        for name, exc in self.fail_names.items():
            if self._attraction_id(name) == attraction_id:
                raise exc
        for name, events in self.events.items():
            if self._attraction_id(name) == attraction_id:
                return [e for e in events if since is None or e.event_date >= since]
        return []

    def get_provider_name(self) -> str:
        return "stub_catalog"


@pytest.fixture
def stub_catalog() -> StubEventCatalog:
    return StubEventCatalog()
