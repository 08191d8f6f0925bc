"""Unit tests for the MergeResolver create-or-extend logic.

Most tests run against real temp-file SQLite stores; the conflict-retry
paths use a mocked group store to script the race deterministically.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from concert_groups.interfaces.group_store import IGroupStore
from concert_groups.models.group import ConcertGroup, ResolutionAction
from concert_groups.services.merge_resolver import MergeResolver
from concert_groups.utils.errors import GroupConflictError, GroupInvariantError, StoreError

ARTIST = "4Z8W4fKeB5YxbusRsdQVPb"


async def _befriend(friendship_store, *pairs: tuple[str, str]) -> None:
    for user_a, user_b in pairs:
        await friendship_store.record_relation(user_a, user_b)


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_group_when_none_exists(
        self, group_store, friendship_store, make_concert
    ) -> None:
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()

        resolution = await resolver.resolve(ARTIST, concert, {"A", "B"})

        assert resolution.action == ResolutionAction.CREATED
        assert resolution.added_members == frozenset({"A", "B"})
        assert await group_store.get_members(resolution.group_id) == {"A", "B"}

    @pytest.mark.asyncio
    async def test_singleton_never_creates_a_group(
        self, group_store, friendship_store, make_concert
    ) -> None:
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()

        with pytest.raises(GroupInvariantError):
            await resolver.resolve(ARTIST, concert, {"A"})

        assert await group_store.list_groups() == []

    @pytest.mark.asyncio
    async def test_same_cluster_twice_is_unchanged(
        self, group_store, friendship_store, make_concert
    ) -> None:
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()

        first = await resolver.resolve(ARTIST, concert, {"A", "B"})
        second = await resolver.resolve(ARTIST, concert, {"A", "B"})

        assert second.action == ResolutionAction.UNCHANGED
        assert second.group_id == first.group_id
        assert second.added_members == frozenset()
        assert len(await group_store.list_groups()) == 1

    @pytest.mark.asyncio
    async def test_different_dates_are_different_groups(
        self, group_store, friendship_store, make_concert
    ) -> None:
        resolver = MergeResolver(group_store, friendship_store)

        june_1 = make_concert(concert_date=date(2099, 6, 1))
        june_2 = make_concert(concert_date=date(2099, 6, 2))

        first = await resolver.resolve(ARTIST, june_1, {"A", "B"})
        second = await resolver.resolve(ARTIST, june_2, {"A", "B"})

        assert first.group_id != second.group_id
        assert second.action == ResolutionAction.CREATED


class TestMerge:
    @pytest.mark.asyncio
    async def test_transitive_expansion_through_new_candidates(
        self, group_store, friendship_store, make_concert
    ) -> None:
        # Group holds A (and Z).  A-B and B-C are friends; C does not know A.
        await _befriend(friendship_store, ("A", "Z"), ("A", "B"), ("B", "C"))
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()
        created = await resolver.resolve(ARTIST, concert, {"A", "Z"})

        resolution = await resolver.resolve(ARTIST, concert, {"B", "C"})

        assert resolution.group_id == created.group_id
        assert resolution.action == ResolutionAction.EXTENDED
        assert resolution.added_members == frozenset({"B", "C"})
        assert resolution.left_out == frozenset()
        assert await group_store.get_members(created.group_id) == {"A", "B", "C", "Z"}

    @pytest.mark.asyncio
    async def test_unconnected_candidates_are_left_out(
        self, group_store, friendship_store, make_concert
    ) -> None:
        await _befriend(friendship_store, ("A", "Z"), ("D", "E"))
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()
        created = await resolver.resolve(ARTIST, concert, {"A", "Z"})

        resolution = await resolver.resolve(ARTIST, concert, {"D", "E"})

        assert resolution.action == ResolutionAction.UNCHANGED
        assert resolution.left_out == frozenset({"D", "E"})
        assert await group_store.get_members(created.group_id) == {"A", "Z"}

    @pytest.mark.asyncio
    async def test_partial_admission(
        self, group_store, friendship_store, make_concert
    ) -> None:
        await _befriend(friendship_store, ("A", "Z"), ("Z", "B"))
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()
        created = await resolver.resolve(ARTIST, concert, {"A", "Z"})

        resolution = await resolver.resolve(ARTIST, concert, {"A", "B", "X"})

        assert resolution.added_members == frozenset({"B"})
        assert resolution.left_out == frozenset({"X"})
        assert await group_store.get_members(created.group_id) == {"A", "B", "Z"}

    @pytest.mark.asyncio
    async def test_single_friend_may_join_existing_group(
        self, group_store, friendship_store, make_concert
    ) -> None:
        await _befriend(friendship_store, ("A", "Z"), ("A", "B"))
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()
        created = await resolver.resolve(ARTIST, concert, {"A", "Z"})

        resolution = await resolver.resolve(ARTIST, concert, {"B"})

        assert resolution.action == ResolutionAction.EXTENDED
        assert await group_store.get_members(created.group_id) == {"A", "B", "Z"}

    @pytest.mark.asyncio
    async def test_membership_never_shrinks(
        self, group_store, friendship_store, make_concert
    ) -> None:
        await _befriend(friendship_store, ("A", "B"), ("B", "C"))
        resolver = MergeResolver(group_store, friendship_store)
        concert = make_concert()
        created = await resolver.resolve(ARTIST, concert, {"A", "B", "C"})

        # B and C have since stopped following the artist.
        await resolver.resolve(ARTIST, concert, {"A"})

        assert await group_store.get_members(created.group_id) == {"A", "B", "C"}


def _existing_group(group_id: int = 7) -> ConcertGroup:
    return ConcertGroup(
        group_id=group_id,
        artist_id=ARTIST,
        venue_id="KovZpZA7AAEA",
        concert_date=date(2099, 6, 1),
        created_at=datetime(2099, 1, 1, tzinfo=timezone.utc),
    )


class TestConflicts:
    @pytest.mark.asyncio
    async def test_conflict_falls_back_to_merge(self, make_concert) -> None:
        groups = MagicMock(spec=IGroupStore)
        groups.find_group = AsyncMock(side_effect=[None, _existing_group()])
        groups.create_group = AsyncMock(side_effect=GroupConflictError())
        groups.get_members = AsyncMock(return_value={"A", "B"})
        groups.add_members = AsyncMock(return_value={"C"})
        friendships = MagicMock()
        friendships.accepted_edges_among = AsyncMock(return_value=[("B", "C")])
        resolver = MergeResolver(groups, friendships)

        resolution = await resolver.resolve(ARTIST, make_concert(), {"B", "C"})

        assert resolution.group_id == 7
        assert resolution.action == ResolutionAction.EXTENDED
        groups.add_members.assert_awaited_once_with(7, {"C"})

    @pytest.mark.asyncio
    async def test_persistent_conflict_gives_up(self, make_concert) -> None:
        groups = MagicMock(spec=IGroupStore)
        groups.find_group = AsyncMock(return_value=None)
        groups.create_group = AsyncMock(side_effect=GroupConflictError())
        groups.get_provider_name = MagicMock(return_value="mock_store")
        resolver = MergeResolver(groups, MagicMock())

        with pytest.raises(StoreError):
            await resolver.resolve(ARTIST, make_concert(), {"A", "B"})

        assert groups.create_group.await_count == 3

    @pytest.mark.asyncio
    async def test_concurrent_creates_converge_on_one_group(
        self, db_path, group_store, friendship_store, make_concert
    ) -> None:
        from concert_groups.providers.store.sqlite_group_store import SQLiteGroupStore

        await _befriend(friendship_store, ("A", "B"), ("B", "C"))
        concert = make_concert()
        # Two resolvers with their own store handles, as two overlapping runs would have.
        first = MergeResolver(group_store, friendship_store)
        second = MergeResolver(SQLiteGroupStore(db_path), friendship_store)

        results = await asyncio.gather(
            first.resolve(ARTIST, concert, {"A", "B"}),
            second.resolve(ARTIST, concert, {"B", "C"}),
        )

        groups = await group_store.list_groups()
        assert len(groups) == 1
        assert {r.group_id for r in results} == {groups[0].group_id}
        assert await group_store.get_members(groups[0].group_id) == {"A", "B", "C"}
