"""Reconcile a freshly computed friend cluster with the stored group.

For one ``(artist, venue, date)`` business key the resolver either creates
the group or grows the existing one.  Growth is transitive: a candidate
joins if there is a chain of accepted friendships, through existing members
or through other admitted candidates, that reaches the group.  Candidates
with no such chain are left out for this run and reconsidered next time.

Membership is only ever added here, never removed.

Two runs may race to create the same group.  The store's uniqueness
constraint lets exactly one win; the loser gets
:class:`GroupConflictError`, re-reads the winner's row and merges into it.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable

import structlog

from concert_groups.interfaces.friendship_store import IFriendshipGraphStore
from concert_groups.interfaces.group_store import IGroupStore
from concert_groups.models.concert import Concert
from concert_groups.models.group import (
    MIN_GROUP_SIZE,
    ConcertGroup,
    GroupResolution,
    ResolutionAction,
)
from concert_groups.utils.errors import GroupConflictError, GroupInvariantError, StoreError
from concert_groups.utils.logging import get_logger

_MAX_CONFLICT_RETRIES = 3


class MergeResolver:
    """Create-or-extend logic for concert groups."""

    def __init__(
        self,
        group_store: IGroupStore,
        friendship_store: IFriendshipGraphStore,
    ) -> None:
        self._groups = group_store
        self._friendships = friendship_store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def resolve(
        self,
        artist_id: str,
        concert: Concert,
        new_cluster: Iterable[str],
    ) -> GroupResolution:
        """Persist *new_cluster* against the group for this concert.

        Parameters
        ----------
        artist_id:
            Internal artist id, part of the business key.
        concert:
            Supplies ``venue_id`` and ``concert_date`` for the key and the
            venue snapshot stored on a new group.
        new_cluster:
            A friendship cluster computed for this concert.

        Returns
        -------
        GroupResolution
            Carries the group id and which users were written.

        Raises
        ------
        GroupInvariantError
            If no group exists yet and the cluster has fewer than
            ``MIN_GROUP_SIZE`` distinct users.
        """
        cluster = frozenset(new_cluster)

        for attempt in range(1, _MAX_CONFLICT_RETRIES + 1):
            existing = await self._groups.find_group(
                artist_id, concert.venue_id, concert.concert_date
            )
            if existing is not None:
                return await self._merge_into(existing, cluster)

            if len(cluster) < MIN_GROUP_SIZE:
                msg = (
                    f"Refusing to create a group with {len(cluster)} member(s) for "
                    f"artist={artist_id} venue={concert.venue_id} "
                    f"date={concert.concert_date.isoformat()}"
                )
                raise GroupInvariantError(message=msg)

            try:
                group_id = await self._groups.create_group(artist_id, concert, cluster)
            except GroupConflictError:
                self._logger.info(
                    "group_create_conflict",
                    artist_id=artist_id,
                    venue_id=concert.venue_id,
                    concert_date=concert.concert_date.isoformat(),
                    attempt=attempt,
                )
                continue

            return GroupResolution(
                group_id=group_id,
                action=ResolutionAction.CREATED,
                added_members=cluster,
            )

        raise StoreError(
            message=(
                f"Group for artist={artist_id} venue={concert.venue_id} "
                f"date={concert.concert_date.isoformat()} kept conflicting after "
                f"{_MAX_CONFLICT_RETRIES} attempts"
            ),
            provider_name=self._groups.get_provider_name(),
        )

    async def _merge_into(
        self,
        group: ConcertGroup,
        cluster: frozenset[str],
    ) -> GroupResolution:
        members = await self._groups.get_members(group.group_id)
        candidates = cluster - members
        if not candidates:
            return GroupResolution(group_id=group.group_id, action=ResolutionAction.UNCHANGED)

        admitted = await self._reachable_candidates(members, candidates)
        left_out = frozenset(candidates - admitted)

        added: set[str] = set()
        if admitted:
            added = await self._groups.add_members(group.group_id, admitted)

        if left_out:
            self._logger.info(
                "group_candidates_left_out",
                group_id=group.group_id,
                left_out=sorted(left_out),
            )

        return GroupResolution(
            group_id=group.group_id,
            action=ResolutionAction.EXTENDED if added else ResolutionAction.UNCHANGED,
            added_members=frozenset(added),
            left_out=left_out,
        )

    async def _reachable_candidates(
        self,
        members: set[str],
        candidates: frozenset[str],
    ) -> set[str]:
        """Breadth-first walk from the members through candidate friends.

        The edge set among ``members | candidates`` is fetched once.
        Existing members seed the queue; a candidate adjacent to anything
        dequeued is admitted and enqueued in turn.
        """
        edges = await self._friendships.accepted_edges_among(members | candidates)

        adjacency: dict[str, set[str]] = {}
        for user_a, user_b in edges:
            adjacency.setdefault(user_a, set()).add(user_b)
            adjacency.setdefault(user_b, set()).add(user_a)

        admitted: set[str] = set()
        queue = deque(sorted(members))
        while queue:
            current = queue.popleft()
            for neighbour in sorted(adjacency.get(current, ())):
                if neighbour in candidates and neighbour not in admitted:
                    admitted.add(neighbour)
                    queue.append(neighbour)
        return admitted
