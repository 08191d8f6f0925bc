"""Partition nearby users into friendship clusters.

A cluster is a connected component of the accepted-friendship graph
restricted to the given users.  Friendship is transitive for this purpose:
if A-B and B-C are friends, {A, B, C} is one cluster even though A and C may
not know each other.  Components of one user are discarded, since a lone
user cannot form a group.

The union-find structure is arena-indexed: each user id is mapped to a slot
in two parallel lists (``parent`` and ``rank``), and slots are allocated the
first time an id is seen.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from concert_groups.interfaces.friendship_store import IFriendshipGraphStore
from concert_groups.models.group import MIN_GROUP_SIZE
from concert_groups.utils.logging import get_logger


class DisjointSet:
    """Union-find over string ids with path compression and union-by-rank."""

    def __init__(self) -> None:
        self._slots: dict[str, int] = {}
        self._ids: list[str] = []
        self._parent: list[int] = []
        self._rank: list[int] = []

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, item: object) -> bool:
        return item in self._slots

    def _slot(self, item: str) -> int:
        slot = self._slots.get(item)
        if slot is None:
            slot = len(self._ids)
            self._slots[item] = slot
            self._ids.append(item)
            self._parent.append(slot)
            self._rank.append(0)
        return slot

    def _find_slot(self, slot: int) -> int:
        root = slot
        while self._parent[root] != root:
            root = self._parent[root]
        # Second pass: point every node on the path straight at the root.
        while self._parent[slot] != root:
            self._parent[slot], slot = root, self._parent[slot]
        return root

    def add(self, item: str) -> None:
        self._slot(item)

    def find(self, item: str) -> str:
        """Return the representative id of *item*'s set."""
        return self._ids[self._find_slot(self._slot(item))]

    def union(self, a: str, b: str) -> None:
        """Merge the sets containing *a* and *b*.

        On equal rank the root of *a* stays the parent.
        """
        root_a = self._find_slot(self._slot(a))
        root_b = self._find_slot(self._slot(b))
        if root_a == root_b:
            return
        if self._rank[root_a] < self._rank[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        if self._rank[root_a] == self._rank[root_b]:
            self._rank[root_a] += 1

    def connected(self, a: str, b: str) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> list[list[str]]:
        """Every set, members in insertion order, sets ordered by first member."""
        by_root: dict[int, list[str]] = {}
        for slot, item in enumerate(self._ids):
            by_root.setdefault(self._find_slot(slot), []).append(item)
        return list(by_root.values())


class FriendshipClusterer:
    """Computes friend clusters among a set of users."""

    def __init__(self, friendship_store: IFriendshipGraphStore) -> None:
        self._friendships = friendship_store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @staticmethod
    def cluster(
        users: Iterable[str],
        accepted_edges: Iterable[tuple[str, str]],
    ) -> list[frozenset[str]]:
        """Connected components of size >= 2, given the accepted edges.

        Edges with an endpoint outside *users* are ignored.  Clusters come
        back ordered by their smallest user id.
        """
        pool = sorted(set(users))
        members = set(pool)

        forest = DisjointSet()
        for user_id in pool:
            forest.add(user_id)
        for user_a, user_b in accepted_edges:
            if user_a == user_b or user_a not in members or user_b not in members:
                continue
            forest.union(user_a, user_b)

        return [
            frozenset(group) for group in forest.groups() if len(group) >= MIN_GROUP_SIZE
        ]

    async def cluster_among(self, users: Iterable[str]) -> list[frozenset[str]]:
        """Fetch the accepted edges among *users* and cluster them."""
        pool = sorted(set(users))
        if len(pool) < MIN_GROUP_SIZE:
            return []
        edges = await self._friendships.accepted_edges_among(pool)
        clusters = self.cluster(pool, edges)
        self._logger.debug(
            "friendship_clusters_computed",
            users=len(pool),
            edges=len(edges),
            clusters=len(clusters),
        )
        return clusters
