"""Abstract base class for concert-group persistence.

Implementations must enforce business-key uniqueness themselves (a UNIQUE
constraint or equivalent) and make group creation all-or-nothing.  The
merge resolver relies on both properties to stay correct when two runs
overlap.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable

from concert_groups.models.concert import Concert
from concert_groups.models.group import ConcertGroup


class IGroupStore(ABC):
    """Contract for concert-group storage.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def find_group(
        self,
        artist_id: str,
        venue_id: str,
        concert_date: date,
    ) -> ConcertGroup | None:
        """Return the group for the business key, or ``None``."""

    @abstractmethod
    async def get_group(self, group_id: int) -> ConcertGroup | None:
        """Return a group by surrogate id, or ``None``."""

    @abstractmethod
    async def create_group(
        self,
        artist_id: str,
        concert: Concert,
        initial_members: Iterable[str],
    ) -> int:
        """Create a group and its initial members atomically.

        Returns
        -------
        int
            The new group's surrogate id.

        Raises
        ------
        concert_groups.utils.errors.GroupInvariantError
            If fewer than two distinct members are supplied.
        concert_groups.utils.errors.GroupConflictError
            If a group already exists for the business key.  Nothing is
            written in that case.
        """

    @abstractmethod
    async def get_members(self, group_id: int) -> set[str]:
        """Return the current member ids of a group."""

    @abstractmethod
    async def add_members(self, group_id: int, user_ids: Iterable[str]) -> set[str]:
        """Add members to a group.  Re-adding an existing member is a no-op.

        Returns
        -------
        set[str]
            The ids that were actually inserted by this call.
        """

    @abstractmethod
    async def list_groups(self, artist_id: str | None = None) -> list[ConcertGroup]:
        """Return all groups, optionally restricted to one artist."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
