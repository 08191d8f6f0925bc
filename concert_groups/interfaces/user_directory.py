"""Abstract base class for the User Directory collaborator.

The directory owns user identity (synchronized from the external auth
provider, outside this engine).  The engine only asks two questions of it:
does a user still exist, and where are they.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from concert_groups.models.social import Coordinates


class IUserDirectory(ABC):
    """Contract for user existence and location lookups."""

    @abstractmethod
    async def exists(self, user_id: str) -> bool:
        """Return ``True`` if *user_id* is a known user."""

    @abstractmethod
    async def location_of(self, user_id: str) -> Coordinates | None:
        """Return the user's coordinates, or ``None`` if unknown/unset."""

    async def locations_of(self, user_ids: Iterable[str]) -> dict[str, Coordinates]:
        """Batch form of :meth:`location_of`.

        Users without coordinates are simply absent from the result.
        Backends with a query language should override this with a
        single round trip.
        """
        result: dict[str, Coordinates] = {}
        for user_id in user_ids:
            location = await self.location_of(user_id)
            if location is not None:
                result[user_id] = location
        return result

    async def existing(self, user_ids: Iterable[str]) -> set[str]:
        """Return the subset of *user_ids* the directory knows about."""
        return {user_id for user_id in user_ids if await self.exists(user_id)}

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
