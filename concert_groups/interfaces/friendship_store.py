"""Abstract base class for the Friendship Graph Store collaborator.

Friend requests, acceptance and blocking happen in the surrounding
application.  The engine consumes the resulting graph read-only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable


class IFriendshipGraphStore(ABC):
    """Contract for querying accepted friendships between users."""

    @abstractmethod
    async def accepted_edges_among(self, user_ids: Iterable[str]) -> list[tuple[str, str]]:
        """Return accepted, unblocked edges whose BOTH endpoints are in *user_ids*.

        Parameters
        ----------
        user_ids:
            Candidate pool.  Duplicates are ignored.

        Returns
        -------
        list[tuple[str, str]]
            Each edge once, as ``(lower_id, higher_id)``.  An edge is
            returned only when its status is ``accepted`` and neither user
            has blocked the other.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
