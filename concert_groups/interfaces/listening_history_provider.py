"""Abstract base class for the Listening-History collaborator.

Fetching top artists from the streaming provider is done elsewhere; this
contract only exposes the stored result as a follow mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IListeningHistoryProvider(ABC):
    """Contract for per-user artist-follow data."""

    @abstractmethod
    async def artist_follows(self) -> dict[str, set[str]]:
        """Return ``user_id -> set of artist_id`` for every user with history."""

    @abstractmethod
    async def artist_name(self, artist_id: str) -> str | None:
        """Return the display name of *artist_id*, or ``None`` if unknown."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
