"""Abstract base class for event-catalog providers.

Defines the contract for resolving an artist name to a catalog entity and
listing that entity's events.  The adapter pattern keeps the Event Fetcher
independent of any one ticketing API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from concert_groups.models.concert import Attraction, RawEvent


class IEventCatalogProvider(ABC):
    """Contract for upcoming-event lookups."""

    @abstractmethod
    async def search_by_name(self, name: str) -> list[Attraction]:
        """Search the catalog for performers matching *name*.

        Returns
        -------
        list[Attraction]
            Zero or more results in the catalog's relevance order.

        Raises
        ------
        concert_groups.utils.errors.ProviderUnavailableError
            If the request fails or times out.
        concert_groups.utils.errors.RateLimitError
            If the catalog rejects the call for rate-limit reasons.
        """

    @abstractmethod
    async def events_for(self, attraction_id: str, since: date | None = None) -> list[RawEvent]:
        """List events for one catalog performer.

        Parameters
        ----------
        attraction_id:
            Catalog id from :meth:`search_by_name`.
        since:
            When given, only events on or after this date are requested
            from the catalog.  When ``None`` the catalog's default window
            applies and callers must filter past dates themselves.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
