"""Turn an artist name into the list of upcoming, locatable concerts.

The catalog is an external dependency the job cannot control, so every
upstream failure here degrades to "no events" for the artist: it is logged
with context and the caller moves on.  The next scheduled run retries.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import httpx
import structlog

from concert_groups.interfaces.event_catalog_provider import IEventCatalogProvider
from concert_groups.models.concert import Attraction, Concert, RawEvent
from concert_groups.utils.errors import ConcertGroupsError
from concert_groups.utils.logging import get_logger


class EventFetcher:
    """Looks up an artist in the catalog and normalizes its upcoming events.

    Parameters
    ----------
    catalog:
        The event-catalog adapter.
    clock:
        Returns "today"; injectable so tests can pin the date filter.
    """

    def __init__(
        self,
        catalog: IEventCatalogProvider,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._catalog = catalog
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def events_for(self, artist_name: str) -> list[Concert]:
        """Upcoming concerts for *artist_name*, or ``[]`` on any upstream failure."""
        name = (artist_name or "").strip()
        if not name:
            return []

        try:
            attractions = await self._catalog.search_by_name(name)
        except (ConcertGroupsError, httpx.HTTPError) as exc:
            self._logger.warning(
                "event_catalog_search_failed",
                artist=name,
                provider=self._catalog.get_provider_name(),
                error=str(exc),
            )
            return []

        attraction = self._pick_attraction(name, attractions)
        if attraction is None:
            self._logger.info("event_catalog_artist_not_found", artist=name)
            return []

        today = self._clock()
        raw_events = await self._fetch_upcoming(attraction.attraction_id, name, today)
        if raw_events is None:
            return []

        concerts: list[Concert] = []
        skipped = 0
        for raw in raw_events:
            if raw.event_date < today:
                continue
            concert = Concert.from_raw(attraction.attraction_id, raw)
            if concert is None:
                skipped += 1
                continue
            concerts.append(concert)

        if skipped:
            self._logger.debug(
                "events_without_venue_location_skipped",
                artist=name,
                skipped=skipped,
            )
        self._logger.info(
            "artist_events_fetched",
            artist=name,
            attraction_id=attraction.attraction_id,
            concerts=len(concerts),
        )
        return concerts

    @staticmethod
    def _pick_attraction(name: str, attractions: list[Attraction]) -> Attraction | None:
        """Exact case-insensitive name match, else the catalog's top result."""
        if not attractions:
            return None
        wanted = name.casefold()
        for attraction in attractions:
            if attraction.name.strip().casefold() == wanted:
                return attraction
        return attractions[0]

    async def _fetch_upcoming(
        self,
        attraction_id: str,
        name: str,
        today: date,
    ) -> list[RawEvent] | None:
        # Some catalog deployments reject the start-date filter; retry
        # without it and let the caller filter past dates locally.
        try:
            return await self._catalog.events_for(attraction_id, since=today)
        except (ConcertGroupsError, httpx.HTTPError) as exc:
            self._logger.warning(
                "event_catalog_dated_query_failed",
                artist=name,
                attraction_id=attraction_id,
                error=str(exc),
            )

        try:
            return await self._catalog.events_for(attraction_id, since=None)
        except (ConcertGroupsError, httpx.HTTPError) as exc:
            self._logger.warning(
                "event_catalog_events_failed",
                artist=name,
                attraction_id=attraction_id,
                error=str(exc),
            )
            return None
