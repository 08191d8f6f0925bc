"""Ticketmaster Discovery API v2 event-catalog provider.

Resolves artist names to Ticketmaster *attractions* and lists their upcoming
*events*.  Two endpoints are used:

* ``GET /attractions.json?keyword=<name>&classificationName=music``
* ``GET /events.json?attractionId=<id>&startDateTime=<iso>&sort=date,asc``

The Discovery API allows 5 requests per second per key, so a minimum
interval between consecutive requests is enforced with ``_throttle()``.

Error mapping:

* HTTP 429 -> :class:`RateLimitError`
* other HTTP status errors, transport failures and timeouts ->
  :class:`ProviderUnavailableError`
* a 200 response whose body is not JSON, or whose ``_embedded`` block has
  the wrong shape -> :class:`EventCatalogError`

A single attraction or event that cannot be parsed is skipped with a
warning and the rest of the page is still returned.

The ``httpx.AsyncClient`` is injected so tests can substitute a mock and the
application can share one connection pool.
"""

from __future__ import annotations

import asyncio
import time
from datetime import date
from typing import Any

import httpx

from concert_groups.interfaces.event_catalog_provider import IEventCatalogProvider
from concert_groups.models.concert import Attraction, RawEvent
from concert_groups.utils.errors import (
    EventCatalogError,
    ProviderUnavailableError,
    RateLimitError,
)
from concert_groups.utils.logging import get_logger

_BASE_URL = "https://app.ticketmaster.com/discovery/v2"
_MIN_REQUEST_INTERVAL = 0.25  # seconds, 5 requests per second
_ATTRACTION_PAGE_SIZE = 10
_EVENT_PAGE_SIZE = 50


class TicketmasterEventCatalogProvider(IEventCatalogProvider):
    """Event catalog backed by the Ticketmaster Discovery API.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.  Its timeout configuration applies
        to every request.
    api_key:
        Discovery API consumer key, sent as the ``apikey`` query parameter.
    base_url:
        API root, overridable for staging or a local stub server.
    min_interval:
        Minimum seconds between consecutive requests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = _BASE_URL,
        min_interval: float = _MIN_REQUEST_INTERVAL,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._min_interval = min_interval
        self._last_request_time: float = 0.0
        self._throttle_lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    async def _throttle(self) -> None:
        """Enforce minimum interval between API requests."""
        async with self._throttle_lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if self._last_request_time > 0 and elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """Issue one GET and return the decoded JSON body."""
        await self._throttle()
        url = f"{self._base_url}/{path}"
        query = {**params, "apikey": self._api_key}

        try:
            response = await self._http.get(url, params=query)
        except httpx.TimeoutException as exc:
            self._logger.warning("ticketmaster_timeout", path=path, error=str(exc))
            raise ProviderUnavailableError(
                message=f"Ticketmaster request to {path} timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            self._logger.warning("ticketmaster_transport_error", path=path, error=str(exc))
            raise ProviderUnavailableError(
                message=f"Ticketmaster request to {path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            self._logger.warning("ticketmaster_rate_limited", path=path)
            raise RateLimitError(
                message="Ticketmaster rate limit exceeded",
                provider_name=self.get_provider_name(),
            )

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._logger.warning(
                "ticketmaster_http_error",
                path=path,
                status_code=response.status_code,
            )
            raise ProviderUnavailableError(
                message=f"Ticketmaster returned HTTP {response.status_code} for {path}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise EventCatalogError(
                message=f"Ticketmaster returned a non-JSON body for {path}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not isinstance(body, dict):
            raise EventCatalogError(
                message=f"Unexpected Ticketmaster payload type for {path}: {type(body).__name__}",
                provider_name=self.get_provider_name(),
            )
        return body

    def _embedded_items(self, body: dict[str, Any], key: str, path: str) -> list[Any]:
        embedded = body.get("_embedded") or {}
        if not isinstance(embedded, dict):
            raise EventCatalogError(
                message=f"Unexpected _embedded block for {path}: {type(embedded).__name__}",
                provider_name=self.get_provider_name(),
            )
        items = embedded.get(key) or []
        if not isinstance(items, list):
            raise EventCatalogError(
                message=f"Unexpected {key} list for {path}: {type(items).__name__}",
                provider_name=self.get_provider_name(),
            )
        return items

    # -- IEventCatalogProvider implementation ----------------------------------

    async def search_by_name(self, name: str) -> list[Attraction]:
        body = await self._get(
            "attractions.json",
            {
                "keyword": name,
                "classificationName": "music",
                "size": _ATTRACTION_PAGE_SIZE,
            },
        )
        items = self._embedded_items(body, "attractions", "attractions.json")

        attractions: list[Attraction] = []
        for item in items:
            try:
                if item.get("id"):
                    attractions.append(Attraction.from_discovery(item))
            except (AttributeError, TypeError, ValueError) as exc:
                self._logger.warning(
                    "ticketmaster_attraction_unparseable",
                    artist=name,
                    error=str(exc),
                )
        self._logger.debug(
            "ticketmaster_attraction_search_complete",
            artist=name,
            result_count=len(attractions),
        )
        return attractions

    async def events_for(self, attraction_id: str, since: date | None = None) -> list[RawEvent]:
        params: dict[str, Any] = {
            "attractionId": attraction_id,
            "sort": "date,asc",
            "size": _EVENT_PAGE_SIZE,
        }
        if since is not None:
            params["startDateTime"] = f"{since.isoformat()}T00:00:00Z"

        body = await self._get("events.json", params)
        items = self._embedded_items(body, "events", "events.json")

        events: list[RawEvent] = []
        for item in items:
            try:
                event = RawEvent.from_discovery(item)
            except (AttributeError, TypeError, ValueError) as exc:
                self._logger.warning(
                    "ticketmaster_event_unparseable",
                    attraction_id=attraction_id,
                    error=str(exc),
                )
                continue
            if event is not None:
                events.append(event)

        self._logger.debug(
            "ticketmaster_events_fetched",
            attraction_id=attraction_id,
            raw_count=len(items),
            parsed_count=len(events),
        )
        return events

    def get_provider_name(self) -> str:
        return "ticketmaster"
