"""Unit tests for TicketmasterEventCatalogProvider with a mocked httpx client."""

from __future__ import annotations

from datetime import date, time
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from concert_groups.providers.event_catalog.ticketmaster_provider import (
    TicketmasterEventCatalogProvider,
)
from concert_groups.services.event_fetcher import EventFetcher
from concert_groups.utils.errors import (
    EventCatalogError,
    ProviderUnavailableError,
    RateLimitError,
)

_BASE = "https://app.ticketmaster.com/discovery/v2"


def _response(
    status_code: int = 200,
    json: Any = None,
    content: bytes | None = None,
) -> httpx.Response:
    request = httpx.Request("GET", f"{_BASE}/events.json")
    if content is not None:
        return httpx.Response(status_code, content=content, request=request)
    return httpx.Response(status_code, json=json if json is not None else {}, request=request)


def _provider(mock_client: AsyncMock) -> TicketmasterEventCatalogProvider:
    return TicketmasterEventCatalogProvider(
        http_client=mock_client,
        api_key="test-key",
        min_interval=0.0,
    )


ATTRACTIONS_PAYLOAD = {
    "_embedded": {
        "attractions": [
            {
                "id": "K8vZ9171ob7",
                "name": "Radiohead",
                "url": "https://www.ticketmaster.com/radiohead",
            },
            {"id": "K8vZ917abcd", "name": "Radiohead Tribute"},
            {"name": "no id, skipped"},
        ]
    }
}

EVENTS_PAYLOAD = {
    "_embedded": {
        "events": [
            {
                "id": "vvG1iZ9pNK",
                "name": "Radiohead: World Tour",
                "url": "https://www.ticketmaster.com/event/vvG1iZ9pNK",
                "dates": {"start": {"localDate": "2099-06-01", "localTime": "19:30:00"}},
                "_embedded": {
                    "venues": [
                        {
                            "id": "KovZpZA7AAEA",
                            "name": "Madison Square Garden",
                            "city": {"name": "New York"},
                            "state": {"name": "New York", "stateCode": "NY"},
                            "country": {"countryCode": "US"},
                            "location": {"longitude": "-73.99160060", "latitude": "40.75097220"},
                        }
                    ]
                },
            },
            {
                "id": "tba-event",
                "name": "Date TBA",
                "dates": {"start": {"dateTBA": True}},
            },
            {
                "id": "no-venue",
                "name": "Festival slot",
                "dates": {"start": {"localDate": "2099-07-01"}},
            },
        ]
    }
}


class TestSearchByName:
    @pytest.mark.asyncio
    async def test_parses_attractions(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json=ATTRACTIONS_PAYLOAD))

        attractions = await _provider(mock_client).search_by_name("Radiohead")

        assert [a.attraction_id for a in attractions] == ["K8vZ9171ob7", "K8vZ917abcd"]
        assert attractions[0].name == "Radiohead"
        assert attractions[0].url == "https://www.ticketmaster.com/radiohead"

    @pytest.mark.asyncio
    async def test_sends_keyword_music_filter_and_key(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json={}))

        await _provider(mock_client).search_by_name("Radiohead")

        args, kwargs = mock_client.get.call_args
        assert args[0] == f"{_BASE}/attractions.json"
        assert kwargs["params"]["keyword"] == "Radiohead"
        assert kwargs["params"]["classificationName"] == "music"
        assert kwargs["params"]["apikey"] == "test-key"

    @pytest.mark.asyncio
    async def test_empty_page_yields_no_attractions(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json={"page": {"totalElements": 0}}))

        assert await _provider(mock_client).search_by_name("Nobody") == []


class TestEventsFor:
    @pytest.mark.asyncio
    async def test_parses_events_and_skips_undated(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json=EVENTS_PAYLOAD))

        events = await _provider(mock_client).events_for("K8vZ9171ob7")

        assert [e.event_id for e in events] == ["vvG1iZ9pNK", "no-venue"]
        first = events[0]
        assert first.event_date == date(2099, 6, 1)
        assert first.event_time == time(19, 30)
        assert first.venue_id == "KovZpZA7AAEA"
        assert first.venue_city == "New York"
        assert first.venue_state == "NY"
        assert first.venue_country == "US"
        assert first.venue_latitude == pytest.approx(40.7509722)
        assert first.venue_longitude == pytest.approx(-73.9916006)
        assert events[1].venue_id is None

    @pytest.mark.asyncio
    async def test_since_becomes_start_date_time(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json={}))

        await _provider(mock_client).events_for("K8vZ9171ob7", since=date(2030, 3, 15))

        args, kwargs = mock_client.get.call_args
        assert args[0] == f"{_BASE}/events.json"
        assert kwargs["params"]["attractionId"] == "K8vZ9171ob7"
        assert kwargs["params"]["startDateTime"] == "2030-03-15T00:00:00Z"
        assert kwargs["params"]["sort"] == "date,asc"

    @pytest.mark.asyncio
    async def test_no_since_omits_start_date_time(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json={}))

        await _provider(mock_client).events_for("K8vZ9171ob7")

        _, kwargs = mock_client.get.call_args
        assert "startDateTime" not in kwargs["params"]


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_429_is_rate_limit(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(status_code=429))

        with pytest.raises(RateLimitError) as exc_info:
            await _provider(mock_client).events_for("K8vZ9171ob7")
        assert str(exc_info.value).startswith("[ticketmaster]")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 500, 503])
    async def test_http_errors_are_provider_unavailable(self, status_code: int) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(status_code=status_code))

        with pytest.raises(ProviderUnavailableError):
            await _provider(mock_client).search_by_name("Radiohead")

    @pytest.mark.asyncio
    async def test_timeout_is_provider_unavailable(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(ProviderUnavailableError, match="timed out"):
            await _provider(mock_client).search_by_name("Radiohead")

    @pytest.mark.asyncio
    async def test_transport_error_is_provider_unavailable(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderUnavailableError):
            await _provider(mock_client).events_for("K8vZ9171ob7")

    @pytest.mark.asyncio
    async def test_non_json_body_is_catalog_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(content=b"<html>maintenance</html>"))

        with pytest.raises(EventCatalogError):
            await _provider(mock_client).events_for("K8vZ9171ob7")

    @pytest.mark.asyncio
    async def test_non_object_json_is_catalog_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json=[1, 2, 3]))

        with pytest.raises(EventCatalogError):
            await _provider(mock_client).search_by_name("Radiohead")


# ---------------------------------------------------------------------------
# Malformed pages
# ---------------------------------------------------------------------------

GOOD_EVENT = EVENTS_PAYLOAD["_embedded"]["events"][0]

BAD_VENUE_EVENT = {
    "id": "bad-venue",
    "name": "Radiohead: Broken Listing",
    "dates": {"start": {"localDate": "2099-06-02"}},
    "_embedded": {
        "venues": [
            {
                "id": "KovZpZA7AAEA",
                "city": "NYC",
                "location": {"longitude": "-73.99", "latitude": "40.75"},
            }
        ]
    },
}


def _route(attractions: Any, events: Any) -> AsyncMock:
    async def _get(url: str, **kwargs: Any) -> httpx.Response:
        if url.endswith("attractions.json"):
            return _response(json=attractions)
        return _response(json=events)

    mock_client = AsyncMock()
    mock_client.get = AsyncMock(side_effect=_get)
    return mock_client


class TestMalformedPayloads:
    @pytest.mark.asyncio
    async def test_event_with_string_city_is_skipped(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(
            return_value=_response(json={"_embedded": {"events": [BAD_VENUE_EVENT, GOOD_EVENT]}})
        )

        events = await _provider(mock_client).events_for("K8vZ9171ob7")

        assert [e.event_id for e in events] == ["vvG1iZ9pNK"]

    @pytest.mark.asyncio
    async def test_non_object_event_is_skipped(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(
            return_value=_response(json={"_embedded": {"events": ["oops", GOOD_EVENT]}})
        )

        events = await _provider(mock_client).events_for("K8vZ9171ob7")

        assert [e.event_id for e in events] == ["vvG1iZ9pNK"]

    @pytest.mark.asyncio
    async def test_non_object_attraction_is_skipped(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(
            return_value=_response(
                json={"_embedded": {"attractions": [42, {"id": "K1", "name": "Radiohead"}]}}
            )
        )

        attractions = await _provider(mock_client).search_by_name("Radiohead")

        assert [a.attraction_id for a in attractions] == ["K1"]

    @pytest.mark.asyncio
    async def test_embedded_list_is_catalog_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_response(json={"_embedded": [GOOD_EVENT]}))

        with pytest.raises(EventCatalogError):
            await _provider(mock_client).events_for("K8vZ9171ob7")

    @pytest.mark.asyncio
    async def test_events_not_a_list_is_catalog_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(
            return_value=_response(json={"_embedded": {"attractions": {"id": "K1"}}})
        )

        with pytest.raises(EventCatalogError):
            await _provider(mock_client).search_by_name("Radiohead")

    @pytest.mark.asyncio
    async def test_fetcher_keeps_good_events_from_a_bad_page(self) -> None:
        mock_client = _route(
            {"_embedded": {"attractions": [{"id": "K1", "name": "Radiohead"}]}},
            {"_embedded": {"events": [BAD_VENUE_EVENT, GOOD_EVENT]}},
        )
        fetcher = EventFetcher(_provider(mock_client), clock=lambda: date(2030, 3, 15))

        concerts = await fetcher.events_for("Radiohead")

        assert [c.event_id for c in concerts] == ["vvG1iZ9pNK"]

    @pytest.mark.asyncio
    async def test_fetcher_degrades_to_no_events_on_bad_shape(self) -> None:
        mock_client = _route(
            {"_embedded": {"attractions": [{"id": "K1", "name": "Radiohead"}]}},
            {"_embedded": [BAD_VENUE_EVENT]},
        )
        fetcher = EventFetcher(_provider(mock_client), clock=lambda: date(2030, 3, 15))

        assert await fetcher.events_for("Radiohead") == []


def test_provider_name() -> None:
    assert _provider(AsyncMock()).get_provider_name() == "ticketmaster"
