"""Pydantic v2 models for event-catalog data.

``Attraction`` and ``RawEvent`` mirror what the catalog returns (Ticketmaster
Discovery API v2 shapes, normalized).  ``Concert`` is the derived record the
engine works with: it always has a venue id and venue coordinates, and is
rebuilt on every run (never cached).
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from concert_groups.models.social import Coordinates


class Attraction(BaseModel):
    """A performer entity in the external catalog."""

    model_config = ConfigDict(frozen=True)

    attraction_id: str
    name: str
    url: str | None = None

    @classmethod
    def from_discovery(cls, item: dict[str, Any]) -> Attraction:
        return cls(
            attraction_id=str(item.get("id", "")),
            name=(item.get("name") or "").strip(),
            url=item.get("url"),
        )


class RawEvent(BaseModel):
    """A single catalog event, before the engine filters and normalizes it."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    name: str = ""
    event_date: date
    event_time: time | None = None
    venue_id: str | None = None
    venue_name: str | None = None
    venue_city: str | None = None
    venue_state: str | None = None
    venue_country: str | None = None
    venue_latitude: float | None = None
    venue_longitude: float | None = None
    ticket_url: str | None = None

    @classmethod
    def from_discovery(cls, item: dict[str, Any]) -> RawEvent | None:
        """Parse one element of ``_embedded.events`` from the Discovery API.

        Returns ``None`` for events without a usable local date, which the
        catalog emits for "date TBA" listings.
        """
        start = (item.get("dates") or {}).get("start") or {}
        date_str = start.get("localDate")
        if not date_str:
            return None
        try:
            event_date = date.fromisoformat(date_str)
        except ValueError:
            return None

        event_time: time | None = None
        local_time = start.get("localTime")
        if local_time:
            try:
                event_time = datetime.strptime(local_time, "%H:%M:%S").time()
            except ValueError:
                event_time = None

        venues = (item.get("_embedded") or {}).get("venues") or []
        venue = venues[0] if venues else {}
        location = venue.get("location") or {}

        return cls(
            event_id=str(item.get("id", "")),
            name=item.get("name") or "",
            event_date=event_date,
            event_time=event_time,
            venue_id=venue.get("id"),
            venue_name=venue.get("name"),
            venue_city=(venue.get("city") or {}).get("name"),
            venue_state=(venue.get("state") or {}).get("stateCode")
            or (venue.get("state") or {}).get("name"),
            venue_country=(venue.get("country") or {}).get("countryCode"),
            venue_latitude=_to_float(location.get("latitude")),
            venue_longitude=_to_float(location.get("longitude")),
            ticket_url=item.get("url"),
        )


class Concert(BaseModel):
    """An upcoming event the engine can form groups around."""

    model_config = ConfigDict(frozen=True)

    attraction_id: str = Field(description="Catalog id of the performing artist.")
    event_id: str
    name: str = ""
    venue_id: str
    venue_name: str = ""
    venue_city: str = ""
    venue_state: str | None = None
    venue_country: str = "US"
    venue_location: Coordinates
    concert_date: date
    concert_time: time | None = None
    ticket_url: str | None = None

    @classmethod
    def from_raw(cls, attraction_id: str, raw: RawEvent) -> Concert | None:
        """Build a Concert, or ``None`` when the venue cannot be located."""
        if not raw.venue_id or raw.venue_latitude is None or raw.venue_longitude is None:
            return None
        try:
            location = Coordinates(latitude=raw.venue_latitude, longitude=raw.venue_longitude)
        except ValueError:
            return None
        return cls(
            attraction_id=attraction_id,
            event_id=raw.event_id,
            name=raw.name,
            venue_id=raw.venue_id,
            venue_name=raw.venue_name or "",
            venue_city=raw.venue_city or "",
            venue_state=raw.venue_state,
            venue_country=raw.venue_country or "US",
            venue_location=location,
            concert_date=raw.event_date,
            concert_time=raw.event_time,
            ticket_url=raw.ticket_url,
        )


def _to_float(value: Any) -> float | None:
    # The Discovery API serializes coordinates as strings.
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
