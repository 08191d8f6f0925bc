"""Persisted concert-group models and merge-resolution results.

A ConcertGroup is identified by its *business key* ``(artist_id, venue_id,
concert_date)``; the store guarantees at most one group per key.  Groups are
never deleted by the engine and their membership only grows.
"""

from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Smallest membership a group may be created with.  Applies at creation
# time only: merging a single friend into an existing group is fine.
MIN_GROUP_SIZE = 2


class BusinessKey(BaseModel):
    """The ``(artist, venue, date)`` triple that names at most one group."""

    model_config = ConfigDict(frozen=True)

    artist_id: str
    venue_id: str
    concert_date: date


class ConcertGroup(BaseModel):
    """A persisted group row with its venue snapshot."""

    model_config = ConfigDict(frozen=True)

    group_id: int
    artist_id: str
    venue_id: str
    venue_name: str = ""
    venue_city: str = ""
    venue_state: str | None = None
    venue_country: str = "US"
    venue_latitude: float | None = None
    venue_longitude: float | None = None
    concert_date: date
    concert_time: time | None = None
    ticket_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def business_key(self) -> BusinessKey:
        return BusinessKey(
            artist_id=self.artist_id,
            venue_id=self.venue_id,
            concert_date=self.concert_date,
        )


class ResolutionAction(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """What the merge resolver did with a freshly computed cluster."""

    CREATED = "created"      # No group existed for the key; a new one was made
    EXTENDED = "extended"    # Existing group gained at least one member
    UNCHANGED = "unchanged"  # Nothing new to add (or nobody qualified)


class GroupResolution(BaseModel):
    """Outcome of reconciling one cluster against the store."""

    model_config = ConfigDict(frozen=True)

    group_id: int
    action: ResolutionAction
    added_members: frozenset[str] = Field(
        default_factory=frozenset,
        description="Users written to the group by this resolution.",
    )
    left_out: frozenset[str] = Field(
        default_factory=frozenset,
        description="Candidates with no friendship path to the group this run.",
    )
