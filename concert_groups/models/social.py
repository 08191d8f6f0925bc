"""Social-graph and location models consumed by the formation engine.

All models use frozen config (immutable) per project convention.  They are
the in-memory shapes of what the User Directory, Friendship Graph Store and
Listening-History Provider hand to the engine.

Ordering discipline:
    Friendship edges are stored with the lexicographically smaller user id
    first.  Every write AND every lookup goes through :func:`canonical_pair`
    so that an accepted edge can never be "lost" by querying it in the
    opposite orientation.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinates(BaseModel):
    """A WGS-84 latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class FriendshipStatus(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Lifecycle of a friend relation between two users."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Return ``(lower_id, higher_id)`` for an unordered user pair.

    Raises
    ------
    ValueError
        If both ids are equal (a user cannot befriend themselves).
    """
    if user_a == user_b:
        msg = f"A friendship needs two distinct users, got {user_a!r} twice"
        raise ValueError(msg)
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class FriendshipEdge(BaseModel):
    """One row of the friendship graph, stored in canonical order."""

    model_config = ConfigDict(frozen=True)

    user_a: str = Field(description="Lexicographically smaller user id.")
    user_b: str = Field(description="Lexicographically larger user id.")
    status: FriendshipStatus = FriendshipStatus.PENDING
    a_blocked_b: bool = False
    b_blocked_a: bool = False

    @model_validator(mode="after")
    def _check_order(self) -> FriendshipEdge:
        if self.user_a >= self.user_b:
            msg = f"Edge must be stored as (lower, higher), got ({self.user_a!r}, {self.user_b!r})"
            raise ValueError(msg)
        return self

    @property
    def is_blocked(self) -> bool:
        return self.a_blocked_b or self.b_blocked_a

    @property
    def connects(self) -> bool:
        """True when this edge counts as a friendship for clustering."""
        return self.status == FriendshipStatus.ACCEPTED and not self.is_blocked

    def as_pair(self) -> tuple[str, str]:
        return (self.user_a, self.user_b)


class NearbyUser(BaseModel):
    """A user who passed the proximity filter, with their distance to the venue."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    distance_miles: float = Field(ge=0.0)


class SharedArtist(BaseModel):
    """An artist followed by at least two distinct users.

    One SharedArtist is one unit of work for the batch orchestrator.
    """

    model_config = ConfigDict(frozen=True)

    artist_id: str = Field(description="Internal artist id (streaming-provider id).")
    artist_name: str | None = Field(
        default=None, description="Display name used to search the event catalog."
    )
    user_ids: frozenset[str] = Field(description="Distinct followers of the artist.")

    @property
    def search_name(self) -> str:
        """Name to search the catalog with, falling back to the raw id."""
        return self.artist_name or self.artist_id
