"""Domain models — re-exports all public model classes.

The models are organized across four submodules by domain concern:
    - social.py   — Users' locations, friendship edges, shared artists
    - concert.py  — Catalog attractions, raw events, derived concerts
    - group.py    — Persisted concert groups and merge-resolution results
    - run.py      — Per-artist outcomes and the batch run report
"""

from __future__ import annotations

from concert_groups.models.concert import Attraction, Concert, RawEvent
from concert_groups.models.group import (
    MIN_GROUP_SIZE,
    BusinessKey,
    ConcertGroup,
    GroupResolution,
    ResolutionAction,
)
from concert_groups.models.run import ArtistOutcome, ArtistStatus, BatchRunReport
from concert_groups.models.social import (
    Coordinates,
    FriendshipEdge,
    FriendshipStatus,
    NearbyUser,
    SharedArtist,
    canonical_pair,
)

__all__ = [
    # social
    "Coordinates",
    "FriendshipEdge",
    "FriendshipStatus",
    "NearbyUser",
    "SharedArtist",
    "canonical_pair",
    # concert
    "Attraction",
    "Concert",
    "RawEvent",
    # group
    "MIN_GROUP_SIZE",
    "BusinessKey",
    "ConcertGroup",
    "GroupResolution",
    "ResolutionAction",
    # run
    "ArtistOutcome",
    "ArtistStatus",
    "BatchRunReport",
]
