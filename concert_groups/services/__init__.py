"""Stateless pipeline stages used by the formation job.

    SharedInterestSelector — artists followed by two or more users
    EventFetcher           — catalog lookup and concert normalization
    GeoFilter              — followers within the radius of a venue
    FriendshipClusterer    — connected friend components (arena union-find)
    MergeResolver          — create-or-extend against the group store
"""

from concert_groups.services.event_fetcher import EventFetcher
from concert_groups.services.friendship_clusterer import DisjointSet, FriendshipClusterer
from concert_groups.services.geo_filter import GeoFilter
from concert_groups.services.merge_resolver import MergeResolver
from concert_groups.services.shared_interest_selector import SharedInterestSelector

__all__ = [
    "DisjointSet",
    "EventFetcher",
    "FriendshipClusterer",
    "GeoFilter",
    "MergeResolver",
    "SharedInterestSelector",
]
