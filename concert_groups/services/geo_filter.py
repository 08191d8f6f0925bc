"""Proximity filter: which users live close enough to a venue.

Distances are great-circle (haversine) miles over a spherical Earth, which is
well within the precision a 50-mile default radius needs.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from concert_groups.interfaces.user_directory import IUserDirectory
from concert_groups.models.social import Coordinates, NearbyUser
from concert_groups.utils.geo import great_circle_miles
from concert_groups.utils.logging import get_logger

DEFAULT_RADIUS_MILES = 50.0


class GeoFilter:
    """Keeps the users within a radius of a point, nearest first."""

    def __init__(self, user_directory: IUserDirectory) -> None:
        self._users = user_directory
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def nearby(
        self,
        center: Coordinates,
        candidates: Iterable[str],
        radius_miles: float = DEFAULT_RADIUS_MILES,
    ) -> list[NearbyUser]:
        """Return the candidates within *radius_miles* of *center*.

        Parameters
        ----------
        center:
            The venue location.
        candidates:
            User ids to consider.  Not mutated; duplicates collapse.
        radius_miles:
            Inclusive radius.  Must be positive.

        Returns
        -------
        list[NearbyUser]
            Ordered by ascending distance, ties broken by user id.  Users
            with no stored location are silently excluded.
        """
        if radius_miles <= 0:
            msg = f"radius_miles must be positive, got {radius_miles}"
            raise ValueError(msg)

        pool = sorted(set(candidates))
        if not pool:
            return []

        locations = await self._users.locations_of(pool)

        nearby: list[NearbyUser] = []
        for user_id in pool:
            location = locations.get(user_id)
            if location is None:
                continue
            distance = great_circle_miles(location, center)
            if distance <= radius_miles:
                nearby.append(NearbyUser(user_id=user_id, distance_miles=distance))

        nearby.sort(key=lambda n: (n.distance_miles, n.user_id))
        self._logger.debug(
            "geo_filter_applied",
            candidates=len(pool),
            located=len(locations),
            within_radius=len(nearby),
            radius_miles=radius_miles,
        )
        return nearby
