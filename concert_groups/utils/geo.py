"""Great-circle distance helpers.

Venues and users can be arbitrarily far apart, so planar distance on raw
latitude/longitude is wrong by a wide margin away from the equator.  The
haversine formula on a spherical Earth is accurate to ~0.5%, which is far
below the resolution of a "within 50 miles" proximity check.
"""

from __future__ import annotations

import math

from concert_groups.models.social import Coordinates

# Mean Earth radius (IUGG) in statute miles.
EARTH_RADIUS_MILES = 3958.7613


def great_circle_miles(origin: Coordinates, destination: Coordinates) -> float:
    """Return the haversine distance between two points in miles."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(destination.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(destination.longitude - origin.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # Clamp: floating-point error can push h a hair above 1.0 for antipodes.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(h))
