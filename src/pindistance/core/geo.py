from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Protocol

from geopy.distance import geodesic

"""
Geospatial helpers.

Distances are computed on the WGS-84 ellipsoid through geopy (Karney's geodesic
algorithm). `haversine_m` stays around as the spherical approximation used for quick
sanity checks and log lines.
"""


class LatLon(Protocol):
    """Anything carrying a latitude/longitude pair in decimal degrees."""

    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


def haversine_m(a: LatLon, b: LatLon) -> float:
    """Compute great-circle distance in meters between two points (spherical Earth)."""
    r = 6_371_000
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * r * asin(sqrt(h))


def geodesic_m(a: LatLon, b: LatLon) -> float:
    """Compute the WGS-84 geodesic surface distance in meters between two points."""
    return float(geodesic((a.lat, a.lon), (b.lat, b.lon)).meters)
