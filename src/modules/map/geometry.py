"""Great-circle distance and discrete centrality helpers."""

import math
from typing import Protocol, Sequence, TypeVar

import numpy as np

EARTH_RADIUS_M = 6_371_008.8


class HasCoordinates(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


P = TypeVar("P", bound=HasCoordinates)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in meters."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat, dlon = math.radians(lat2 - lat1), math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2
    )
    # rounding can push a a hair past 1 for antipodal points
    a = min(1.0, a)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance(a: HasCoordinates, b: HasCoordinates) -> float:
    """Distance in meters between two objects carrying latitude/longitude."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def total_distance(point: HasCoordinates, points: Sequence[HasCoordinates]) -> float:
    return sum(distance(point, other) for other in points)


def _haversine_row(
    index: int, lats_r: np.ndarray, lons_r: np.ndarray, cos_lats: np.ndarray
) -> np.ndarray:
    """Distances in meters from point ``index`` to every point."""
    a = (
        np.sin((lats_r - lats_r[index]) / 2) ** 2
        + cos_lats[index] * cos_lats * np.sin((lons_r - lons_r[index]) / 2) ** 2
    )
    a = np.minimum(a, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def most_central(points: Sequence[P]) -> P:
    """Return the member minimising the summed distance to all other members.

    This is the discrete 1-median, never a synthetic centroid. Ties go to the
    first point in input order. Quadratic in the group size, one vectorised
    row of distances per candidate.
    """
    if not points:
        raise ValueError("most_central() requires at least one point")
    if len(points) == 1:
        return points[0]

    lats_r = np.radians(np.array([p.latitude for p in points], dtype=np.float64))
    lons_r = np.radians(np.array([p.longitude for p in points], dtype=np.float64))
    cos_lats = np.cos(lats_r)
    totals = np.fromiter(
        (
            _haversine_row(i, lats_r, lons_r, cos_lats).sum()
            for i in range(len(points))
        ),
        dtype=np.float64,
        count=len(points),
    )
    # argmin returns the first minimum
    return points[int(np.argmin(totals))]


def max_distance_from(center: HasCoordinates, points: Sequence[HasCoordinates]) -> float:
    if not points:
        return 0.0
    return max(distance(center, p) for p in points)
