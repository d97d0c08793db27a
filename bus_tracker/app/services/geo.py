"""
Geospatial utilities.

Haversine distances and nearest-point search over small candidate sets.
All functions are pure.
"""

from math import atan2, cos, radians, sin, sqrt
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

EARTH_RADIUS_KM = 6371.0

T = TypeVar("T")
Point = Tuple[float, float]


def _as_point(candidate) -> Point:
    return candidate[0], candidate[1]


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance in kilometers on a sphere of radius 6371 km
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # rounding can push a past 1.0 for near-antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def nearest(
    point: Point,
    candidates: Iterable[T],
    key: Callable[[T], Point] = _as_point,
) -> Optional[Tuple[T, float]]:
    """
    Find the candidate closest to point.

    Linear scan; on equal distances the first candidate seen wins.

    Args:
        point: (lat, lon) reference point
        candidates: Objects to search, (lat, lon) pairs by default
        key: Extracts (lat, lon) from a candidate

    Returns:
        (candidate, distance_km), or None when there are no candidates
    """
    found = False
    best = None
    best_distance = 0.0
    for candidate in candidates:
        lat, lon = key(candidate)
        d = distance_km(point[0], point[1], lat, lon)
        if not found or d < best_distance:
            found = True
            best = candidate
            best_distance = d

    if not found:
        return None
    return best, best_distance


def within_radius(
    point: Point,
    candidates: Iterable[T],
    radius_km: float,
    key: Callable[[T], Point] = _as_point,
) -> List[Tuple[T, float]]:
    """Candidates within radius_km of point, closest first."""
    matches: List[Tuple[T, float]] = []
    for candidate in candidates:
        lat, lon = key(candidate)
        d = distance_km(point[0], point[1], lat, lon)
        if d <= radius_km:
            matches.append((candidate, d))
    # sorted() is stable, so equal distances keep input order
    return sorted(matches, key=lambda match: match[1])
