"""Great-circle distance helpers."""

from __future__ import annotations

from typing import Optional

import numpy as np

EARTH_RADIUS_MILES = 3959.0


def has_coordinates(lat: Optional[float], lng: Optional[float]) -> bool:
    return bool(lat) and bool(lng)


def haversine_miles(lat1, lng1, lat2, lng2):
    """Haversine distance in miles, rounded to two decimals.

    Accepts scalars or numpy arrays so the local matcher can compute a whole
    column of distances at once.
    """

    lat1, lng1, lat2, lng2 = (np.radians(np.asarray(v, dtype=float)) for v in (lat1, lng1, lat2, lng2))
    d_lat = lat2 - lat1
    d_lng = lng2 - lng1
    a = np.sin(d_lat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(d_lng / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return np.round(EARTH_RADIUS_MILES * c, 2)


def distance_between(
    lat1: Optional[float], lng1: Optional[float], lat2: Optional[float], lng2: Optional[float]
) -> Optional[float]:
    """Distance in miles, or ``None`` when either endpoint lacks coordinates."""

    if not has_coordinates(lat1, lng1) or not has_coordinates(lat2, lng2):
        return None
    return float(haversine_miles(lat1, lng1, lat2, lng2))


__all__ = ["EARTH_RADIUS_MILES", "distance_between", "has_coordinates", "haversine_miles"]
