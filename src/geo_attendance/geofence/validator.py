"""Geofence validation helpers.

Pure functions for great-circle distance (haversine), radius containment and
GPS accuracy checks. No I/O happens here; location acquisition lives in
``geo_attendance.location``.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import EARTH_RADIUS_METERS
from .model import GeoPoint, LocationFix


def distance_meters(p1: GeoPoint, p2: GeoPoint) -> float:
    """Calculate the great-circle distance between two points on Earth.

    Args:
        p1: First point, latitude/longitude in degrees
        p2: Second point, latitude/longitude in degrees

    Returns:
        Distance between the two points in meters
    """
    phi1 = math.radians(p1.latitude)
    phi2 = math.radians(p2.latitude)
    dphi = math.radians(p2.latitude - p1.latitude)
    dlambda = math.radians(p2.longitude - p1.longitude)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push `a` marginally above 1 for antipodal points.
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def is_within_geofence(point: GeoPoint, center: GeoPoint, radius_meters: float) -> bool:
    """True when ``point`` lies inside or exactly on the circle around ``center``."""
    return distance_meters(point, center) <= radius_meters


def has_sufficient_accuracy(accuracy_meters: Optional[float], required_meters: float) -> bool:
    """An unknown accuracy is never trusted."""
    if accuracy_meters is None:
        return False
    return accuracy_meters <= required_meters


def is_fix_recent(fix: LocationFix, now: datetime, max_age_minutes: float) -> bool:
    return now - fix.timestamp <= timedelta(minutes=max_age_minutes)


def format_location(latitude: float, longitude: float, address: Optional[str] = None) -> str:
    if address:
        return address
    return f"{latitude:.6f}, {longitude:.6f}"
