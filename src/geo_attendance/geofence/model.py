from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Geofence:
    """Circular workplace boundary."""

    center: GeoPoint
    radius_meters: float
    name: str = "Workplace"

    def contains(self, point: GeoPoint) -> bool:
        from .validator import is_within_geofence

        return is_within_geofence(point, self.center, self.radius_meters)


@dataclass(frozen=True)
class LocationFix:
    """A position as reported by a LocationProvider."""

    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: Optional[float] = None
    address: Optional[str] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


@dataclass(frozen=True)
class RecordedLocation:
    """Location kept on an attendance entry."""

    latitude: float
    longitude: float
    address: Optional[str] = None

    @classmethod
    def from_fix(cls, fix: LocationFix) -> "RecordedLocation":
        return cls(latitude=fix.latitude, longitude=fix.longitude, address=fix.address)
