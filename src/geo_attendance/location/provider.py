from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from ..common.datetime_utils import now_local
from ..core.enums import PermissionStatus
from ..geofence.model import LocationFix


class LocationProvider(Protocol):
    """Boundary to the device/OS positioning service."""

    def check_permission(self) -> PermissionStatus:
        raise NotImplementedError

    def request_permission(self) -> PermissionStatus:
        raise NotImplementedError

    def get_current_location(self) -> LocationFix:
        raise NotImplementedError


class Geocoder(Protocol):
    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        raise NotImplementedError


class PhotoCapture(Protocol):
    def capture(self) -> Optional[str]:
        """Return an opaque blob reference, or None when nothing was captured."""
        raise NotImplementedError


@dataclass
class FixedLocationProvider:
    """Deterministic provider that always reports the same coordinate.

    Used by the development configuration and by tests. ``timestamp_factory``
    stamps each fix, so a FixedClock can be plugged in.
    """

    latitude: float
    longitude: float
    accuracy: Optional[float] = 10.0
    permission: PermissionStatus = PermissionStatus.GRANTED
    grant_on_request: bool = True
    timestamp_factory: Callable = field(default=now_local)

    def check_permission(self) -> PermissionStatus:
        return self.permission

    def request_permission(self) -> PermissionStatus:
        if self.permission != PermissionStatus.GRANTED and self.grant_on_request:
            self.permission = PermissionStatus.GRANTED
        return self.permission

    def get_current_location(self) -> LocationFix:
        return LocationFix(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp=self.timestamp_factory(),
        )
