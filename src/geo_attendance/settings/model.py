from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import FrozenSet

from ..core.constants import DEFAULT_LOCATION_MAX_AGE_MINUTES, DEFAULT_LOCATION_TIMEOUT_SECONDS
from ..geofence.model import GeoPoint, Geofence


@dataclass(frozen=True)
class AttendanceSettings:
    """Organization-wide attendance rules.

    Read-only to this package: one snapshot is taken per operation and never
    mutated. ``working_days`` uses ISO weekday numbers (Monday=1 .. Sunday=7).
    """

    check_in_time: time = time(9, 0)
    check_out_time: time = time(18, 0)
    late_threshold_minutes: int = 15
    half_day_threshold_hours: float = 4
    working_days: FrozenSet[int] = frozenset({1, 2, 3, 4, 5})
    holidays: FrozenSet[date] = frozenset()
    location_required: bool = True
    photo_required: bool = False
    gps_accuracy_meters: float = 100
    workplace: Geofence = field(default_factory=lambda: Geofence(center=GeoPoint(40.7128, -74.0060), radius_meters=100))
    location_timeout_seconds: float = DEFAULT_LOCATION_TIMEOUT_SECONDS
    location_max_age_minutes: float = DEFAULT_LOCATION_MAX_AGE_MINUTES
