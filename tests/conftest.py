from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime

import pytest

from geo_attendance.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from geo_attendance.attendance.service import AttendanceService
from geo_attendance.attendance.store import AttendanceStore
from geo_attendance.common.datetime_utils import FixedClock
from geo_attendance.core.constants import EARTH_RADIUS_METERS
from geo_attendance.geofence.model import GeoPoint, LocationFix
from geo_attendance.location.provider import FixedLocationProvider
from geo_attendance.location.reader import LocationReader
from geo_attendance.settings.model import AttendanceSettings
from geo_attendance.settings.source import StaticSettingsSource

WORKPLACE = GeoPoint(40.7128, -74.0060)


def north_of(point: GeoPoint, meters: float) -> GeoPoint:
    """Point ``meters`` due north of ``point`` along the meridian."""
    return GeoPoint(point.latitude + math.degrees(meters / EARTH_RADIUS_METERS), point.longitude)


def fix_at(point: GeoPoint, when: datetime, accuracy: float | None = 10.0) -> LocationFix:
    return LocationFix(latitude=point.latitude, longitude=point.longitude, accuracy=accuracy, timestamp=when)


@pytest.fixture
def fixed_now() -> datetime:
    # Monday
    return datetime(2026, 2, 2, 8, 55, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def settings() -> AttendanceSettings:
    return AttendanceSettings()


@pytest.fixture
def repo() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository()


@pytest.fixture
def store(repo, clock) -> AttendanceStore:
    return AttendanceStore(repo, clock=clock)


@pytest.fixture
def provider(clock) -> FixedLocationProvider:
    return FixedLocationProvider(
        latitude=WORKPLACE.latitude,
        longitude=WORKPLACE.longitude,
        accuracy=10.0,
        timestamp_factory=clock.now,
    )


@pytest.fixture
def make_service(store, clock, settings, provider):
    def _make(*, location_provider=provider, photo_capture=None, **overrides) -> AttendanceService:
        reader = LocationReader(location_provider, clock=clock) if location_provider else None
        return AttendanceService(
            store,
            StaticSettingsSource(replace(settings, **overrides)),
            location_reader=reader,
            photo_capture=photo_capture,
            clock=clock,
        )

    return _make


@pytest.fixture
def service(make_service) -> AttendanceService:
    return make_service()
