from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.classifier import AttendanceClassifier
from .attendance.factory import AttendanceStrategyFactory
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.store import AttendanceStore
from .common.datetime_utils import Clock, SystemClock
from .location.provider import FixedLocationProvider, LocationProvider, PhotoCapture
from .location.reader import LocationReader
from .settings.source import ConfigSettingsSource, SettingsSource


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    settings_source: SettingsSource
    attendance_store: AttendanceStore
    attendance_service: AttendanceService
    location_reader: Optional[LocationReader] = None


def _build_repository(settings: Any) -> AttendanceRepository:
    storage = str(getattr(settings, "STORAGE", "memory")).lower()
    if storage == "memory":
        return InMemoryAttendanceRepository()
    if storage == "mysql":
        from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
        from .database.connection import DatabaseConnection, DBConfig

        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(getattr(settings, "DB_CONFIG")))
        return MySQLAttendanceRepository(conn)
    raise ValueError(f"Unsupported STORAGE backend: {storage!r}")


def _build_location_provider(settings: Any, clock: Clock) -> Optional[LocationProvider]:
    raw = getattr(settings, "LOCATION_PROVIDER", None)
    if not raw:
        return None
    if raw.get("type") == "fixed":
        return FixedLocationProvider(
            latitude=float(raw["latitude"]),
            longitude=float(raw["longitude"]),
            accuracy=float(raw["accuracy"]) if raw.get("accuracy") is not None else None,
            timestamp_factory=clock.now,
        )
    raise ValueError(f"Unsupported LOCATION_PROVIDER type: {raw.get('type')!r}")


def build_container(
    *,
    settings: Any,
    repository: Optional[AttendanceRepository] = None,
    location_provider: Optional[LocationProvider] = None,
    photo_capture: Optional[PhotoCapture] = None,
    clock: Optional[Clock] = None,
) -> Container:
    clock = clock or SystemClock()
    attendance_repo = repository or _build_repository(settings)
    settings_source = ConfigSettingsSource(settings)

    provider = location_provider or _build_location_provider(settings, clock)
    location_reader = LocationReader(provider, clock=clock) if provider else None

    attendance_store = AttendanceStore(attendance_repo, clock=clock)
    attendance_service = AttendanceService(
        attendance_store,
        settings_source,
        location_reader=location_reader,
        photo_capture=photo_capture,
        classifier=AttendanceClassifier(AttendanceStrategyFactory()),
        clock=clock,
    )

    return Container(
        attendance_repo=attendance_repo,
        settings_source=settings_source,
        attendance_store=attendance_store,
        attendance_service=attendance_service,
        location_reader=location_reader,
    )
