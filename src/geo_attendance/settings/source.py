from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..core.exceptions import ValidationError
from ..geofence.model import GeoPoint, Geofence
from .model import AttendanceSettings

logger = logging.getLogger(__name__)


class SettingsSource(Protocol):
    def current(self) -> AttendanceSettings:
        """Return the current immutable settings snapshot."""
        raise NotImplementedError


@dataclass(frozen=True)
class StaticSettingsSource:
    settings: AttendanceSettings

    def current(self) -> AttendanceSettings:
        return self.settings


def _to_iso_weekday(js_day: int) -> int:
    # 0=Sunday .. 6=Saturday -> 1=Monday .. 7=Sunday
    return 7 if js_day == 0 else js_day


def settings_from_mapping(raw: Mapping[str, Any]) -> AttendanceSettings:
    """Build an AttendanceSettings snapshot from the ``ATTENDANCE`` config dict.

    ``working_days`` is given as 0-6 (Sunday-Saturday), the convention used by the
    administrative flow that owns the settings.
    """

    defaults = AttendanceSettings()
    try:
        workplace_raw = raw.get("workplace") or {}
        workplace = defaults.workplace
        if workplace_raw:
            workplace = Geofence(
                center=GeoPoint(float(workplace_raw["latitude"]), float(workplace_raw["longitude"])),
                radius_meters=float(workplace_raw.get("radius_meters", defaults.workplace.radius_meters)),
                name=str(workplace_raw.get("name", "Workplace")),
            )

        working_days = defaults.working_days
        if "working_days" in raw:
            working_days = frozenset(_to_iso_weekday(int(d)) for d in raw["working_days"])

        return AttendanceSettings(
            check_in_time=parse_hhmm(raw["check_in_time"]) if "check_in_time" in raw else defaults.check_in_time,
            check_out_time=parse_hhmm(raw["check_out_time"]) if "check_out_time" in raw else defaults.check_out_time,
            late_threshold_minutes=int(raw.get("late_threshold_minutes", defaults.late_threshold_minutes)),
            half_day_threshold_hours=float(raw.get("half_day_threshold_hours", defaults.half_day_threshold_hours)),
            working_days=working_days,
            holidays=frozenset(parse_iso_date(d) for d in raw.get("holidays", ())),
            location_required=bool(raw.get("location_required", defaults.location_required)),
            photo_required=bool(raw.get("photo_required", defaults.photo_required)),
            gps_accuracy_meters=float(raw.get("gps_accuracy_meters", defaults.gps_accuracy_meters)),
            workplace=workplace,
            location_timeout_seconds=float(raw.get("location_timeout_seconds", defaults.location_timeout_seconds)),
            location_max_age_minutes=float(raw.get("location_max_age_minutes", defaults.location_max_age_minutes)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid attendance settings: {exc}") from exc


class ConfigSettingsSource:
    """Reads the ``ATTENDANCE`` mapping from a settings module on every call.

    The administrative flow may swap the mapping at any time; each call returns a
    fresh frozen snapshot so one operation never observes two configurations.
    """

    def __init__(self, settings_module: Any):
        self._settings_module = settings_module

    def current(self) -> AttendanceSettings:
        raw = getattr(self._settings_module, "ATTENDANCE", None) or {}
        snapshot = settings_from_mapping(dict(raw))
        logger.debug("Loaded attendance settings snapshot: %s", snapshot)
        return snapshot
