from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import hours_between, minutes_of_day
from ..settings.model import AttendanceSettings
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, check_in: datetime, settings: AttendanceSettings) -> AttendanceStrategy:
        lateness = minutes_of_day(check_in) - minutes_of_day(settings.check_in_time)
        if lateness > settings.late_threshold_minutes:
            return LateStrategy()
        return NormalStrategy()

    def for_checkout(self, *, check_in: datetime, check_out: datetime, settings: AttendanceSettings) -> AttendanceStrategy:
        # HALF_DAY wins over a LATE or PRESENT check-in.
        if hours_between(check_in, check_out) < settings.half_day_threshold_hours:
            return HalfDayStrategy()
        return self.for_checkin(check_in=check_in, settings=settings)
