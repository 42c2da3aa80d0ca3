from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import minutes_of_day
from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Check-in after the grace period; a full day keeps the LATE mark."""

    def decide_checkin(self, *, check_in: datetime, settings: AttendanceSettings) -> StatusDecision:
        late_minutes = minutes_of_day(check_in) - minutes_of_day(settings.check_in_time)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late_minutes} minutes")

    def decide_checkout(
        self,
        *,
        check_in: datetime,
        check_out: datetime,
        settings: AttendanceSettings,
        current: AttendanceStatus,
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)
