from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import hours_between
from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Check-out before the half-day threshold was reached."""

    def decide_checkin(self, *, check_in: datetime, settings: AttendanceSettings) -> StatusDecision:
        # A half day can only be known once the check-out exists.
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(
        self,
        *,
        check_in: datetime,
        check_out: datetime,
        settings: AttendanceSettings,
        current: AttendanceStatus,
    ) -> StatusDecision:
        worked = hours_between(check_in, check_out)
        return StatusDecision(
            status=AttendanceStatus.HALF_DAY,
            note=f"Worked {worked:.2f}h of the required {settings.half_day_threshold_hours:g}h",
        )
