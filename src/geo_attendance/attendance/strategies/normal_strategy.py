from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, full-day check-out."""

    def decide_checkin(self, *, check_in: datetime, settings: AttendanceSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(
        self,
        *,
        check_in: datetime,
        check_out: datetime,
        settings: AttendanceSettings,
        current: AttendanceStatus,
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
