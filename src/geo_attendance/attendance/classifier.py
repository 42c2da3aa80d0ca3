"""Attendance status classification.

A pure function of the day's timestamps and an ``AttendanceSettings`` snapshot.
It is re-run whenever new facts arrive for a record: once at check-in (a
provisional PRESENT/LATE) and again at check-out, where a short day becomes
HALF_DAY regardless of the check-in result.

End-of-day contract: a working day that reaches the cutoff with no check-in is
ABSENT (see ``classify_missing_day``). This package never applies that rule on
its own; the external end-of-day batch calls
``AttendanceService.reconcile_absences`` which uses it. Non-working days
(weekday outside ``working_days`` or listed in ``holidays``) are never
classified as absent.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..settings.model import AttendanceSettings
from .factory import AttendanceStrategyFactory
from .strategies.base import StatusDecision


def is_working_day(day: date, settings: AttendanceSettings) -> bool:
    return day.isoweekday() in settings.working_days and day not in settings.holidays


class AttendanceClassifier:
    def __init__(self, strategy_factory: AttendanceStrategyFactory | None = None):
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def decide(
        self,
        check_in: datetime,
        check_out: Optional[datetime],
        settings: AttendanceSettings,
    ) -> StatusDecision:
        provisional = self._factory.for_checkin(check_in=check_in, settings=settings).decide_checkin(
            check_in=check_in, settings=settings
        )
        if check_out is None:
            return provisional

        if check_out < check_in:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        strategy = self._factory.for_checkout(check_in=check_in, check_out=check_out, settings=settings)
        return strategy.decide_checkout(
            check_in=check_in,
            check_out=check_out,
            settings=settings,
            current=provisional.status,
        )

    def classify(
        self,
        check_in: datetime,
        check_out: Optional[datetime],
        settings: AttendanceSettings,
    ) -> AttendanceStatus:
        return self.decide(check_in, check_out, settings).status

    @staticmethod
    def classify_missing_day(day: date, settings: AttendanceSettings) -> Optional[AttendanceStatus]:
        """ABSENT for a working day without a check-in; None when the day is not evaluated."""
        if not is_working_day(day, settings):
            return None
        return AttendanceStatus.ABSENT
