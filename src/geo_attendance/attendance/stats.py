from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Tuple

from ..common.datetime_utils import iter_days
from ..core.enums import AttendanceStatus, StatsPeriod
from ..core.exceptions import ValidationError
from ..settings.model import AttendanceSettings
from .classifier import is_working_day
from .model import AttendanceRecord, AttendanceStats

_PRESENT_STATUSES = {AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.HALF_DAY}


def period_window(period: StatsPeriod, today: date) -> Tuple[date, date]:
    """Window ending today: the day itself, ISO week, calendar month or calendar year."""
    if period == StatsPeriod.DAILY:
        return today, today
    if period == StatsPeriod.WEEKLY:
        return today - timedelta(days=today.isoweekday() - 1), today
    if period == StatsPeriod.MONTHLY:
        return today.replace(day=1), today
    return today.replace(month=1, day=1), today


def month_window(month: int, year: int, today: date) -> Tuple[date, date]:
    """First to last day of the month, or to today when the month is in progress."""
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 1 <= year <= 9999:
        raise ValidationError("Invalid year")
    start = date(year, month, 1)
    if start > today:
        raise ValidationError("Cannot compute stats for a future month")
    end = date(year, month, calendar.monthrange(year, month)[1])
    return start, min(end, today)


def build_stats(
    *,
    user_id: int,
    period: StatsPeriod,
    start: date,
    end: date,
    records: Iterable[AttendanceRecord],
    settings: AttendanceSettings,
) -> AttendanceStats:
    records = [r for r in records if start <= r.work_date <= end]

    total_days = sum(1 for d in iter_days(start, end) if is_working_day(d, settings))
    # Attendance on a weekend or holiday is kept but does not count towards the percentage.
    present_days = sum(1 for r in records if r.status in _PRESENT_STATUSES and is_working_day(r.work_date, settings))

    def count(status: AttendanceStatus) -> int:
        return sum(1 for r in records if r.status == status)

    hours = [r.total_hours for r in records if r.total_hours is not None]
    total_hours = sum(hours)
    average = total_hours / len(hours) if hours else 0.0
    percentage = present_days / total_days * 100 if total_days else 0.0

    return AttendanceStats(
        user_id=user_id,
        period=period,
        start_date=start,
        end_date=end,
        total_days=total_days,
        present_days=present_days,
        absent_days=count(AttendanceStatus.ABSENT),
        late_days=count(AttendanceStatus.LATE),
        half_days=count(AttendanceStatus.HALF_DAY),
        leave_days=count(AttendanceStatus.LEAVE),
        total_hours=round(total_hours, 2),
        average_hours_per_day=round(average, 2),
        attendance_percentage=round(percentage, 2),
    )
