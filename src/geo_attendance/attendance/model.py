from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..common.datetime_utils import hours_between
from ..core.enums import AttendanceStatus, EntryMethod, StatsPeriod
from ..geofence.model import RecordedLocation


@dataclass(frozen=True)
class AttendanceEntry:
    """One side (check-in or check-out) of a day's attendance."""

    timestamp: datetime
    method: EntryMethod
    verified: bool
    location: Optional[RecordedLocation] = None
    photo: Optional[str] = None


@dataclass(frozen=True)
class RecordCorrection:
    """Snapshot of the values a correction replaced."""

    corrected_at: datetime
    corrected_by: Optional[int]
    previous_check_in: Optional[datetime]
    previous_check_out: Optional[datetime]
    previous_status: AttendanceStatus
    previous_notes: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one calendar day."""

    record_id: Optional[int]
    user_id: int
    work_date: date
    status: AttendanceStatus
    created_at: datetime
    updated_at: datetime
    check_in: Optional[AttendanceEntry] = None
    check_out: Optional[AttendanceEntry] = None
    notes: Optional[str] = None
    approved_by: Optional[int] = None
    corrections: Tuple[RecordCorrection, ...] = ()

    @property
    def total_hours(self) -> Optional[float]:
        if self.check_in is None or self.check_out is None:
            return None
        return hours_between(self.check_in.timestamp, self.check_out.timestamp)

    @property
    def is_verified(self) -> bool:
        entries = [e for e in (self.check_in, self.check_out) if e is not None]
        return bool(entries) and all(e.verified for e in entries)

    @property
    def is_closed(self) -> bool:
        return self.check_in is not None and self.check_out is not None and self.is_verified


@dataclass(frozen=True)
class AttendanceStats:
    """Aggregates derived from stored records; never persisted."""

    user_id: int
    period: StatsPeriod
    start_date: date
    end_date: date
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    half_days: int
    leave_days: int
    total_hours: float
    average_hours_per_day: float
    attendance_percentage: float
