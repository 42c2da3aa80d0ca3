"""Pure state transitions for a single day's attendance record.

Per day: NO_RECORD -> CHECKED_IN -> CHECKED_OUT (terminal). Orthogonal to that,
entries go UNVERIFIED -> VERIFIED only through ``approve_record`` and never back.
Each function takes the current record (or None) and returns the next one; the
store decides when to persist.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..core.enums import AttendanceStatus, EntryMethod
from ..core.exceptions import AlreadyCheckedIn, NotCheckedIn, ValidationError
from .model import AttendanceEntry, AttendanceRecord, RecordCorrection

StatusFor = Callable[[datetime, Optional[datetime]], AttendanceStatus]


def can_check_in(record: Optional[AttendanceRecord]) -> bool:
    return record is None or record.check_in is None


def can_check_out(record: Optional[AttendanceRecord]) -> bool:
    return record is not None and record.check_in is not None and record.check_out is None


def needs_approval(record: AttendanceRecord) -> bool:
    return any(e is not None and not e.verified for e in (record.check_in, record.check_out))


def record_check_in(
    record: Optional[AttendanceRecord],
    *,
    user_id: int,
    work_date: date,
    entry: AttendanceEntry,
    status: AttendanceStatus,
    now: datetime,
) -> AttendanceRecord:
    if not can_check_in(record):
        raise AlreadyCheckedIn()

    if record is not None:
        # An ABSENT placeholder written by the end-of-day batch can still be checked into.
        return replace(record, check_in=entry, status=status, updated_at=now)

    return AttendanceRecord(
        record_id=None,
        user_id=user_id,
        work_date=work_date,
        status=status,
        created_at=now,
        updated_at=now,
        check_in=entry,
    )


def record_check_out(
    record: Optional[AttendanceRecord],
    *,
    entry: AttendanceEntry,
    status_for: StatusFor,
    now: datetime,
) -> AttendanceRecord:
    if not can_check_out(record):
        raise NotCheckedIn()

    status = status_for(record.check_in.timestamp, entry.timestamp)
    return replace(record, check_out=entry, status=status, updated_at=now)


def approve_record(record: AttendanceRecord, *, approver_id: int, now: datetime) -> AttendanceRecord:
    if not needs_approval(record):
        return record

    return replace(
        record,
        check_in=replace(record.check_in, verified=True) if record.check_in else None,
        check_out=replace(record.check_out, verified=True) if record.check_out else None,
        approved_by=approver_id,
        updated_at=now,
    )


def record_absence(
    record: Optional[AttendanceRecord],
    *,
    user_id: int,
    work_date: date,
    status: AttendanceStatus,
    now: datetime,
) -> AttendanceRecord:
    if record is not None:
        return record

    return AttendanceRecord(
        record_id=None,
        user_id=user_id,
        work_date=work_date,
        status=status,
        created_at=now,
        updated_at=now,
    )


def _moved_entry(entry: Optional[AttendanceEntry], new_time: Optional[datetime]) -> Optional[AttendanceEntry]:
    if new_time is None:
        return entry
    if entry is None:
        return AttendanceEntry(timestamp=new_time, method=EntryMethod.MANUAL, verified=False)
    return replace(entry, timestamp=new_time)


def correct_record(
    record: AttendanceRecord,
    *,
    status_for: StatusFor,
    now: datetime,
    corrected_by: Optional[int] = None,
    check_in_time: Optional[datetime] = None,
    check_out_time: Optional[datetime] = None,
    notes: Optional[str] = None,
    reason: Optional[str] = None,
) -> AttendanceRecord:
    """Apply a correction, keeping the replaced values in ``record.corrections``."""

    check_in = _moved_entry(record.check_in, check_in_time)
    check_out = _moved_entry(record.check_out, check_out_time)

    if check_out is not None and check_in is None:
        raise NotCheckedIn()
    for moved in (check_in_time, check_out_time):
        if moved is not None and moved.date() != record.work_date:
            raise ValidationError("Corrected times must fall on the record's date")

    status = record.status
    times_moved = check_in_time is not None or check_out_time is not None
    if times_moved and check_in is not None:
        status = status_for(check_in.timestamp, check_out.timestamp if check_out else None)

    correction = RecordCorrection(
        corrected_at=now,
        corrected_by=corrected_by,
        previous_check_in=record.check_in.timestamp if record.check_in else None,
        previous_check_out=record.check_out.timestamp if record.check_out else None,
        previous_status=record.status,
        previous_notes=record.notes,
        reason=reason,
    )
    return replace(
        record,
        check_in=check_in,
        check_out=check_out,
        status=status,
        notes=notes if notes is not None else record.notes,
        updated_at=now,
        corrections=record.corrections + (correction,),
    )
