from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from geo_attendance.attendance import transitions
from geo_attendance.attendance.model import AttendanceEntry
from geo_attendance.core.enums import AttendanceStatus, EntryMethod
from geo_attendance.core.exceptions import NotCheckedIn, ValidationError

NOW = datetime(2026, 2, 2, 9, 0)


def manual(ts: datetime) -> AttendanceEntry:
    return AttendanceEntry(timestamp=ts, method=EntryMethod.MANUAL, verified=False)


def automatic(ts: datetime) -> AttendanceEntry:
    return AttendanceEntry(timestamp=ts, method=EntryMethod.AUTOMATIC, verified=True)


def by_hours(check_in, check_out):
    if check_out is not None and (check_out - check_in) < timedelta(hours=4):
        return AttendanceStatus.HALF_DAY
    return AttendanceStatus.PRESENT


def checked_in(entry=None):
    return transitions.record_check_in(
        None, user_id=1, work_date=NOW.date(), entry=entry or automatic(NOW), status=AttendanceStatus.PRESENT, now=NOW
    )


def test_check_in_onto_absent_placeholder():
    absent = transitions.record_absence(None, user_id=1, work_date=NOW.date(), status=AttendanceStatus.ABSENT, now=NOW)
    assert transitions.can_check_in(absent)

    record = transitions.record_check_in(
        absent, user_id=1, work_date=NOW.date(), entry=automatic(NOW), status=AttendanceStatus.LATE, now=NOW
    )
    assert record.status == AttendanceStatus.LATE
    assert record.created_at == absent.created_at


def test_check_out_requires_open_day():
    with pytest.raises(NotCheckedIn):
        transitions.record_check_out(None, entry=automatic(NOW), status_for=by_hours, now=NOW)


def test_approve_only_touches_unverified_entries():
    record = checked_in(manual(NOW))
    record = transitions.record_check_out(record, entry=automatic(NOW + timedelta(hours=8)), status_for=by_hours, now=NOW)

    approved = transitions.approve_record(record, approver_id=5, now=NOW + timedelta(hours=9))
    assert approved.check_in.verified and approved.check_out.verified
    assert approved.check_in.method == EntryMethod.MANUAL
    assert approved.is_closed

    assert transitions.approve_record(approved, approver_id=6, now=NOW + timedelta(hours=10)) is approved


def test_correction_recomputes_status_and_keeps_history():
    record = checked_in()
    record = transitions.record_check_out(record, entry=automatic(NOW + timedelta(hours=8)), status_for=by_hours, now=NOW)

    later = NOW + timedelta(days=1)
    corrected = transitions.correct_record(
        record,
        status_for=by_hours,
        now=later,
        corrected_by=9,
        check_out_time=NOW + timedelta(hours=2),
        reason="left early",
    )

    assert corrected.status == AttendanceStatus.HALF_DAY
    assert corrected.total_hours == pytest.approx(2)
    assert corrected.check_out.verified is True
    assert corrected.updated_at == later
    assert len(corrected.corrections) == 1
    history = corrected.corrections[0]
    assert history.previous_status == AttendanceStatus.PRESENT
    assert history.previous_check_out == NOW + timedelta(hours=8)
    assert history.corrected_by == 9


def test_correction_must_stay_on_record_date():
    with pytest.raises(ValidationError):
        transitions.correct_record(
            checked_in(), status_for=by_hours, now=NOW, check_in_time=NOW + timedelta(days=1)
        )


def test_correction_cannot_add_check_out_without_check_in():
    absent = transitions.record_absence(None, user_id=1, work_date=NOW.date(), status=AttendanceStatus.ABSENT, now=NOW)
    with pytest.raises(NotCheckedIn):
        transitions.correct_record(absent, status_for=by_hours, now=NOW, check_out_time=NOW)


def test_notes_only_correction_keeps_status():
    record = checked_in()
    record = transitions.record_check_out(record, entry=automatic(NOW + timedelta(hours=8)), status_for=by_hours, now=NOW)

    def stricter(check_in, check_out):
        return AttendanceStatus.HALF_DAY

    corrected = transitions.correct_record(record, status_for=stricter, now=NOW, notes="client visit")
    assert corrected.status == AttendanceStatus.PRESENT
    assert corrected.notes == "client visit"
    assert len(corrected.corrections) == 1
