from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence, Type

from ..common.datetime_utils import Clock, SystemClock
from ..common.locks import KeyedLocks
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyCheckedIn, DomainError, DuplicateRecordError, NotCheckedIn, RecordNotFound
from . import transitions
from .model import AttendanceEntry, AttendanceRecord
from .repository import AttendanceRepository, WriteGuard
from .transitions import StatusFor

logger = logging.getLogger(__name__)


class AttendanceStore:
    """Owns per-user-per-day records and their lifecycle.

    Every write for a ``(user_id, work_date)`` key reads the current record and
    commits the next one while holding that key's lock, so two concurrent
    check-ins cannot both succeed and a check-out never sees a half-committed
    check-in. Across processes the repository's unique key is the backstop.
    """

    def __init__(
        self,
        repository: AttendanceRepository,
        *,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self._repo = repository
        self._clock = clock or SystemClock()
        self._locks = locks or KeyedLocks()

    def today(self) -> date:
        return self._clock.now().date()

    def get(self, record_id: int) -> AttendanceRecord:
        record = self._repo.get_by_id(record_id)
        if record is None:
            raise RecordNotFound()
        return record

    def get_for_day(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._repo.get_for_user_and_date(user_id, work_date)

    def get_today_record(self, user_id: int) -> Optional[AttendanceRecord]:
        return self.get_for_day(user_id, self.today())

    def list_for_user(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        return self._repo.list_for_user(user_id, start_date, end_date)

    def can_check_in(self, user_id: int) -> bool:
        return transitions.can_check_in(self.get_today_record(user_id))

    def can_check_out(self, user_id: int) -> bool:
        return transitions.can_check_out(self.get_today_record(user_id))

    def _save(
        self,
        before: Optional[AttendanceRecord],
        after: AttendanceRecord,
        *,
        guard: Optional[WriteGuard] = None,
        conflict: Type[DomainError] = RecordNotFound,
    ) -> AttendanceRecord:
        if before is None:
            return self._repo.insert(after)
        if after is before:
            return before
        if not self._repo.update(after, guard=guard):
            logger.info("Update of record %s rejected (guard=%s)", after.record_id, guard)
            raise conflict()
        return after

    def create_check_in(self, user_id: int, entry: AttendanceEntry, status: AttendanceStatus) -> AttendanceRecord:
        work_date = entry.timestamp.date()
        with self._locks.hold((user_id, work_date)):
            current = self._repo.get_for_user_and_date(user_id, work_date)
            record = transitions.record_check_in(
                current,
                user_id=user_id,
                work_date=work_date,
                entry=entry,
                status=status,
                now=self._clock.now(),
            )
            try:
                return self._save(current, record, guard=WriteGuard.CHECK_IN_OPEN, conflict=AlreadyCheckedIn)
            except DuplicateRecordError as exc:
                # Another process committed first.
                raise AlreadyCheckedIn() from exc

    def apply_check_out(self, user_id: int, entry: AttendanceEntry, status_for: StatusFor) -> AttendanceRecord:
        work_date = entry.timestamp.date()
        with self._locks.hold((user_id, work_date)):
            current = self._repo.get_for_user_and_date(user_id, work_date)
            record = transitions.record_check_out(current, entry=entry, status_for=status_for, now=self._clock.now())
            return self._save(current, record, guard=WriteGuard.CHECK_OUT_OPEN, conflict=NotCheckedIn)

    def approve(self, record_id: int, approver_id: int) -> AttendanceRecord:
        found = self.get(record_id)
        with self._locks.hold((found.user_id, found.work_date)):
            current = self.get(record_id)
            record = transitions.approve_record(current, approver_id=approver_id, now=self._clock.now())
            if record is current:
                logger.debug("Record %s already verified, approval is a no-op", record_id)
                return current
            if self._repo.update(record, guard=WriteGuard.NEEDS_APPROVAL):
                return record
            # Approved by another process in the meantime; keep its approver.
            return self.get(record_id)

    def mark_absent(self, user_id: int, work_date: date, status: AttendanceStatus) -> AttendanceRecord:
        with self._locks.hold((user_id, work_date)):
            current = self._repo.get_for_user_and_date(user_id, work_date)
            record = transitions.record_absence(
                current, user_id=user_id, work_date=work_date, status=status, now=self._clock.now()
            )
            try:
                return self._save(current, record)
            except DuplicateRecordError:
                return self._repo.get_for_user_and_date(user_id, work_date)

    def correct(
        self,
        record_id: int,
        *,
        status_for: StatusFor,
        corrected_by: Optional[int] = None,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        found = self.get(record_id)
        with self._locks.hold((found.user_id, found.work_date)):
            current = self.get(record_id)
            record = transitions.correct_record(
                current,
                status_for=status_for,
                now=self._clock.now(),
                corrected_by=corrected_by,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
                notes=notes,
                reason=reason,
            )
            return self._save(current, record)
