from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class WriteGuard(str, Enum):
    """State the stored row must still be in for a conditional update to apply."""

    CHECK_IN_OPEN = "check_in_open"
    CHECK_OUT_OPEN = "check_out_open"
    NEEDS_APPROVAL = "needs_approval"


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records with ``start_date <= work_date <= end_date``, oldest first."""
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        """Persist a new record and return it with its id.

        Raises DuplicateRecordError when (user_id, work_date) already exists.
        """
        raise NotImplementedError

    def update(self, record: AttendanceRecord, *, guard: Optional[WriteGuard] = None) -> bool:
        """Overwrite the stored record.

        Returns False when the record does not exist or, with ``guard``, when the
        stored row no longer satisfies it (another writer got there first).
        """
        raise NotImplementedError
