from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from typing import Dict, Optional, Sequence, Tuple

from ..core.exceptions import DuplicateRecordError
from . import transitions
from .model import AttendanceRecord
from .repository import AttendanceRepository, WriteGuard

_GUARDS = {
    WriteGuard.CHECK_IN_OPEN: transitions.can_check_in,
    WriteGuard.CHECK_OUT_OPEN: transitions.can_check_out,
    WriteGuard.NEEDS_APPROVAL: transitions.needs_approval,
}


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local repository; the dict key doubles as the unique index."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_user_date: Dict[Tuple[int, date], AttendanceRecord] = {}
        self._key_by_id: Dict[int, Tuple[int, date]] = {}
        self._id = 0

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with self._lock:
            key = self._key_by_id.get(int(record_id))
            return self._by_user_date.get(key) if key else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._by_user_date.get((user_id, work_date))

    def list_for_user(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with self._lock:
            items = [
                r
                for (uid, day), r in self._by_user_date.items()
                if uid == user_id and start_date <= day <= end_date
            ]
        items.sort(key=lambda r: r.work_date)
        return items

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        key = (record.user_id, record.work_date)
        with self._lock:
            if key in self._by_user_date:
                raise DuplicateRecordError()
            self._id += 1
            stored = replace(record, record_id=self._id)
            self._by_user_date[key] = stored
            self._key_by_id[self._id] = key
            return stored

    def update(self, record: AttendanceRecord, *, guard: Optional[WriteGuard] = None) -> bool:
        with self._lock:
            key = self._key_by_id.get(record.record_id) if record.record_id is not None else None
            if key is None:
                return False
            if guard is not None and not _GUARDS[guard](self._by_user_date[key]):
                return False
            self._by_user_date[key] = record
            return True
