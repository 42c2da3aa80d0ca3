from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from ..core.enums import AttendanceStatus, EntryMethod
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..geofence.model import RecordedLocation
from .model import AttendanceEntry, AttendanceRecord, RecordCorrection
from .repository import AttendanceRepository, WriteGuard

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = """
    record_id, user_id, work_date, status,
    check_in_time, check_in_method, check_in_verified, check_in_latitude, check_in_longitude, check_in_address, check_in_photo,
    check_out_time, check_out_method, check_out_verified, check_out_latitude, check_out_longitude, check_out_address, check_out_photo,
    notes, approved_by, created_at, updated_at
"""

# Extra WHERE conditions; rowcount 0 means another writer changed the row first.
_GUARD_SQL = {
    WriteGuard.CHECK_IN_OPEN: "check_in_time IS NULL",
    WriteGuard.CHECK_OUT_OPEN: "check_in_time IS NOT NULL AND check_out_time IS NULL",
    WriteGuard.NEEDS_APPROVAL: (
        "((check_in_time IS NOT NULL AND check_in_verified=0)"
        " OR (check_out_time IS NOT NULL AND check_out_verified=0))"
    ),
}


def _entry_from_row(r: Dict[str, Any], prefix: str) -> Optional[AttendanceEntry]:
    ts = r.get(f"{prefix}_time")
    if ts is None:
        return None

    location = None
    if r.get(f"{prefix}_latitude") is not None and r.get(f"{prefix}_longitude") is not None:
        location = RecordedLocation(
            latitude=float(r[f"{prefix}_latitude"]),
            longitude=float(r[f"{prefix}_longitude"]),
            address=r.get(f"{prefix}_address"),
        )
    return AttendanceEntry(
        timestamp=ts,
        method=EntryMethod(r[f"{prefix}_method"]),
        verified=bool(r.get(f"{prefix}_verified")),
        location=location,
        photo=r.get(f"{prefix}_photo"),
    )


def _entry_params(entry: Optional[AttendanceEntry]) -> tuple:
    if entry is None:
        return (None, None, 0, None, None, None, None)
    loc = entry.location
    return (
        entry.timestamp,
        entry.method.value,
        int(entry.verified),
        loc.latitude if loc else None,
        loc.longitude if loc else None,
        loc.address if loc else None,
        entry.photo,
    )


def _correction_from_row(r: Dict[str, Any]) -> RecordCorrection:
    return RecordCorrection(
        corrected_at=r["corrected_at"],
        corrected_by=int(r["corrected_by"]) if r.get("corrected_by") is not None else None,
        previous_check_in=r.get("previous_check_in"),
        previous_check_out=r.get("previous_check_out"),
        previous_status=AttendanceStatus(r["previous_status"]),
        previous_notes=r.get("previous_notes"),
        reason=r.get("reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_corrections(self, cur, record_ids: List[int]) -> Dict[int, List[RecordCorrection]]:
        if not record_ids:
            return {}
        placeholders = ",".join(["%s"] * len(record_ids))
        cur.execute(
            f"""
            SELECT record_id, corrected_at, corrected_by, previous_check_in, previous_check_out,
                   previous_status, previous_notes, reason
            FROM attendance_corrections
            WHERE record_id IN ({placeholders})
            ORDER BY record_id, seq
            """,
            tuple(record_ids),
        )
        out: Dict[int, List[RecordCorrection]] = {}
        for r in fetchall(cur):
            out.setdefault(int(r["record_id"]), []).append(_correction_from_row(r))
        return out

    def _to_records(self, cur, rows: List[Dict[str, Any]]) -> List[AttendanceRecord]:
        corrections = self._load_corrections(cur, [int(r["record_id"]) for r in rows])
        return [
            AttendanceRecord(
                record_id=int(r["record_id"]),
                user_id=int(r["user_id"]),
                work_date=r["work_date"],
                status=AttendanceStatus(r["status"]),
                created_at=r["created_at"],
                updated_at=r["updated_at"],
                check_in=_entry_from_row(r, "check_in"),
                check_out=_entry_from_row(r, "check_out"),
                notes=r.get("notes"),
                approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
                corrections=tuple(corrections.get(int(r["record_id"]), ())),
            )
            for r in rows
        ]

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._to_records(cur, [r])[0]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._to_records(cur, [r])[0]

    def list_for_user(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date ASC
                """,
                (int(user_id), start_date, end_date),
            )
            return self._to_records(cur, fetchall(cur))

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, status,
                        check_in_time, check_in_method, check_in_verified, check_in_latitude, check_in_longitude, check_in_address, check_in_photo,
                        check_out_time, check_out_method, check_out_verified, check_out_latitude, check_out_longitude, check_out_address, check_out_photo,
                        notes, approved_by, created_at, updated_at
                    )
                    VALUES(%s,%s,%s, %s,%s,%s,%s,%s,%s,%s, %s,%s,%s,%s,%s,%s,%s, %s,%s,%s,%s)
                    """,
                    (
                        int(record.user_id),
                        record.work_date,
                        record.status.value,
                        *_entry_params(record.check_in),
                        *_entry_params(record.check_out),
                        record.notes,
                        record.approved_by,
                        record.created_at,
                        record.updated_at,
                    ),
                )
                record_id = int(cur.lastrowid)
                self._insert_corrections(cur, record_id, record.corrections, start=0)
        except mysql_errors.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise DuplicateRecordError() from exc
            raise
        return replace(record, record_id=record_id)

    def update(self, record: AttendanceRecord, *, guard: Optional[WriteGuard] = None) -> bool:
        condition = f" AND {_GUARD_SQL[guard]}" if guard is not None else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET status=%s,
                    check_in_time=%s, check_in_method=%s, check_in_verified=%s, check_in_latitude=%s,
                    check_in_longitude=%s, check_in_address=%s, check_in_photo=%s,
                    check_out_time=%s, check_out_method=%s, check_out_verified=%s, check_out_latitude=%s,
                    check_out_longitude=%s, check_out_address=%s, check_out_photo=%s,
                    notes=%s, approved_by=%s, updated_at=%s
                WHERE record_id=%s{condition}
                """,
                (
                    record.status.value,
                    *_entry_params(record.check_in),
                    *_entry_params(record.check_out),
                    record.notes,
                    record.approved_by,
                    record.updated_at,
                    int(record.record_id),
                ),
            )
            if cur.rowcount <= 0:
                return False

            cur.execute("SELECT COUNT(*) AS n FROM attendance_corrections WHERE record_id=%s", (int(record.record_id),))
            stored = int(fetchone(cur)["n"])
            self._insert_corrections(cur, int(record.record_id), record.corrections[stored:], start=stored)
            return True

    @staticmethod
    def _insert_corrections(cur, record_id: int, corrections, *, start: int) -> None:
        for offset, c in enumerate(corrections):
            cur.execute(
                """
                INSERT INTO attendance_corrections(
                    record_id, seq, corrected_at, corrected_by, previous_check_in, previous_check_out,
                    previous_status, previous_notes, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record_id,
                    start + offset,
                    c.corrected_at,
                    c.corrected_by,
                    c.previous_check_in,
                    c.previous_check_out,
                    c.previous_status.value,
                    c.previous_notes,
                    c.reason,
                ),
            )
