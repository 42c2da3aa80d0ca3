from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from geo_attendance.attendance.model import AttendanceEntry
from geo_attendance.attendance.repository import WriteGuard
from geo_attendance.attendance.store import AttendanceStore
from geo_attendance.common.locks import KeyedLocks
from geo_attendance.core.enums import AttendanceStatus, EntryMethod
from geo_attendance.core.exceptions import AlreadyCheckedIn, DuplicateRecordError, NotCheckedIn, RecordNotFound


def entry(ts: datetime, *, verified: bool = True) -> AttendanceEntry:
    return AttendanceEntry(
        timestamp=ts,
        method=EntryMethod.AUTOMATIC if verified else EntryMethod.MANUAL,
        verified=verified,
    )


def status_for(check_in, check_out):
    return AttendanceStatus.PRESENT


def test_can_check_in_and_out_follow_the_day(store, fixed_now):
    assert store.can_check_in(1)
    assert not store.can_check_out(1)

    store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
    assert not store.can_check_in(1)
    assert store.can_check_out(1)

    store.apply_check_out(1, entry(fixed_now + timedelta(hours=8)), status_for)
    assert not store.can_check_in(1)
    assert not store.can_check_out(1)


def test_second_check_in_fails(store, fixed_now):
    store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
    with pytest.raises(AlreadyCheckedIn):
        store.create_check_in(1, entry(fixed_now + timedelta(minutes=1)), AttendanceStatus.PRESENT)


def test_check_out_without_check_in_fails(store, fixed_now):
    with pytest.raises(NotCheckedIn):
        store.apply_check_out(1, entry(fixed_now), status_for)


def test_users_are_independent(store, fixed_now):
    store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
    assert store.can_check_in(2)
    assert store.get_today_record(2) is None


def test_total_hours_derived_from_timestamps(store, fixed_now):
    store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
    record = store.apply_check_out(1, entry(fixed_now + timedelta(hours=7, minutes=30)), status_for)

    assert record.total_hours == pytest.approx(7.5)
    assert store.get(record.record_id).total_hours == pytest.approx(7.5)


def test_approve_sets_verified_and_is_idempotent(store, fixed_now, clock):
    created = store.create_check_in(1, entry(fixed_now, verified=False), AttendanceStatus.PRESENT)

    clock.advance(hours=1)
    approved = store.approve(created.record_id, approver_id=99)
    assert approved.check_in.verified
    assert approved.approved_by == 99
    assert approved.updated_at == clock.now()

    clock.advance(hours=1)
    again = store.approve(created.record_id, approver_id=100)
    assert again == approved


def test_approve_unknown_record(store):
    with pytest.raises(RecordNotFound):
        store.approve(404, approver_id=1)


def test_repository_duplicate_maps_to_already_checked_in(repo, store, fixed_now):
    class RacingRepo:
        """Simulates another process inserting between our read and write."""

        def __getattr__(self, name):
            return getattr(repo, name)

        def get_for_user_and_date(self, user_id, work_date):
            return None

        def insert(self, record):
            raise DuplicateRecordError()

    racing = AttendanceStore(RacingRepo(), clock=store._clock)
    with pytest.raises(AlreadyCheckedIn):
        racing.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)


def test_concurrent_check_ins_only_one_wins(store, fixed_now):
    workers = 8
    barrier = threading.Barrier(workers)
    results: list = []
    lock = threading.Lock()

    def attempt(i: int):
        barrier.wait()
        try:
            store.create_check_in(7, entry(fixed_now + timedelta(seconds=i)), AttendanceStatus.PRESENT)
            outcome = "ok"
        except AlreadyCheckedIn:
            outcome = "dup"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("dup") == workers - 1


def test_mark_absent_keeps_existing_record(store, fixed_now):
    checked_in = store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
    assert store.mark_absent(1, fixed_now.date(), AttendanceStatus.ABSENT) == checked_in

    absent = store.mark_absent(2, fixed_now.date(), AttendanceStatus.ABSENT)
    assert absent.status == AttendanceStatus.ABSENT
    assert absent.check_in is None


def test_keyed_locks_release_their_slots():
    locks = KeyedLocks()
    with locks.hold(("a", 1)):
        assert len(locks) == 1
    assert len(locks) == 0


class StaleReadRepo:
    """Serves a snapshot taken before another process committed its write."""

    def __init__(self, repo, stale):
        self._repo = repo
        self._stale = stale

    def __getattr__(self, name):
        return getattr(self._repo, name)

    def get_for_user_and_date(self, user_id, work_date):
        return self._stale

    def get_by_id(self, record_id):
        return self._stale


def test_check_out_lost_to_other_process_keeps_first_check_out(repo, store, fixed_now):
    open_day = store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
    first = store.apply_check_out(1, entry(fixed_now + timedelta(hours=8)), status_for)

    racing = AttendanceStore(StaleReadRepo(repo, open_day), clock=store._clock)
    with pytest.raises(NotCheckedIn):
        racing.apply_check_out(1, entry(fixed_now + timedelta(hours=9)), status_for)

    assert repo.get_by_id(first.record_id).check_out == first.check_out


def test_check_in_onto_placeholder_lost_to_other_process(repo, store, fixed_now):
    placeholder = store.mark_absent(1, fixed_now.date(), AttendanceStatus.ABSENT)
    winner = store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)

    racing = AttendanceStore(StaleReadRepo(repo, placeholder), clock=store._clock)
    with pytest.raises(AlreadyCheckedIn):
        racing.create_check_in(1, entry(fixed_now + timedelta(minutes=5)), AttendanceStatus.LATE)

    assert repo.get_by_id(winner.record_id).check_in == winner.check_in


def test_approval_lost_to_other_process_keeps_first_approver(repo, store, fixed_now):
    unverified = store.create_check_in(1, entry(fixed_now, verified=False), AttendanceStatus.PRESENT)
    store.approve(unverified.record_id, approver_id=5)

    class StaleUntilWrite(StaleReadRepo):
        def update(self, record, *, guard=None):
            written = self._repo.update(record, guard=guard)
            self._stale = None
            return written

        def get_by_id(self, record_id):
            return self._stale or self._repo.get_by_id(record_id)

    racing = AttendanceStore(StaleUntilWrite(repo, unverified), clock=store._clock)
    result = racing.approve(unverified.record_id, approver_id=6)

    assert result.approved_by == 5
    assert result.check_in.verified


@pytest.mark.parametrize(
    "guard, build, expected",
    [
        (WriteGuard.CHECK_IN_OPEN, "absent", True),
        (WriteGuard.CHECK_IN_OPEN, "open", False),
        (WriteGuard.CHECK_OUT_OPEN, "open", True),
        (WriteGuard.CHECK_OUT_OPEN, "closed", False),
        (WriteGuard.NEEDS_APPROVAL, "manual", True),
        (WriteGuard.NEEDS_APPROVAL, "open", False),
    ],
)
def test_memory_repository_conditional_update(store, repo, fixed_now, guard, build, expected):
    if build == "absent":
        stored = store.mark_absent(1, fixed_now.date(), AttendanceStatus.ABSENT)
    elif build == "manual":
        stored = store.create_check_in(1, entry(fixed_now, verified=False), AttendanceStatus.PRESENT)
    else:
        stored = store.create_check_in(1, entry(fixed_now), AttendanceStatus.PRESENT)
        if build == "closed":
            stored = store.apply_check_out(1, entry(fixed_now + timedelta(hours=8)), status_for)

    changed = replace(stored, notes="touched")
    assert repo.update(changed, guard=guard) is expected
    assert (repo.get_by_id(stored.record_id).notes == "touched") is expected
