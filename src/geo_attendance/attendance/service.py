from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from ..common.datetime_utils import Clock, SystemClock
from ..core.enums import EntryMethod, PermissionStatus, StatsPeriod
from ..core.exceptions import (
    AlreadyCheckedIn,
    LocationAccuracyError,
    LocationUnavailable,
    NotCheckedIn,
    OutOfRangeError,
    Unauthorized,
    ValidationError,
)
from ..geofence.model import LocationFix, RecordedLocation
from ..geofence.validator import distance_meters, has_sufficient_accuracy
from ..location.photo import BestEffortPhotoCapture
from ..location.provider import PhotoCapture
from ..location.reader import LocationReader
from ..settings.model import AttendanceSettings
from ..settings.source import SettingsSource
from .classifier import AttendanceClassifier
from .model import AttendanceEntry, AttendanceRecord, AttendanceStats
from .stats import build_stats, month_window, period_window
from .store import AttendanceStore

logger = logging.getLogger(__name__)


class AttendanceService:
    """Check-in, check-out and approval entry point for the rest of the application.

    Location is acquired and validated before the store takes the per-day lock;
    the store's create/apply step is the only commit point, so an operation that
    fails or is abandoned before it leaves no partial record behind.
    """

    def __init__(
        self,
        store: AttendanceStore,
        settings: SettingsSource,
        *,
        location_reader: Optional[LocationReader] = None,
        photo_capture: Optional[PhotoCapture] = None,
        classifier: Optional[AttendanceClassifier] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._settings = settings
        self._location = location_reader
        self._photos = BestEffortPhotoCapture(photo_capture) if photo_capture is not None else None
        self._classifier = classifier or AttendanceClassifier()
        self._clock = clock or SystemClock()

    # -- location gating -------------------------------------------------

    @staticmethod
    def _validate_fix(fix: LocationFix, settings: AttendanceSettings) -> None:
        if not has_sufficient_accuracy(fix.accuracy, settings.gps_accuracy_meters):
            raise LocationAccuracyError()

        workplace = settings.workplace
        if not workplace.contains(fix.point):
            distance = distance_meters(fix.point, workplace.center)
            raise OutOfRangeError(
                f"You are {distance:.0f}m away from {workplace.name}. "
                f"Maximum allowed distance is {workplace.radius_meters:.0f}m."
            )

    def _gate_location(
        self, settings: AttendanceSettings, supplied: Optional[LocationFix]
    ) -> Tuple[Optional[RecordedLocation], bool]:
        """Return the location to record and whether it was verified by the geofence."""

        fix = supplied
        if fix is None:
            if not settings.location_required:
                return None, False
            if self._location is None:
                raise LocationUnavailable()
            fix = self._location.read(
                timeout_seconds=settings.location_timeout_seconds,
                max_age_minutes=settings.location_max_age_minutes,
            )

        try:
            self._validate_fix(fix, settings)
        except (LocationAccuracyError, OutOfRangeError) as exc:
            if settings.location_required:
                logger.warning("Location rejected: %s", exc)
                raise
            logger.info("Location not verified, recording a manual entry: %s", exc)
            return RecordedLocation.from_fix(fix), False

        return RecordedLocation.from_fix(fix), True

    def _resolve_photo(self, settings: AttendanceSettings, photo: Optional[str]) -> Optional[str]:
        if photo or not settings.photo_required or self._photos is None:
            return photo
        return self._photos.take()

    def _entry(self, location: Optional[RecordedLocation], verified: bool, photo: Optional[str]) -> AttendanceEntry:
        return AttendanceEntry(
            timestamp=self._clock.now(),
            method=EntryMethod.AUTOMATIC if verified else EntryMethod.MANUAL,
            verified=verified,
            location=location,
            photo=photo,
        )

    # -- check-in / check-out -------------------------------------------

    def check_in(
        self,
        user_id: int,
        *,
        location: Optional[LocationFix] = None,
        photo: Optional[str] = None,
    ) -> AttendanceRecord:
        settings = self._settings.current()

        if not self._store.can_check_in(user_id):
            raise AlreadyCheckedIn()

        recorded, verified = self._gate_location(settings, location)
        entry = self._entry(recorded, verified, self._resolve_photo(settings, photo))

        decision = self._classifier.decide(entry.timestamp, None, settings)
        record = self._store.create_check_in(user_id, entry, decision.status)

        logger.info(
            "User %s checked in at %s (%s, %s)%s",
            user_id,
            entry.timestamp.strftime("%H:%M"),
            record.status.value,
            entry.method.value,
            f": {decision.note}" if decision.note else "",
        )
        return record

    def check_out(
        self,
        user_id: int,
        *,
        location: Optional[LocationFix] = None,
        photo: Optional[str] = None,
    ) -> AttendanceRecord:
        settings = self._settings.current()

        if not self._store.can_check_out(user_id):
            raise NotCheckedIn()

        recorded, verified = self._gate_location(settings, location)
        entry = self._entry(recorded, verified, self._resolve_photo(settings, photo))

        record = self._store.apply_check_out(
            user_id,
            entry,
            lambda check_in, check_out: self._classifier.classify(check_in, check_out, settings),
        )
        logger.info(
            "User %s checked out at %s (%s, %.2fh)",
            user_id,
            entry.timestamp.strftime("%H:%M"),
            record.status.value,
            record.total_hours or 0.0,
        )
        return record

    # -- approval & corrections -----------------------------------------

    def approve(self, record_id: int, approver_id: int, *, can_approve: bool) -> AttendanceRecord:
        """Mark a record's entries verified.

        ``can_approve`` is the caller's capability decision; it is not computed here.
        """
        if not can_approve:
            raise Unauthorized()

        before = self._store.get(record_id)
        record = self._store.approve(record_id, approver_id)
        for old, new in ((before.check_in, record.check_in), (before.check_out, record.check_out)):
            if old is not None and old.verified and not (new and new.verified):
                raise ValidationError("Verified entries cannot be unverified")

        logger.info("Record %s approved by %s", record_id, approver_id)
        return record

    def update_notes(
        self,
        record_id: int,
        notes: str,
        *,
        corrected_by: int,
        can_edit_any: bool = False,
    ) -> AttendanceRecord:
        if not can_edit_any and self._store.get(record_id).user_id != corrected_by:
            raise Unauthorized("You can only edit notes on your own attendance")

        settings = self._settings.current()
        record = self._store.correct(
            record_id,
            status_for=lambda ci, co: self._classifier.classify(ci, co, settings),
            corrected_by=corrected_by,
            notes=(notes or "").strip(),
            reason="notes updated",
        )
        logger.info("Notes updated on record %s", record_id)
        return record

    def correct_record(
        self,
        record_id: int,
        *,
        corrected_by: int,
        can_correct: bool,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        """Administrative correction; status and total hours are recomputed."""
        if not can_correct:
            raise Unauthorized("You are not allowed to correct attendance records")
        if check_in_time is None and check_out_time is None and notes is None:
            raise ValidationError("Provide at least one change")

        settings = self._settings.current()
        record = self._store.correct(
            record_id,
            status_for=lambda ci, co: self._classifier.classify(ci, co, settings),
            corrected_by=corrected_by,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            notes=notes,
            reason=reason,
        )
        logger.info("Record %s corrected by %s (%s)", record_id, corrected_by, record.status.value)
        return record

    def reconcile_absences(self, user_ids: Iterable[int], work_date: date) -> List[AttendanceRecord]:
        """Apply the end-of-day ABSENT rule; called by the external batch, never by this service."""
        settings = self._settings.current()
        status = self._classifier.classify_missing_day(work_date, settings)
        if status is None:
            logger.debug("%s is not a working day, nothing to reconcile", work_date)
            return []

        marked: List[AttendanceRecord] = []
        for user_id in user_ids:
            if self._store.get_for_day(user_id, work_date) is not None:
                continue
            record = self._store.mark_absent(user_id, work_date, status)
            # A check-in may have committed between the read above and the lock.
            if record.check_in is None and record.status == status:
                marked.append(record)
        logger.info("Marked %d user(s) absent for %s", len(marked), work_date)
        return marked

    # -- queries ---------------------------------------------------------

    def get_today_record(self, user_id: int) -> Optional[AttendanceRecord]:
        return self._store.get_today_record(user_id)

    def get_history(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        return self._store.list_for_user(user_id, start_date, end_date)

    def get_stats(self, user_id: int, period: StatsPeriod | str) -> AttendanceStats:
        try:
            period = StatsPeriod(period)
        except ValueError as exc:
            raise ValidationError(f"Unknown period: {period}") from exc

        settings = self._settings.current()
        start, end = period_window(period, self._clock.now().date())
        records = self._store.list_for_user(user_id, start, end)
        return build_stats(user_id=user_id, period=period, start=start, end=end, records=records, settings=settings)

    def get_monthly_stats(self, user_id: int, month: int, year: int) -> AttendanceStats:
        """Stats for a chosen calendar month (1-12); the current month ends today."""
        settings = self._settings.current()
        start, end = month_window(month, year, self._clock.now().date())
        records = self._store.list_for_user(user_id, start, end)
        return build_stats(
            user_id=user_id,
            period=StatsPeriod.MONTHLY,
            start=start,
            end=end,
            records=records,
            settings=settings,
        )

    # -- location pass-throughs -----------------------------------------

    def request_location_permission(self) -> bool:
        if self._location is None:
            return False
        return self._location.request_permission() == PermissionStatus.GRANTED

    def current_location(self) -> LocationFix:
        if self._location is None:
            raise LocationUnavailable()
        settings = self._settings.current()
        return self._location.read(
            timeout_seconds=settings.location_timeout_seconds,
            max_age_minutes=settings.location_max_age_minutes,
        )
