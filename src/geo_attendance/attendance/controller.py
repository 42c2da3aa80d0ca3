from __future__ import annotations

import logging
from datetime import timedelta
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import now_local, parse_iso_date
from ..core.constants import APPROVER_ROLES, DEFAULT_HISTORY_DAYS
from ..core.exceptions import (
    AlreadyCheckedIn,
    AuthorizationError,
    DomainError,
    LocationUnavailable,
    NotCheckedIn,
    PermissionDenied,
    RecordNotFound,
    ValidationError,
)
from ..geofence.model import LocationFix
from ..geofence.validator import format_location
from .model import AttendanceEntry, AttendanceRecord, AttendanceStats

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (AlreadyCheckedIn, 409),
    (NotCheckedIn, 409),
    (RecordNotFound, 404),
    (ValidationError, 400),
    (PermissionDenied, 403),
    (AuthorizationError, 403),
    (LocationUnavailable, 503),
)


def _status_code_for(exc: DomainError) -> int:
    for kind, code in _STATUS_CODES:
        if isinstance(exc, kind):
            return code
    return 400


def _entry_to_dict(entry: Optional[AttendanceEntry]) -> Optional[dict]:
    if entry is None:
        return None
    loc = entry.location
    return {
        "timestamp": entry.timestamp.isoformat(),
        "method": entry.method.value,
        "verified": entry.verified,
        "location": (
            {
                "latitude": loc.latitude,
                "longitude": loc.longitude,
                "address": format_location(loc.latitude, loc.longitude, loc.address),
            }
            if loc
            else None
        ),
        "has_photo": bool(entry.photo),
    }


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "id": r.record_id,
        "user_id": r.user_id,
        "date": r.work_date.strftime("%Y-%m-%d"),
        "check_in": _entry_to_dict(r.check_in),
        "check_out": _entry_to_dict(r.check_out),
        "total_hours": round(r.total_hours, 2) if r.total_hours is not None else None,
        "status": r.status.value,
        "notes": r.notes,
        "approved_by": r.approved_by,
        "created_at": r.created_at.isoformat(),
        "updated_at": r.updated_at.isoformat(),
        "corrections": len(r.corrections),
    }


def stats_to_dict(s: AttendanceStats) -> dict:
    return {
        "user_id": s.user_id,
        "period": s.period.value,
        "start_date": s.start_date.strftime("%Y-%m-%d"),
        "end_date": s.end_date.strftime("%Y-%m-%d"),
        "total_days": s.total_days,
        "present_days": s.present_days,
        "absent_days": s.absent_days,
        "late_days": s.late_days,
        "half_days": s.half_days,
        "leave_days": s.leave_days,
        "total_hours": s.total_hours,
        "average_hours_per_day": s.average_hours_per_day,
        "attendance_percentage": s.attendance_percentage,
    }


def _parse_location(payload: Any) -> Optional[LocationFix]:
    if not payload:
        return None
    try:
        accuracy = payload.get("accuracy")
        return LocationFix(
            latitude=float(payload["latitude"]),
            longitude=float(payload["longitude"]),
            accuracy=float(accuracy) if accuracy is not None else None,
            address=(payload.get("address") or None),
            timestamp=now_local(),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValidationError("Invalid location payload") from exc


def register(app: Flask, container) -> None:
    service = container.attendance_service

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Please log in to continue"}), 401
            return view(*args, **kwargs)

        return wrapper

    def domain_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                return jsonify({"success": False, "error": type(e).__name__, "message": str(e)}), _status_code_for(e)
            except Exception:
                logger.exception("Unhandled error in %s", view.__name__)
                return jsonify({"success": False, "message": "Attendance system error, please try again"}), 500

        return wrapper

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    @app.route("/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    @domain_errors
    def check_in():
        data = _body()
        record = service.check_in(
            int(session["user_id"]),
            location=_parse_location(data.get("location")),
            photo=data.get("photo") or None,
        )
        return jsonify({"success": True, "message": "Checked in successfully", "record": record_to_dict(record)}), 201

    @app.route("/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    @domain_errors
    def check_out():
        data = _body()
        record = service.check_out(
            int(session["user_id"]),
            location=_parse_location(data.get("location")),
            photo=data.get("photo") or None,
        )
        return jsonify({"success": True, "message": "Checked out successfully", "record": record_to_dict(record)})

    @app.route("/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    @domain_errors
    def today():
        record = service.get_today_record(int(session["user_id"]))
        return jsonify({"success": True, "record": record_to_dict(record) if record else None})

    @app.route("/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    @domain_errors
    def history():
        try:
            end = parse_iso_date(request.args["end"]) if request.args.get("end") else now_local().date()
            start = (
                parse_iso_date(request.args["start"])
                if request.args.get("start")
                else end - timedelta(days=DEFAULT_HISTORY_DAYS)
            )
        except ValueError as exc:
            raise ValidationError("Dates must use YYYY-MM-DD") from exc

        records = service.get_history(int(session["user_id"]), start, end)
        return jsonify({"success": True, "records": [record_to_dict(r) for r in records]})

    @app.route("/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    @domain_errors
    def stats():
        user_id = int(session["user_id"])
        if request.args.get("month") or request.args.get("year"):
            try:
                month = int(request.args["month"])
                year = int(request.args["year"])
            except (KeyError, ValueError) as exc:
                raise ValidationError("month and year must both be integers") from exc
            s = service.get_monthly_stats(user_id, month, year)
        else:
            s = service.get_stats(user_id, request.args.get("period", "monthly"))
        return jsonify({"success": True, "stats": stats_to_dict(s)})

    @app.route("/attendance/<int:record_id>/approve", methods=["POST"], endpoint="attendance_approve")
    @login_required
    @domain_errors
    def approve(record_id: int):
        record = service.approve(
            record_id,
            int(session["user_id"]),
            can_approve=session.get("role") in APPROVER_ROLES,
        )
        return jsonify({"success": True, "message": "Attendance approved", "record": record_to_dict(record)})

    @app.route("/attendance/<int:record_id>/notes", methods=["POST"], endpoint="attendance_notes")
    @login_required
    @domain_errors
    def notes(record_id: int):
        record = service.update_notes(
            record_id,
            str(_body().get("notes", "")),
            corrected_by=int(session["user_id"]),
            can_edit_any=session.get("role") in APPROVER_ROLES,
        )
        return jsonify({"success": True, "record": record_to_dict(record)})
