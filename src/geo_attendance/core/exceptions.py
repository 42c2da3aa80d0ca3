from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a user-facing default message so callers can show
    ``str(exc)`` without leaking lower-layer details.
    """

    default_message = "Attendance operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class AlreadyCheckedIn(ValidationError):
    default_message = "You have already checked in today"


class NotCheckedIn(ValidationError):
    default_message = "You must check in first or have already checked out"


class LocationAccuracyError(ValidationError):
    default_message = "Location accuracy is not sufficient for attendance tracking"


class OutOfRangeError(ValidationError):
    default_message = "You must be at the workplace to check in/out"


class RecordNotFound(ValidationError):
    default_message = "Attendance record not found"


class PermissionDenied(DomainError):
    default_message = "Location permission is required to check in/out"


class LocationUnavailable(DomainError):
    default_message = "Unable to determine your current location, please try again"


class Unauthorized(AuthorizationError):
    default_message = "You are not allowed to approve attendance records"


class DuplicateRecordError(DomainError):
    """Raised by repositories when the (user_id, work_date) key already exists."""

    default_message = "An attendance record already exists for this day"
