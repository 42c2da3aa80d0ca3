from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles as provided by the external authentication layer."""

    ADMIN = "admin"
    HOD = "hod"
    SEVAK = "sevak"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored on each record."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"


class EntryMethod(str, Enum):
    """How a check-in/check-out entry was captured."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class StatsPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
