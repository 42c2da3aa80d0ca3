"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import Role

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_LOCATION_TIMEOUT_SECONDS = 15
DEFAULT_GEOCODE_TIMEOUT_SECONDS = 5
DEFAULT_PHOTO_TIMEOUT_SECONDS = 10
DEFAULT_LOCATION_MAX_AGE_MINUTES = 5
DEFAULT_HISTORY_DAYS = 30

# Roles allowed to approve manual entries (capability check lives outside the service).
APPROVER_ROLES = frozenset({Role.ADMIN.value, Role.HOD.value})
