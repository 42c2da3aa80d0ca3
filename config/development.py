import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# "memory" keeps records in-process; "mysql" uses DB_CONFIG.
STORAGE = os.getenv("STORAGE", "memory")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geo_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Organization attendance rules (owned by the admin flow; read-only here).
# working_days: 0=Sunday .. 6=Saturday.
ATTENDANCE = {
    "check_in_time": os.getenv("CHECK_IN_TIME", "09:00"),
    "check_out_time": os.getenv("CHECK_OUT_TIME", "18:00"),
    "late_threshold_minutes": int(os.getenv("LATE_THRESHOLD_MINUTES", "15")),
    "half_day_threshold_hours": float(os.getenv("HALF_DAY_THRESHOLD_HOURS", "4")),
    "working_days": [1, 2, 3, 4, 5],
    "holidays": [],
    "location_required": bool(int(os.getenv("LOCATION_REQUIRED", "1"))),
    "photo_required": bool(int(os.getenv("PHOTO_REQUIRED", "0"))),
    "gps_accuracy_meters": float(os.getenv("GPS_ACCURACY_METERS", "100")),
    "workplace": {
        "name": os.getenv("WORKPLACE_NAME", "Workplace"),
        "latitude": float(os.getenv("WORKPLACE_LAT", "40.7128")),
        "longitude": float(os.getenv("WORKPLACE_LON", "-74.0060")),
        "radius_meters": float(os.getenv("WORKPLACE_RADIUS_METERS", "100")),
    },
    "location_timeout_seconds": float(os.getenv("LOCATION_TIMEOUT_SECONDS", "15")),
}

# Server-side fallback when a request carries no coordinates.
LOCATION_PROVIDER = {
    "type": "fixed",
    "latitude": ATTENDANCE["workplace"]["latitude"],
    "longitude": ATTENDANCE["workplace"]["longitude"],
    "accuracy": 10.0,
}
