import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORAGE = os.getenv("STORAGE", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geo_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

ATTENDANCE = {
    "check_in_time": os.getenv("CHECK_IN_TIME", "09:00"),
    "check_out_time": os.getenv("CHECK_OUT_TIME", "18:00"),
    "late_threshold_minutes": int(os.getenv("LATE_THRESHOLD_MINUTES", "15")),
    "half_day_threshold_hours": float(os.getenv("HALF_DAY_THRESHOLD_HOURS", "4")),
    "working_days": [int(d) for d in os.getenv("WORKING_DAYS", "1,2,3,4,5").split(",") if d.strip()],
    "holidays": [d.strip() for d in os.getenv("HOLIDAYS", "").split(",") if d.strip()],
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

# Coordinates must come from the client device in production.
LOCATION_PROVIDER = None
