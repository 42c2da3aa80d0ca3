SECRET_KEY = "test-secret"

STORAGE = "memory"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "geo_attendance_test",
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

ATTENDANCE = {
    "check_in_time": "09:00",
    "check_out_time": "18:00",
    "late_threshold_minutes": 15,
    "half_day_threshold_hours": 4,
    "working_days": [1, 2, 3, 4, 5],
    "holidays": [],
    "location_required": True,
    "photo_required": False,
    "gps_accuracy_meters": 100,
    "workplace": {"name": "Workplace", "latitude": 40.7128, "longitude": -74.0060, "radius_meters": 100},
    "location_timeout_seconds": 2,
}

LOCATION_PROVIDER = None
