"""Example: drive the service layer directly (no Flask).

Checks a user in and out at the configured workplace and prints the day's record.
"""

import importlib

from config import get_settings_module

from geo_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(settings=settings)
    service = container.attendance_service

    record = service.check_in(user_id=1)
    print("check-in:", record.status.value, record.check_in.method.value)

    record = service.check_out(user_id=1)
    print("check-out:", record.status.value, f"{record.total_hours:.2f}h")
    print(service.get_stats(1, "monthly"))


if __name__ == "__main__":
    main()
