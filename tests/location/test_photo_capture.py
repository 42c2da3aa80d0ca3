from __future__ import annotations

import threading

from geo_attendance.location.photo import BestEffortPhotoCapture


class Camera:
    def capture(self):
        return "blob://photo/1"


class BrokenCamera:
    def capture(self):
        raise OSError("camera busy")


def test_capture_returns_blob_reference():
    assert BestEffortPhotoCapture(Camera()).take() == "blob://photo/1"


def test_capture_failure_returns_none():
    assert BestEffortPhotoCapture(BrokenCamera()).take() is None


def test_empty_capture_returns_none():
    class EmptyCamera:
        def capture(self):
            return ""

    assert BestEffortPhotoCapture(EmptyCamera()).take() is None


def test_capture_timeout_returns_none():
    release = threading.Event()

    class SlowCamera:
        def capture(self):
            release.wait(5)
            return "blob://late"

    try:
        assert BestEffortPhotoCapture(SlowCamera(), timeout_seconds=0.05).take() is None
    finally:
        release.set()
