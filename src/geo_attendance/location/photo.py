from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from ..core.constants import DEFAULT_PHOTO_TIMEOUT_SECONDS
from .provider import PhotoCapture

logger = logging.getLogger(__name__)


class BestEffortPhotoCapture:
    """Runs a PhotoCapture with a bounded wait; never raises.

    Independent of location reading, so a photo can be taken even when no
    LocationReader is configured.
    """

    def __init__(
        self,
        capture: PhotoCapture,
        *,
        executor: Optional[Executor] = None,
        timeout_seconds: float = DEFAULT_PHOTO_TIMEOUT_SECONDS,
    ):
        self._capture = capture
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="photo")
        self._timeout = float(timeout_seconds)

    def take(self) -> Optional[str]:
        future = self._executor.submit(self._capture.capture)
        try:
            return future.result(timeout=self._timeout) or None
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Photo capture timed out after %ss", self._timeout)
        except Exception as exc:
            logger.warning("Photo capture failed: %s", exc)
        return None
