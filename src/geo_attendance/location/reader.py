from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from typing import Optional

from ..common.datetime_utils import Clock, SystemClock
from ..core.constants import DEFAULT_GEOCODE_TIMEOUT_SECONDS
from ..core.enums import PermissionStatus
from ..core.exceptions import DomainError, LocationUnavailable, PermissionDenied
from ..geofence.model import LocationFix
from ..geofence.validator import format_location, is_fix_recent
from .provider import Geocoder, LocationProvider

logger = logging.getLogger(__name__)


class LocationReader:
    """Adapter that turns a LocationProvider into a bounded, validated read.

    The provider call runs on a worker thread so a hanging device never blocks
    the caller for longer than the configured timeout. Reverse geocoding is
    best-effort: any failure leaves the raw coordinates as the address.
    """

    def __init__(
        self,
        provider: LocationProvider,
        *,
        geocoder: Optional[Geocoder] = None,
        clock: Optional[Clock] = None,
        executor: Optional[Executor] = None,
        geocode_timeout_seconds: float = DEFAULT_GEOCODE_TIMEOUT_SECONDS,
    ):
        self._provider = provider
        self._geocoder = geocoder
        self._clock = clock or SystemClock()
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="location")
        self._geocode_timeout = float(geocode_timeout_seconds)

    def check_permission(self) -> PermissionStatus:
        try:
            return self._provider.check_permission()
        except Exception as exc:
            raise LocationUnavailable() from exc

    def request_permission(self) -> PermissionStatus:
        try:
            status = self._provider.request_permission()
        except Exception as exc:
            logger.warning("Requesting location permission failed: %s", exc)
            return PermissionStatus.DENIED
        logger.info("Location permission %s", status.value)
        return status

    def ensure_permission(self) -> None:
        if self.check_permission() == PermissionStatus.GRANTED:
            return
        if self.request_permission() != PermissionStatus.GRANTED:
            raise PermissionDenied()

    def read(self, *, timeout_seconds: float, max_age_minutes: float) -> LocationFix:
        self.ensure_permission()

        future = self._executor.submit(self._provider.get_current_location)
        try:
            fix = future.result(timeout=timeout_seconds)
        except FutureTimeoutError as exc:
            future.cancel()
            logger.warning("Location request timed out after %ss", timeout_seconds)
            raise LocationUnavailable() from exc
        except DomainError:
            raise
        except Exception as exc:
            logger.warning("Location provider failed: %s", exc)
            raise LocationUnavailable() from exc

        if not is_fix_recent(fix, self._clock.now(), max_age_minutes):
            logger.warning("Discarding stale location fix from %s", fix.timestamp)
            raise LocationUnavailable()

        if fix.address is None:
            fix = replace(fix, address=self._resolve_address(fix))
        return fix

    def _resolve_address(self, fix: LocationFix) -> str:
        address = None
        if self._geocoder is not None:
            future = self._executor.submit(self._geocoder.reverse_geocode, fix.latitude, fix.longitude)
            try:
                address = future.result(timeout=self._geocode_timeout)
            except FutureTimeoutError:
                future.cancel()
                logger.warning("Reverse geocoding timed out")
            except Exception as exc:
                logger.warning("Reverse geocoding failed: %s", exc)
        return format_location(fix.latitude, fix.longitude, (address or "").strip() or None)
