"""Cancellable periodic location sampler.

One :class:`TrackingLoop` owns at most one active loop at a time. The loop
asks the sensor for a fix, stores it, reports the running tally and then waits
for the next interval. A single :class:`threading.Event` is shared by the fix
request and the interval wait so that :meth:`TrackingLoop.stop` interrupts
whichever one is in progress.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .config import (
    FIX_ACCURACY,
    FIX_TIMEOUT_SECONDS,
    TRACKING_INTERVAL_SECONDS,
    TRACKING_VIEW_RADIUS_KM,
)
from .devices import LocationSensor, PermissionService
from .errors import PermissionDeniedError, TrackingCancelled
from .map_surface import MapSurface
from .models import LocationRecord, MapView
from .storage import PointStore

LOGGER = logging.getLogger(__name__)

STATUS_ALREADY_RUNNING = "Tracking already running..."
STATUS_PERMISSION_DENIED = "Location permission denied."
STATUS_STARTED = "Tracking started..."
STATUS_STOPPED = "Tracking stopped."

StatusCallback = Callable[[str], None]


class TrackingOutcome(enum.Enum):
    ALREADY_RUNNING = "already_running"
    PERMISSION_DENIED = "permission_denied"
    STOPPED = "stopped"
    FAILED = "failed"


def format_error(exc: BaseException) -> str:
    return f"Error: {exc}"


def format_saved(count: int, record: LocationRecord) -> str:
    return f"Saved #{count}: {record.latitude:.5f}, {record.longitude:.5f}"


@dataclass(slots=True)
class TrackingSettings:
    interval_s: float = TRACKING_INTERVAL_SECONDS
    fix_timeout_s: float = FIX_TIMEOUT_SECONDS
    accuracy: str = FIX_ACCURACY
    view_radius_km: float = TRACKING_VIEW_RADIUS_KM


class TrackingLoop:
    """Sample the location sensor on a fixed interval until stopped."""

    def __init__(
        self,
        store: PointStore,
        sensor: LocationSensor,
        permissions: PermissionService,
        *,
        surface: Optional[MapSurface] = None,
        settings: TrackingSettings | None = None,
        on_status: StatusCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._sensor = sensor
        self._permissions = permissions
        self._surface = surface
        self.settings = settings or TrackingSettings()
        self._on_status = on_status
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._slot_lock = threading.Lock()
        self._cancel_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self.saved_count = 0
        self.last_outcome: TrackingOutcome | None = None
        self.status = ""

    @property
    def is_running(self) -> bool:
        return self._cancel_event is not None

    def reset_count(self) -> None:
        self.saved_count = 0

    def _report(self, message: str) -> None:
        self.status = message
        if self._on_status is not None:
            self._on_status(message)

    def _claim_slot(self) -> threading.Event | None:
        with self._slot_lock:
            if self._cancel_event is not None:
                return None
            self._cancel_event = threading.Event()
            return self._cancel_event

    def _release_slot(self) -> None:
        with self._slot_lock:
            self._cancel_event = None
            self._thread = None

    def start(self) -> bool:
        """Launch the loop on a background thread.

        Returns ``False`` (and reports "already running") when a loop is
        active; permission is requested on the worker thread.
        """

        cancel_event = self._claim_slot()
        if cancel_event is None:
            self._report(STATUS_ALREADY_RUNNING)
            self.last_outcome = TrackingOutcome.ALREADY_RUNNING
            return False
        thread = threading.Thread(
            target=self._run_claimed,
            args=(cancel_event,),
            name="location-tracking",
            daemon=True,
        )
        with self._slot_lock:
            self._thread = thread
        thread.start()
        return True

    def run(self) -> TrackingOutcome:
        """Run the loop in the calling thread until it stops or fails."""

        cancel_event = self._claim_slot()
        if cancel_event is None:
            self._report(STATUS_ALREADY_RUNNING)
            self.last_outcome = TrackingOutcome.ALREADY_RUNNING
            return TrackingOutcome.ALREADY_RUNNING
        return self._run_claimed(cancel_event)

    def stop(self) -> None:
        """Signal cancellation; a no-op when no loop is active."""

        with self._slot_lock:
            cancel_event = self._cancel_event
        if cancel_event is not None:
            LOGGER.info("Stop requested for tracking loop")
            cancel_event.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for a background loop; returns ``True`` once it has finished."""

        with self._slot_lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
            return not thread.is_alive()
        return True

    def _run_claimed(self, cancel_event: threading.Event) -> TrackingOutcome:
        outcome = TrackingOutcome.FAILED
        try:
            try:
                granted = self._permissions.request_location_permission()
            except PermissionDeniedError:
                granted = False
            if not granted:
                LOGGER.warning("Location permission denied; tracking not started")
                self._report(STATUS_PERMISSION_DENIED)
                outcome = TrackingOutcome.PERMISSION_DENIED
                return outcome

            self._report(STATUS_STARTED)
            LOGGER.info(
                "Tracking started (interval=%.1fs timeout=%.1fs accuracy=%s)",
                self.settings.interval_s,
                self.settings.fix_timeout_s,
                self.settings.accuracy,
            )
            while not cancel_event.is_set():
                self._sample_once(cancel_event)
                if cancel_event.wait(self.settings.interval_s):
                    break
            self._report(STATUS_STOPPED)
            outcome = TrackingOutcome.STOPPED
        except TrackingCancelled:
            self._report(STATUS_STOPPED)
            outcome = TrackingOutcome.STOPPED
        except Exception as exc:
            LOGGER.error("Tracking loop failed: %s", exc, exc_info=True)
            self._report(format_error(exc))
            outcome = TrackingOutcome.FAILED
        finally:
            self.last_outcome = outcome
            self._release_slot()
            LOGGER.info(
                "Tracking loop finished outcome=%s saved=%d",
                outcome.value,
                self.saved_count,
            )
        return outcome

    def _sample_once(self, cancel_event: threading.Event) -> None:
        fix = self._sensor.get_fix(
            self.settings.accuracy, self.settings.fix_timeout_s, cancel_event
        )
        if cancel_event.is_set():
            raise TrackingCancelled("Tracking cancelled during fix request")
        if fix is None:
            LOGGER.debug("No location fix this interval")
            return

        record = LocationRecord(
            latitude=fix.latitude,
            longitude=fix.longitude,
            captured_at_utc=self._clock(),
        )
        record_id = self._store.add(record)
        self.saved_count += 1
        LOGGER.info(
            "Saved point #%d id=%s (%.5f, %.5f)",
            self.saved_count,
            record_id,
            record.latitude,
            record.longitude,
        )
        self._report(format_saved(self.saved_count, record))

        if self._surface is not None:
            self._surface.set_view(
                MapView(
                    center=(record.latitude, record.longitude),
                    radius_km=self.settings.view_radius_km,
                )
            )


__all__ = [
    "STATUS_ALREADY_RUNNING",
    "STATUS_PERMISSION_DENIED",
    "STATUS_STARTED",
    "STATUS_STOPPED",
    "TrackingLoop",
    "TrackingOutcome",
    "TrackingSettings",
    "format_error",
]
