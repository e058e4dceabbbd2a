"""Platform collaborators consumed by the tracking loop.

On a phone these would be the OS permission prompt and the GPS receiver. The
desktop build ships a fixed permission answer and a replay sensor that feeds
fixes from a recorded track, which is also what the tests use.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from os import PathLike
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd

from .config import LOCATION_PERMISSION_GRANTED
from .errors import SensorError, TrackingCancelled
from .models import GeoFix

LOGGER = logging.getLogger(__name__)

PathInput = str | Path | PathLike[str]

_LATITUDE_ALIASES = ("latitude", "lat")
_LONGITUDE_ALIASES = ("longitude", "lon", "lng")


class PermissionService(Protocol):
    def request_location_permission(self) -> bool: ...


class LocationSensor(Protocol):
    def get_fix(
        self, accuracy: str, timeout: float, cancel_event: threading.Event
    ) -> GeoFix | None: ...


class StaticPermissionService:
    """Answer every permission request with a fixed value."""

    def __init__(self, granted: bool = LOCATION_PERMISSION_GRANTED) -> None:
        self.granted = granted
        self.requests = 0

    def request_location_permission(self) -> bool:
        self.requests += 1
        return self.granted


class ReplayLocationSensor:
    """Serve fixes from a pre-recorded sequence.

    ``None`` entries in the sequence model a request that produced no fix.
    ``latency_s`` simulates the time the receiver needs; waits longer than the
    request timeout yield no fix, and a stop request during the wait raises
    :class:`TrackingCancelled`. When the sequence runs out the sensor either
    starts over (``repeat=True``) or keeps answering ``None``.
    """

    def __init__(
        self,
        fixes: Iterable[GeoFix | None],
        *,
        latency_s: float = 0.0,
        repeat: bool = False,
    ) -> None:
        self._fixes = list(fixes)
        self._pending: deque[GeoFix | None] = deque(self._fixes)
        self._latency_s = max(0.0, latency_s)
        self._repeat = repeat
        self._lock = threading.Lock()
        self.requests = 0

    @classmethod
    def from_csv(cls, path: PathInput, **kwargs: object) -> "ReplayLocationSensor":
        return cls(load_track_csv(path), **kwargs)  # type: ignore[arg-type]

    def get_fix(
        self, accuracy: str, timeout: float, cancel_event: threading.Event
    ) -> GeoFix | None:
        if cancel_event.is_set():
            raise TrackingCancelled("Fix request cancelled")
        if self._latency_s > 0:
            if cancel_event.wait(min(self._latency_s, timeout)):
                raise TrackingCancelled("Fix request cancelled")
            if self._latency_s > timeout:
                LOGGER.debug("Replay fix timed out after %.1fs", timeout)
                return None
        with self._lock:
            self.requests += 1
            if not self._pending and self._repeat:
                self._pending.extend(self._fixes)
            if not self._pending:
                LOGGER.debug("Replay track exhausted (accuracy=%s)", accuracy)
                return None
            return self._pending.popleft()


class FailingLocationSensor:
    """Sensor stand-in that reports a hardware failure on every request."""

    def __init__(self, message: str = "Location sensor unavailable") -> None:
        self._message = message

    def get_fix(
        self, accuracy: str, timeout: float, cancel_event: threading.Event
    ) -> GeoFix | None:
        raise SensorError(self._message)


def _pick_column(columns: Iterable[str], aliases: tuple[str, ...]) -> str | None:
    lookup = {str(col).strip().lower(): col for col in columns}
    for alias in aliases:
        if alias in lookup:
            return lookup[alias]
    return None


def load_track_csv(path: PathInput) -> list[GeoFix]:
    """Read a CSV track with latitude/longitude columns into fixes.

    Rows with missing or non-numeric coordinates are skipped.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file has no recognisable coordinate columns.
    """

    csv_path = Path(path)
    if not csv_path.is_file():
        raise FileNotFoundError(f"Track file not found: {csv_path}")
    df = pd.read_csv(csv_path)
    lat_col = _pick_column(df.columns, _LATITUDE_ALIASES)
    lon_col = _pick_column(df.columns, _LONGITUDE_ALIASES)
    if lat_col is None or lon_col is None:
        raise ValueError(
            f"Missing latitude/longitude columns in '{csv_path}'. "
            f"Present: {list(df.columns)}"
        )
    coords = df[[lat_col, lon_col]].apply(pd.to_numeric, errors="coerce").dropna()
    skipped = len(df) - len(coords)
    if skipped:
        LOGGER.warning("Skipped %d track row(s) without valid coordinates", skipped)
    return [
        GeoFix(latitude=float(lat), longitude=float(lon))
        for lat, lon in coords.itertuples(index=False, name=None)
    ]


__all__ = [
    "FailingLocationSensor",
    "LocationSensor",
    "PermissionService",
    "ReplayLocationSensor",
    "StaticPermissionService",
    "load_track_csv",
]
