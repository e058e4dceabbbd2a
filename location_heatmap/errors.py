"""Central error types used across the application."""

from __future__ import annotations


class LocationHeatmapError(RuntimeError):
    """Base error for tracking, storage and rendering failures."""


class PermissionDeniedError(LocationHeatmapError):
    """Raised when the platform refuses access to the device location."""


class TrackingCancelled(LocationHeatmapError):
    """Raised when a fix request or wait is interrupted by a stop request."""


class SensorError(LocationHeatmapError):
    """Raised when the location sensor cannot deliver a fix."""


class StorageError(LocationHeatmapError):
    """Raised when the point store cannot read or write the database."""


__all__ = [
    "LocationHeatmapError",
    "PermissionDeniedError",
    "TrackingCancelled",
    "SensorError",
    "StorageError",
]
