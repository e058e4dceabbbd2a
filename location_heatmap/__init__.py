"""Location heatmap package."""

from .main import main
from .models import GridBin, HeatCircle, LocationRecord, MapView
from .errors import PermissionDeniedError, SensorError, StorageError
from .session import HeatmapSession

__all__ = [
    "main",
    "GridBin",
    "HeatCircle",
    "LocationRecord",
    "MapView",
    "HeatmapSession",
    "PermissionDeniedError",
    "SensorError",
    "StorageError",
]
