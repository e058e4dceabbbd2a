"""Central configuration for the location heatmap tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os
from pathlib import Path


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
# Private data directory holding the SQLite file. Relative paths resolve
# against the working directory.
DATA_DIR = Path(
    os.getenv("LOCATION_HEATMAP_DATA_DIR", str(Path.home() / ".location_heatmap"))
)

# Fixed database filename inside DATA_DIR.
DB_FILENAME = "locations.db3"


# ---------------------------------------------------------------------------
# Tracking loop
# ---------------------------------------------------------------------------
# Seconds between two consecutive fix requests.
TRACKING_INTERVAL_SECONDS = _env_float("TRACKING_INTERVAL_SECONDS", 10.0)

# Per-request timeout handed to the location sensor.
FIX_TIMEOUT_SECONDS = _env_float("FIX_TIMEOUT_SECONDS", 10.0)

# Accuracy target handed to the location sensor ("low", "medium", "high").
FIX_ACCURACY = os.getenv("FIX_ACCURACY", "medium")

# Viewing radius (km) used when recentering on a fresh fix.
TRACKING_VIEW_RADIUS_KM = _env_float("TRACKING_VIEW_RADIUS_KM", 1.0)

# Desktop stand-in for the platform permission prompt.
LOCATION_PERMISSION_GRANTED = _env_bool("LOCATION_PERMISSION_GRANTED", True)


# ---------------------------------------------------------------------------
# Heatmap
# ---------------------------------------------------------------------------
# Grid cell size in degrees. 0.001 degrees is roughly 111 m of latitude.
HEATMAP_CELL_SIZE_DEG = 0.001

# Base circle radius slider (metres).
RADIUS_MIN_M = 10
RADIUS_MAX_M = 500
RADIUS_DEFAULT_M = _env_int("HEATMAP_RADIUS_DEFAULT_M", 100)

# Circle styling. Low alpha so stacked circles look hotter.
HEAT_STROKE_WIDTH = 1
HEAT_STROKE_COLOR = "#ff0000"
HEAT_FILL_COLOR = "#ff0000"
HEAT_FILL_OPACITY = 100 / 255

# Extra spacing (metres) between stacked circles of the same bin.
HEAT_LAYER_STEP_M = 10.0

# Fitted view bounds (km).
VIEW_MIN_RADIUS_KM = 0.5
VIEW_MARGIN_KM = 0.5


# ---------------------------------------------------------------------------
# Map rendering
# ---------------------------------------------------------------------------
# Map center shown before any point has been recorded.
MAP_DEFAULT_CENTER = (
    _env_float("MAP_DEFAULT_LAT", 51.4816),
    _env_float("MAP_DEFAULT_LON", -3.1791),
)
MAP_DEFAULT_ZOOM = _env_int("MAP_DEFAULT_ZOOM", 13)

# Output path used by the render command when none is given.
MAP_OUTPUT_FILE = os.getenv("MAP_OUTPUT_FILE", "heatmap.html")


# ---------------------------------------------------------------------------
# Excel formatting
# ---------------------------------------------------------------------------
# Automatically size columns after writing the export sheet (openpyxl only).
EXCEL_AUTOSIZE_COLUMNS = True
EXCEL_AUTOSIZE_MAX_WIDTH = 50  # characters
EXCEL_AUTOSIZE_MIN_WIDTH = 6  # characters
EXCEL_AUTOSIZE_PADDING = 2  # extra characters added to the detected max
EXCEL_AUTOSIZE_MAX_ROWS = (
    5000  # skip autosize for very large sheets (performance guard)
)
