"""Spatial binning that turns stored points into heatmap draw instructions.

Points are grouped into a fixed grid of ``HEATMAP_CELL_SIZE_DEG`` cells. Each
occupied cell becomes one to three stacked translucent circles; overlapping
circles read as "hotter" on the map. The functions here are pure: callers are
responsible for removing previously drawn circles before applying new ones.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Dict, List, Sequence

import numpy as np

from .config import (
    HEAT_FILL_COLOR,
    HEAT_FILL_OPACITY,
    HEAT_LAYER_STEP_M,
    HEAT_STROKE_COLOR,
    HEAT_STROKE_WIDTH,
    HEATMAP_CELL_SIZE_DEG,
    VIEW_MARGIN_KM,
    VIEW_MIN_RADIUS_KM,
)
from .models import CellKey, GridBin, HeatCircle, HeatmapLayer, LocationRecord, MapView

KM_PER_DEGREE = 111.0

# The multiplier spreads counts over 1..5 but the clamp keeps the literal
# upper bound of 3 layers.
INTENSITY_SCALE = 5.0
MIN_INTENSITY = 1
MAX_INTENSITY = 3

BASE_RADIUS_FACTOR = 0.3


def cell_key(
    latitude: float, longitude: float, cell_size: float = HEATMAP_CELL_SIZE_DEG
) -> CellKey:
    """Return the ``(lat_cell, lon_cell)`` grid index for a coordinate."""

    return (math.floor(latitude / cell_size), math.floor(longitude / cell_size))


def cell_center(
    key: CellKey, cell_size: float = HEATMAP_CELL_SIZE_DEG
) -> tuple[float, float]:
    lat_cell, lon_cell = key
    return ((lat_cell + 0.5) * cell_size, (lon_cell + 0.5) * cell_size)


def bin_records(
    records: Sequence[LocationRecord], cell_size: float = HEATMAP_CELL_SIZE_DEG
) -> List[GridBin]:
    """Count records per grid cell.

    Bins are returned sorted by cell key so repeated calls over the same
    snapshot produce identical output regardless of record order.
    """

    if cell_size <= 0:
        raise ValueError("cell_size must be positive")
    counts: Counter[CellKey] = Counter(
        cell_key(r.latitude, r.longitude, cell_size) for r in records
    )
    return [
        GridBin(lat_cell=lat_cell, lon_cell=lon_cell, count=count)
        for (lat_cell, lon_cell), count in sorted(counts.items())
    ]


def intensity_for(count: int, max_count: int) -> int:
    """Return how many stacked circles represent a bin of ``count`` points."""

    if max_count <= 0:
        raise ValueError("max_count must be positive")
    raw = math.ceil(INTENSITY_SCALE * count / max_count)
    return max(MIN_INTENSITY, min(MAX_INTENSITY, raw))


def intensities(bins: Sequence[GridBin]) -> Dict[CellKey, int]:
    if not bins:
        return {}
    max_count = max(b.count for b in bins)
    return {b.key: intensity_for(b.count, max_count) for b in bins}


def build_circles(
    bins: Sequence[GridBin],
    base_radius_m: float,
    cell_size: float = HEATMAP_CELL_SIZE_DEG,
) -> List[HeatCircle]:
    """Return the stacked circles for every bin, innermost layer first."""

    circles: List[HeatCircle] = []
    for key, intensity in intensities(bins).items():
        center = cell_center(key, cell_size)
        for layer in range(intensity):
            circles.append(
                HeatCircle(
                    center=center,
                    radius_m=base_radius_m * BASE_RADIUS_FACTOR
                    + layer * HEAT_LAYER_STEP_M,
                    stroke_width=HEAT_STROKE_WIDTH,
                    stroke_color=HEAT_STROKE_COLOR,
                    fill_color=HEAT_FILL_COLOR,
                    fill_opacity=HEAT_FILL_OPACITY,
                )
            )
    return circles


def fit_view(records: Sequence[LocationRecord]) -> MapView | None:
    """Return a view centred on the bounding box that covers every record.

    The radius is half the box diagonal in kilometres (longitude scaled by the
    cosine of the centre latitude), floored at ``VIEW_MIN_RADIUS_KM`` and
    widened by ``VIEW_MARGIN_KM``.
    """

    if not records:
        return None
    coords = np.array([(r.latitude, r.longitude) for r in records], dtype=float)
    min_lat, min_lon = coords.min(axis=0)
    max_lat, max_lon = coords.max(axis=0)
    center_lat = (min_lat + max_lat) / 2.0
    center_lon = (min_lon + max_lon) / 2.0

    lat_km = (max_lat - min_lat) * KM_PER_DEGREE
    lon_km = (max_lon - min_lon) * KM_PER_DEGREE * math.cos(math.radians(center_lat))
    radius_km = max(VIEW_MIN_RADIUS_KM, math.hypot(lat_km, lon_km) / 2.0)
    return MapView(
        center=(float(center_lat), float(center_lon)),
        radius_km=float(radius_km + VIEW_MARGIN_KM),
    )


def compute_heatmap(
    records: Sequence[LocationRecord],
    base_radius_m: float,
    cell_size: float = HEATMAP_CELL_SIZE_DEG,
) -> HeatmapLayer:
    """Bin ``records`` and return circles plus the fitted view.

    An empty snapshot yields an empty layer with no view, meaning nothing is
    drawn and the map is not moved.
    """

    if not records:
        return HeatmapLayer()
    bins = bin_records(records, cell_size)
    return HeatmapLayer(
        bins=bins,
        max_count=max(b.count for b in bins),
        circles=build_circles(bins, base_radius_m, cell_size),
        view=fit_view(records),
    )


__all__ = [
    "bin_records",
    "build_circles",
    "cell_center",
    "cell_key",
    "compute_heatmap",
    "fit_view",
    "intensities",
    "intensity_for",
]
