from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

LatLon = Tuple[float, float]
CellKey = Tuple[int, int]


@dataclass(frozen=True)
class LocationRecord:
    latitude: float
    longitude: float
    captured_at_utc: datetime
    # Assigned by the point store on insert
    id: Optional[int] = None


@dataclass(frozen=True)
class GeoFix:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GridBin:
    lat_cell: int
    lon_cell: int
    count: int

    @property
    def key(self) -> CellKey:
        return (self.lat_cell, self.lon_cell)


@dataclass(frozen=True)
class HeatCircle:
    center: LatLon
    radius_m: float
    stroke_width: int
    stroke_color: str
    fill_color: str
    fill_opacity: float


@dataclass(frozen=True)
class MapView:
    center: LatLon
    radius_km: float


@dataclass
class HeatmapLayer:
    bins: list[GridBin] = field(default_factory=list)
    max_count: int = 0
    circles: list[HeatCircle] = field(default_factory=list)
    view: Optional[MapView] = None

    @property
    def is_empty(self) -> bool:
        return not self.bins
