"""Map surfaces that heatmap circles and view changes are drawn onto."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Optional, Protocol, Union

import folium  # Using folium to build an interactive Leaflet map.

from .config import MAP_DEFAULT_CENTER, MAP_DEFAULT_ZOOM
from .models import HeatCircle, LatLon, MapView

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Equatorial circumference; a Leaflet map at zoom z spans it in 256 * 2**z px.
_EARTH_CIRCUMFERENCE_KM = 40075.0
_MIN_ZOOM = 1
_MAX_ZOOM = 18


class MapSurface(Protocol):
    def add_shape(self, circle: HeatCircle) -> None: ...

    def remove_shape(self, circle: HeatCircle) -> None: ...

    def set_view(self, view: MapView) -> None: ...


def zoom_for_radius(radius_km: float, latitude: float = 0.0) -> int:
    """Return the Leaflet zoom level that roughly fits ``radius_km`` on screen."""

    if radius_km <= 0:
        return _MAX_ZOOM
    span = _EARTH_CIRCUMFERENCE_KM * max(math.cos(math.radians(latitude)), 0.01)
    zoom = int(math.floor(math.log2(span / radius_km)))
    return max(_MIN_ZOOM, min(_MAX_ZOOM, zoom))


class FoliumMapSurface:
    """Collect shapes and the current view, rendering them with folium."""

    def __init__(
        self,
        default_center: LatLon = MAP_DEFAULT_CENTER,
        default_zoom: int = MAP_DEFAULT_ZOOM,
    ) -> None:
        self._default_center = default_center
        self._default_zoom = default_zoom
        self._shapes: List[HeatCircle] = []
        self.view: Optional[MapView] = None

    @property
    def shapes(self) -> List[HeatCircle]:
        return list(self._shapes)

    def add_shape(self, circle: HeatCircle) -> None:
        self._shapes.append(circle)

    def remove_shape(self, circle: HeatCircle) -> None:
        # Stacked circles compare equal; remove this exact object.
        for index, shape in enumerate(self._shapes):
            if shape is circle:
                del self._shapes[index]
                return
        LOGGER.debug("Ignoring removal of a shape that is not on the map")

    def set_view(self, view: MapView) -> None:
        self.view = view

    def render(self) -> folium.Map:
        """Build a :class:`folium.Map` with every current shape."""

        if self.view is not None:
            center = self.view.center
            zoom = zoom_for_radius(self.view.radius_km, center[0])
        else:
            center = self._default_center
            zoom = self._default_zoom

        folium_map = folium.Map(location=center, zoom_start=zoom, control_scale=True)
        for circle in self._shapes:
            folium.Circle(
                location=circle.center,
                radius=circle.radius_m,
                color=circle.stroke_color,
                weight=circle.stroke_width,
                fill=True,
                fill_color=circle.fill_color,
                fill_opacity=circle.fill_opacity,
            ).add_to(folium_map)
        return folium_map

    def save(self, output_html_path: PathLike) -> Path:
        """Render the map and write it to ``output_html_path``."""

        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.render().save(str(output_path))
        LOGGER.info(
            "Map with %d shape(s) written to %s", len(self._shapes), output_path
        )
        return output_path


__all__ = ["FoliumMapSurface", "MapSurface", "zoom_for_radius"]
