"""Single-screen session state and the Start/Stop/Refresh/Clear actions.

Every action converts failures into a status string instead of raising, so a
front end only has to display :attr:`HeatmapSession.status`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import RADIUS_DEFAULT_M, RADIUS_MAX_M, RADIUS_MIN_M
from .devices import LocationSensor, PermissionService
from .heatmap import compute_heatmap
from .map_surface import MapSurface
from .models import HeatCircle, HeatmapLayer, LocationRecord
from .storage import PointStore
from .tracking import TrackingLoop, TrackingSettings, format_error

LOGGER = logging.getLogger(__name__)

STATUS_CLEARED = "Database cleared + heatmap removed."


class HeatmapSession:
    def __init__(
        self,
        store: PointStore,
        surface: MapSurface,
        sensor: LocationSensor,
        permissions: PermissionService,
        *,
        tracking_settings: TrackingSettings | None = None,
        base_radius_m: float = RADIUS_DEFAULT_M,
    ) -> None:
        self.store = store
        self.surface = surface
        self.status = ""
        self.base_radius_m = float(base_radius_m)
        self.drawn_shapes: List[HeatCircle] = []
        self.tracker = TrackingLoop(
            store,
            sensor,
            permissions,
            surface=surface,
            settings=tracking_settings,
            on_status=self._set_status,
        )

    def _set_status(self, message: str) -> None:
        self.status = message

    @property
    def saved_count(self) -> int:
        return self.tracker.saved_count

    # ----- Tracking -------------------------------------------------------
    def start_tracking(self) -> bool:
        return self.tracker.start()

    def stop_tracking(self) -> None:
        self.tracker.stop()

    # ----- Radius control -------------------------------------------------
    def set_radius(self, value: float) -> str:
        """Clamp the base radius to the slider range and return its label."""

        clamped = max(float(RADIUS_MIN_M), min(float(RADIUS_MAX_M), float(value)))
        self.base_radius_m = clamped
        return f"{int(clamped)}"

    # ----- Heatmap --------------------------------------------------------
    def refresh(self) -> Optional[HeatmapLayer]:
        """Redraw the heatmap from every stored point."""

        try:
            points = self.store.list_all()
            self.status = f"DB has {len(points)} saved point(s). Drawing heatmap..."
            layer = self.draw_heatmap(points)
            self.status = f"Heatmap drawn. Points: {len(points)}"
            return layer
        except Exception as exc:
            LOGGER.error("Heatmap refresh failed: %s", exc, exc_info=True)
            self.status = format_error(exc)
            return None

    def clear(self) -> Optional[int]:
        """Delete stored points, reset the tally and remove drawn circles."""

        try:
            removed = self.store.clear()
            self.tracker.reset_count()
            self.clear_heatmap()
            self.status = STATUS_CLEARED
            return removed
        except Exception as exc:
            LOGGER.error("Clearing stored points failed: %s", exc, exc_info=True)
            self.status = format_error(exc)
            return None

    def clear_heatmap(self) -> None:
        for circle in self.drawn_shapes:
            self.surface.remove_shape(circle)
        self.drawn_shapes.clear()

    def draw_heatmap(self, points: List[LocationRecord]) -> HeatmapLayer:
        self.clear_heatmap()
        layer = compute_heatmap(points, self.base_radius_m)
        if layer.is_empty:
            return layer
        for circle in layer.circles:
            self.surface.add_shape(circle)
            self.drawn_shapes.append(circle)
        if layer.view is not None:
            self.surface.set_view(layer.view)
        LOGGER.info(
            "Drew %d circle(s) for %d bin(s) (max count %d)",
            len(layer.circles),
            len(layer.bins),
            layer.max_count,
        )
        return layer


__all__ = ["HeatmapSession", "STATUS_CLEARED"]
