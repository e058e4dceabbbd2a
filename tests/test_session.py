"""Tests for the session actions that back the UI controls."""

from __future__ import annotations

import pytest

from location_heatmap.devices import ReplayLocationSensor, StaticPermissionService
from location_heatmap.errors import StorageError
from location_heatmap.session import STATUS_CLEARED, HeatmapSession
from location_heatmap.tracking import TrackingSettings


def _session(store, surface, **kwargs) -> HeatmapSession:
    return HeatmapSession(
        store,
        surface,
        ReplayLocationSensor([]),
        StaticPermissionService(),
        tracking_settings=TrackingSettings(interval_s=0.01),
        **kwargs,
    )


def test_refresh_draws_circles_and_fits_view(memory_store, surface, example_records) -> None:
    for record in example_records:
        memory_store.add(record)
    session = _session(memory_store, surface, base_radius_m=100)

    layer = session.refresh()

    assert layer is not None
    assert session.status == "Heatmap drawn. Points: 3"
    assert len(surface.shapes) == 6
    assert len(session.drawn_shapes) == 6
    assert surface.view.center == pytest.approx((10.0006, 20.0006))


def test_refresh_twice_replaces_previous_circles(memory_store, surface, example_records) -> None:
    for record in example_records:
        memory_store.add(record)
    session = _session(memory_store, surface)

    session.refresh()
    session.refresh()

    assert len(surface.shapes) == 6


def test_refresh_on_empty_store_draws_nothing(memory_store, surface) -> None:
    session = _session(memory_store, surface)

    session.refresh()

    assert surface.shapes == []
    assert surface.view is None
    assert session.status == "Heatmap drawn. Points: 0"


def test_clear_empties_store_and_map(memory_store, surface, example_records) -> None:
    for record in example_records:
        memory_store.add(record)
    session = _session(memory_store, surface)
    session.refresh()
    session.tracker.saved_count = 3

    removed = session.clear()

    assert removed == 3
    assert session.status == STATUS_CLEARED
    assert session.saved_count == 0
    assert surface.shapes == []
    assert memory_store.list_all() == []
    session.refresh()
    assert surface.shapes == []


class _FailingStore:
    def list_all(self):
        raise StorageError("database is locked")

    def clear(self):
        raise StorageError("database is locked")


def test_store_failures_become_status_text(surface) -> None:
    session = _session(_FailingStore(), surface)

    assert session.refresh() is None
    assert session.status == "Error: database is locked"
    assert session.clear() is None
    assert session.status == "Error: database is locked"


@pytest.mark.parametrize(
    "value,label,radius",
    [(150.7, "150", 150.7), (1.0, "10", 10.0), (10_000, "500", 500.0)],
)
def test_set_radius_clamps_to_slider_range(memory_store, surface, value, label, radius) -> None:
    session = _session(memory_store, surface)
    assert session.set_radius(value) == label
    assert session.base_radius_m == pytest.approx(radius)


def test_radius_drives_circle_size(memory_store, surface, record_factory) -> None:
    memory_store.add(record_factory(51.4801, -3.1799))
    session = _session(memory_store, surface)
    session.set_radius(200)

    session.refresh()

    assert [c.radius_m for c in surface.shapes] == pytest.approx([60.0, 70.0, 80.0])


def test_tracking_updates_session_status(memory_store, surface) -> None:
    session = HeatmapSession(
        memory_store,
        surface,
        ReplayLocationSensor([]),
        StaticPermissionService(granted=False),
    )

    session.start_tracking()
    assert session.tracker.join(timeout=2.0)

    assert session.status == "Location permission denied."
    session.stop_tracking()
