"""Tests for the desktop permission service and replay sensor."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from location_heatmap.devices import (
    ReplayLocationSensor,
    StaticPermissionService,
    load_track_csv,
)
from location_heatmap.errors import TrackingCancelled
from location_heatmap.models import GeoFix


def test_load_track_csv_accepts_short_column_names(tmp_path: Path) -> None:
    track = tmp_path / "track.csv"
    track.write_text("time,Lat,Lng\n0,51.48,-3.18\n1,bad,-3.19\n2,51.49,\n3,51.50,-3.20\n")

    fixes = load_track_csv(track)

    assert [(f.latitude, f.longitude) for f in fixes] == [
        pytest.approx((51.48, -3.18)),
        pytest.approx((51.50, -3.20)),
    ]


def test_load_track_csv_requires_coordinates(tmp_path: Path) -> None:
    track = tmp_path / "track.csv"
    track.write_text("x,y\n1,2\n")

    with pytest.raises(ValueError, match="latitude/longitude"):
        load_track_csv(track)


def test_load_track_csv_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_track_csv(tmp_path / "missing.csv")


def test_replay_sensor_serves_fixes_in_order() -> None:
    event = threading.Event()
    sensor = ReplayLocationSensor([GeoFix(1.0, 1.0), None, GeoFix(2.0, 2.0)])

    results = [sensor.get_fix("medium", 10.0, event) for _ in range(4)]

    assert results == [GeoFix(1.0, 1.0), None, GeoFix(2.0, 2.0), None]
    assert sensor.requests == 4


def test_replay_sensor_repeat_wraps_around() -> None:
    event = threading.Event()
    sensor = ReplayLocationSensor([GeoFix(1.0, 1.0), GeoFix(2.0, 2.0)], repeat=True)

    results = [sensor.get_fix("medium", 10.0, event) for _ in range(3)]

    assert results[2] == GeoFix(1.0, 1.0)


def test_replay_sensor_honours_cancellation() -> None:
    event = threading.Event()
    event.set()
    sensor = ReplayLocationSensor([GeoFix(1.0, 1.0)])

    with pytest.raises(TrackingCancelled):
        sensor.get_fix("medium", 10.0, event)
    assert sensor.requests == 0


def test_replay_sensor_latency_beyond_timeout_yields_no_fix() -> None:
    sensor = ReplayLocationSensor([GeoFix(1.0, 1.0)], latency_s=0.2)

    assert sensor.get_fix("medium", 0.01, threading.Event()) is None


def test_replay_sensor_cancel_during_latency() -> None:
    event = threading.Event()
    sensor = ReplayLocationSensor([GeoFix(1.0, 1.0)], latency_s=5.0)
    timer = threading.Timer(0.05, event.set)
    timer.start()
    try:
        with pytest.raises(TrackingCancelled):
            sensor.get_fix("medium", 10.0, event)
    finally:
        timer.cancel()


def test_static_permission_service_counts_requests() -> None:
    service = StaticPermissionService(granted=False)
    assert service.request_location_permission() is False
    assert service.requests == 1
