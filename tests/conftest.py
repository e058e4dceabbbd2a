"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable record factories, stores and
surfaces so tracking, heatmap and session tests share one setup.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from location_heatmap.map_surface import FoliumMapSurface
from location_heatmap.models import LocationRecord
from location_heatmap.storage import PointStore

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


# --- Factory helpers -------------------------------------------------
def make_record(lat, lon, minutes=0, record_id=None):
    return LocationRecord(
        latitude=lat,
        longitude=lon,
        captured_at_utc=BASE_TIME + timedelta(minutes=minutes),
        id=record_id,
    )


def make_example_records():
    return [
        make_record(10.0001, 20.0001, minutes=0),
        make_record(10.0009, 20.0009, minutes=1),
        make_record(10.0011, 20.0011, minutes=2),
    ]


class StatusLog:
    """Collects status messages reported by the tracking loop."""

    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def memory_store():
    store = PointStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def file_store(tmp_path):
    store = PointStore(tmp_path / "data" / "locations.db3")
    yield store
    store.close()


@pytest.fixture
def example_records():
    return make_example_records()


@pytest.fixture
def surface():
    return FoliumMapSurface(default_center=(0.0, 0.0), default_zoom=3)


@pytest.fixture
def status_log():
    return StatusLog()


@pytest.fixture
def record_factory():
    return make_record
