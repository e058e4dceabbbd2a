"""End-to-end tests for the command line entry point."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from location_heatmap.main import main
from location_heatmap.storage import PointStore


@pytest.fixture
def track_csv(tmp_path: Path) -> Path:
    path = tmp_path / "track.csv"
    path.write_text("latitude,longitude\n10.0001,20.0001\n10.0009,20.0009\n10.0011,20.0011\n")
    return path


def _count(db: Path) -> int:
    store = PointStore(db)
    try:
        return store.count()
    finally:
        store.close()


def test_track_render_export_clear(tmp_path: Path, track_csv: Path, capsys) -> None:
    db = tmp_path / "locations.db3"

    rc = main(
        [
            "--db", str(db),
            "track", "--replay", str(track_csv),
            "--interval", "0.01", "--duration", "0.3",
        ]
    )
    assert rc == 0
    assert _count(db) == 3

    assert main(["--db", str(db), "list", "--limit", "2"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2

    html = tmp_path / "heatmap.html"
    assert main(["--db", str(db), "render", "--radius", "120", "--output", str(html)]) == 0
    assert html.exists()

    xlsx = tmp_path / "points.xlsx"
    assert main(["--db", str(db), "export", "--output", str(xlsx)]) == 0
    assert len(pd.read_excel(xlsx, engine="openpyxl")) == 3

    assert main(["--db", str(db), "clear"]) == 0
    assert _count(db) == 0


def test_track_with_denied_permission_fails(tmp_path: Path, track_csv: Path) -> None:
    db = tmp_path / "locations.db3"
    rc = main(
        ["--db", str(db), "track", "--replay", str(track_csv), "--deny-permission"]
    )
    assert rc == 1
    assert _count(db) == 0


def test_track_with_missing_replay_file(tmp_path: Path) -> None:
    rc = main(
        ["--db", str(tmp_path / "x.db3"), "track", "--replay", str(tmp_path / "nope.csv")]
    )
    assert rc == 1


def test_export_rejects_unknown_suffix(tmp_path: Path) -> None:
    rc = main(["--db", str(tmp_path / "x.db3"), "export", "--output", str(tmp_path / "a.txt")])
    assert rc == 1
