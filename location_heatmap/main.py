"""Command line front end: the Start/Stop/Refresh/Clear controls as subcommands."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import (
    MAP_OUTPUT_FILE,
    RADIUS_DEFAULT_M,
    TRACKING_INTERVAL_SECONDS,
)
from .devices import ReplayLocationSensor, StaticPermissionService
from .errors import LocationHeatmapError
from .export import export_records
from .map_surface import FoliumMapSurface
from .session import HeatmapSession
from .storage import PointStore
from .tracking import TrackingOutcome, TrackingSettings

LOGGER = logging.getLogger(__name__)


def _setup_logging() -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_session(
    args: argparse.Namespace,
    sensor: Optional[ReplayLocationSensor] = None,
    *,
    surface: Optional[FoliumMapSurface] = None,
    granted: bool = True,
    settings: TrackingSettings | None = None,
) -> HeatmapSession:
    store = PointStore(args.db) if args.db else PointStore()
    return HeatmapSession(
        store,
        surface or FoliumMapSurface(),
        sensor or ReplayLocationSensor([]),
        StaticPermissionService(granted=granted),
        tracking_settings=settings,
        base_radius_m=getattr(args, "radius", RADIUS_DEFAULT_M),
    )


def _cmd_track(args: argparse.Namespace) -> int:
    try:
        sensor = ReplayLocationSensor.from_csv(args.replay, repeat=args.repeat)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("Failed to load replay track '%s': %s", args.replay, exc)
        return 1

    session = _build_session(
        args,
        sensor,
        granted=not args.deny_permission,
        settings=TrackingSettings(interval_s=args.interval),
    )
    session.start_tracking()
    deadline = None if args.duration is None else time.monotonic() + args.duration
    try:
        while not session.tracker.join(timeout=0.5):
            if deadline is not None and time.monotonic() >= deadline:
                session.stop_tracking()
    except KeyboardInterrupt:
        session.stop_tracking()
        session.tracker.join()

    LOGGER.info("%s (saved %d point(s))", session.status, session.saved_count)
    return 0 if session.tracker.last_outcome == TrackingOutcome.STOPPED else 1


def _cmd_render(args: argparse.Namespace) -> int:
    surface = FoliumMapSurface()
    session = _build_session(args, surface=surface)
    session.set_radius(args.radius)
    layer = session.refresh()
    LOGGER.info("%s", session.status)
    if layer is None:
        return 1
    try:
        surface.save(args.output)
    except OSError as exc:
        LOGGER.error("Failed to write map to %s: %s", args.output, exc)
        return 1
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    store = PointStore(args.db) if args.db else PointStore()
    try:
        records = store.list_all()
    except LocationHeatmapError as exc:
        LOGGER.error("%s", exc)
        return 1
    shown = records if args.limit is None else records[: args.limit]
    for record in shown:
        print(
            f"{record.id}\t{record.captured_at_utc.isoformat()}\t"
            f"{record.latitude:.5f}\t{record.longitude:.5f}"
        )
    LOGGER.info("Listed %d of %d stored point(s)", len(shown), len(records))
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    session = _build_session(args)
    removed = session.clear()
    LOGGER.info("%s", session.status)
    if removed is None:
        return 1
    LOGGER.info("Removed %d point(s)", removed)
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    store = PointStore(args.db) if args.db else PointStore()
    try:
        export_records(store.list_all(), args.output)
    except (LocationHeatmapError, ValueError, OSError) as exc:
        LOGGER.error("Failed to export points: %s", exc)
        return 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="location_heatmap",
        description="Record location fixes and render them as a heatmap.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="SQLite file to use instead of the data directory default",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    track = sub.add_parser("track", help="Record fixes from a replayed CSV track")
    track.add_argument("--replay", type=Path, required=True)
    track.add_argument(
        "--interval",
        type=float,
        default=TRACKING_INTERVAL_SECONDS,
        help="Seconds between fixes (default: %(default)s)",
    )
    track.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds (default: run until Ctrl-C)",
    )
    track.add_argument("--repeat", action="store_true", help="Loop the track")
    track.add_argument(
        "--deny-permission",
        action="store_true",
        help="Simulate a refused location permission",
    )
    track.set_defaults(handler=_cmd_track)

    render = sub.add_parser("render", help="Draw stored points to an HTML map")
    render.add_argument(
        "--radius",
        type=float,
        default=RADIUS_DEFAULT_M,
        help="Base circle radius in metres (default: %(default)s)",
    )
    render.add_argument("--output", type=Path, default=Path(MAP_OUTPUT_FILE))
    render.set_defaults(handler=_cmd_render)

    listing = sub.add_parser("list", help="Print stored points, newest first")
    listing.add_argument("--limit", type=int)
    listing.set_defaults(handler=_cmd_list)

    clear = sub.add_parser("clear", help="Delete every stored point")
    clear.set_defaults(handler=_cmd_clear)

    export = sub.add_parser("export", help="Write stored points to .xlsx or .csv")
    export.add_argument("--output", type=Path, required=True)
    export.set_defaults(handler=_cmd_export)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point used via ``python -m location_heatmap``."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging()
    return args.handler(args)
