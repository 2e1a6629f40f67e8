"""Terminal front end: list regions, search nearby stores, follow a live track.

    python -m patrol.cli regions
    python -m patrol.cli nearby --lat 25.0330 --lng 121.5654 --radius 1
    python -m patrol.cli track --track samples/track.json --radius 0.5
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence

from .config import settings
from .data.stores_repository import load_stores
from .models.domain import ReferencePoint, TrackingMode
from .services.geospatial import format_distance, stores_within
from .services.location import LocationError, ReplayLocationProvider, build_location_provider
from .services.stores import summarize_regions
from .services.stores_client import StoresClient
from .services.view import ViewSession, ViewSnapshot
from .services.view.events import SetProximityRadius

logger = logging.getLogger(__name__)


def render_snapshot(snapshot: ViewSnapshot, limit: int = 10) -> str:
    lines: list[str] = []
    if snapshot.tracking is TrackingMode.LIVE:
        heading = f"{snapshot.heading:.0f}°" if snapshot.heading is not None else "N/A"
        lines.append(f"[live] radius {format_distance(snapshot.filters.proximity_radius_km)} | heading {heading}")
    else:
        region = snapshot.filters.region or "all regions"
        subregion = snapshot.filters.subregion or "all areas"
        lines.append(f"[static] {region} / {subregion}")
    camera = snapshot.camera
    follow = "follow" if snapshot.follow_camera else "manual"
    lines.append(
        f"camera ({camera.lat:.5f}, {camera.lng:.5f}) zoom {camera.zoom} "
        f"rotation {camera.rotation_degrees:.0f} [{snapshot.camera_lock.value}, {follow}]"
    )
    for message in (snapshot.data_error, snapshot.location_error):
        if message:
            lines.append(f"! {message}")
    if snapshot.status == "empty":
        lines.append("No stores found.")
    for store in snapshot.results[:limit]:
        suffix = f"  {format_distance(store.distance)}" if store.distance is not None else ""
        lines.append(f"  {store.name} - {store.address or ''}{suffix}")
    if len(snapshot.results) > limit:
        lines.append(f"  ... {len(snapshot.results) - limit} more")
    return "\n".join(lines)


def _data_path(value: Optional[str]) -> Optional[Path]:
    return Path(value).expanduser().resolve() if value else None


def _cmd_regions(args: argparse.Namespace) -> int:
    for region in summarize_regions(load_stores(_data_path(args.data))):
        print(f"{region['name']} ({region['stores']})")
        for subregion in region["subregions"]:
            print(f"  {subregion['name']} ({subregion['stores']})")
    return 0


def _cmd_nearby(args: argparse.Namespace) -> int:
    if args.lat is not None and args.lng is not None:
        reference = ReferencePoint(lat=args.lat, lng=args.lng)
    else:
        try:
            reference = build_location_provider().request_once()
        except LocationError as exc:
            print(exc.message, file=sys.stderr)
            return 2
    matches = stores_within(reference, load_stores(_data_path(args.data)), args.radius)
    if not matches:
        print(f"No stores within {format_distance(args.radius)}.")
        return 0
    for store in matches:
        print(f"{format_distance(store.distance):>8}  {store.name}  {store.address or ''}")
    return 0


def _cmd_track(args: argparse.Namespace) -> int:
    if args.track:
        provider = ReplayLocationProvider.from_file(Path(args.track), interval_seconds=args.interval)
    else:
        provider = build_location_provider()
    client = StoresClient(url=args.api) if args.api else None
    session = ViewSession(provider=provider, client=client)
    if args.api:
        session.load_stores()
    else:
        session.use_stores(load_stores(_data_path(args.data)))
    session.dispatch(SetProximityRadius(args.radius))

    printer_lock = threading.Lock()

    def _print(snapshot: ViewSnapshot) -> None:
        with printer_lock:
            print(render_snapshot(snapshot, limit=args.limit))
            print()

    unsubscribe = session.subscribe(_print)
    try:
        session.start_tracking()
        if isinstance(provider, ReplayLocationProvider):
            provider.wait_until_replayed()
        else:
            threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        unsubscribe()
        final = session.stop_tracking()
        session.close()
    print(render_snapshot(final, limit=args.limit))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="patrol", description="Claw-machine store locator")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--data", help=f"Dataset file (default: {settings.data_file})")
    sub = parser.add_subparsers(dest="command", required=True)

    regions = sub.add_parser("regions", help="List regions and subregions")
    regions.set_defaults(func=_cmd_regions)

    nearby = sub.add_parser("nearby", help="Stores near a point or the current position")
    nearby.add_argument("--lat", type=float)
    nearby.add_argument("--lng", type=float)
    nearby.add_argument(
        "--radius", type=float, default=1.0, choices=settings.proximity_presets_km, help="Radius preset in km"
    )
    nearby.set_defaults(func=_cmd_nearby)

    track = sub.add_parser("track", help="Follow live fixes and print each view update")
    track.add_argument("--track", help="Replay fixes from a JSON track file instead of the configured provider")
    track.add_argument("--interval", type=float, default=settings.replay_interval_seconds)
    track.add_argument(
        "--radius", type=float, default=settings.default_radius_km, choices=settings.proximity_presets_km, help="Radius preset in km"
    )
    track.add_argument("--api", help="Load stores from this /api/stores URL instead of the local file")
    track.add_argument("--limit", type=int, default=10, help="Stores printed per update")
    track.set_defaults(func=_cmd_track)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (OSError, ValueError) as exc:
        logger.error(f"{exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
