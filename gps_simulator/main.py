"""Command line entry point: inspect routes, run simulations, build circles."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import threading
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .config import CIRCLE_POLYGON_POINTS, ROUTES_DIRECTORY
from .delivery import WebhookForwarder, WebhookSettings, logging_trace_hook
from .errors import GpsSimulatorError, RouteFormatError
from .geometry import circle_polygon, miles_to_meters, route_distance
from .models import Coordinate, RouteGeometry, SimulationRoute, SimulationSettings
from .simulation import SimulationDriver
from .storage import RouteStore

LOGGER = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def load_route_file(path: Path) -> SimulationRoute:
    """Read a saved route document or a raw directions API response."""

    with path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise RouteFormatError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise RouteFormatError(f"{path} must contain a JSON object")
    if "routes" in data:
        geometry = RouteGeometry.from_directions_response(data)
        if geometry is None:
            raise RouteFormatError(f"{path} contains no routes")
        return SimulationRoute(name=path.stem, geometry=geometry)
    return SimulationRoute.from_dict(data)


def _resolve_route(args: argparse.Namespace) -> SimulationRoute:
    if args.route_file:
        return load_route_file(Path(args.route_file))
    route = RouteStore(args.routes_dir).get(args.route_id)
    if route is None:
        raise RouteFormatError(f"Route {args.route_id} not found in {args.routes_dir}")
    return route


def _cmd_info(args: argparse.Namespace) -> int:
    route = _resolve_route(args)
    geometry = route.geometry or RouteGeometry()
    summary = {
        "name": route.name,
        "points": len(geometry.coordinates),
        "segments": geometry.segment_count,
        "haversineDistanceMeters": round(route_distance(geometry.coordinates), 1),
        "plannedDistanceMeters": geometry.distance_m,
        "plannedDurationSeconds": geometry.duration_s,
        "knownSpeedLimits": sum(1 for limit in geometry.speed_limits if limit),
    }
    print(json.dumps(summary, indent=2))
    return 0


def _simulation_settings(
    route: SimulationRoute, args: argparse.Namespace
) -> SimulationSettings:
    base = route.settings
    return SimulationSettings(
        interval_ms=args.interval_ms if args.interval_ms is not None else base.interval_ms,
        speed_mph=args.speed_mph if args.speed_mph is not None else base.speed_mph,
        device_id=args.device_id or base.device_id,
        webhook_url=args.webhook_url or base.webhook_url,
        webhook_headers=args.webhook_headers or base.webhook_headers,
    )


def _cmd_simulate(args: argparse.Namespace) -> int:
    route = _resolve_route(args)
    if route.geometry is None or len(route.geometry.coordinates) < 2:
        LOGGER.error("Route %s has no usable geometry", route.name or route.id)
        return 1
    settings = _simulation_settings(route, args)
    forwarder = WebhookForwarder(
        WebhookSettings(retry_count=args.retries)
        if args.retries is not None
        else None,
        trace_hook=logging_trace_hook,
    )
    driver = SimulationDriver(route.geometry, settings, forwarder)

    cancel_event = threading.Event()

    def _handle_interrupt(signum: int, _frame: Any) -> None:
        LOGGER.info("Signal %s received; stopping simulation", signum)
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _handle_interrupt)
    try:
        ticks = driver.run(cancel_event, max_ticks=args.max_ticks)
    finally:
        signal.signal(signal.SIGINT, previous)
    LOGGER.info(
        "Simulation %s finished: %s ticks, state=%s",
        driver.simulation_id,
        ticks,
        driver.state.value,
    )
    return 0


def _cmd_circle(args: argparse.Namespace) -> int:
    center = Coordinate(latitude=args.lat, longitude=args.lng)
    ring = circle_polygon(center, miles_to_meters(args.radius_miles), args.points)
    feature = {
        "type": "Feature",
        "properties": {"radiusMiles": args.radius_miles},
        "geometry": {
            "type": "Polygon",
            "coordinates": [[coord.to_lng_lat() for coord in ring]],
        },
    }
    print(json.dumps(feature))
    return 0


def _add_route_source(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--route-file", help="Saved route JSON or directions response")
    group.add_argument("--route-id", help="ID of a route in the route store")
    parser.add_argument(
        "--routes-dir",
        default=ROUTES_DIRECTORY,
        help=f"Route store directory (default: {ROUTES_DIRECTORY})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gps-simulator",
        description="Simulate a GPS device driving a route and broadcast its telemetry.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Summarise a route")
    _add_route_source(info)
    info.set_defaults(handler=_cmd_info)

    simulate = sub.add_parser("simulate", help="Drive a route and post GPS payloads")
    _add_route_source(simulate)
    simulate.add_argument("--webhook-url", help="Destination override")
    simulate.add_argument(
        "--webhook-headers", help='Header override, e.g. "Authorization:Bearer x;X-Id:1"'
    )
    simulate.add_argument("--speed-mph", type=float)
    simulate.add_argument("--interval-ms", type=int)
    simulate.add_argument("--device-id")
    simulate.add_argument("--retries", type=int, help="Retries after the first attempt")
    simulate.add_argument("--max-ticks", type=int)
    simulate.set_defaults(handler=_cmd_simulate)

    circle = sub.add_parser("circle", help="Print a GeoJSON radius circle")
    circle.add_argument("--lat", type=float, required=True)
    circle.add_argument("--lng", type=float, required=True)
    circle.add_argument("--radius-miles", type=float, default=0.1)
    circle.add_argument("--points", type=int, default=CIRCLE_POLYGON_POINTS)
    circle.set_defaults(handler=_cmd_circle)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _setup_logging(args.verbose)
    try:
        return int(args.handler(args))
    except (GpsSimulatorError, ValueError, OSError) as exc:
        LOGGER.error("%s", exc)
        return 1


__all__: List[str] = ["main", "build_parser", "load_route_file"]
