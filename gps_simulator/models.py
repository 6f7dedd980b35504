"""Dataclasses describing routes, simulation settings and GPS payloads."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from polyline import decode as polyline_decode

from .config import (
    DEFAULT_DEVICE_ID,
    DEFAULT_SPEED_MPH,
    METERS_PER_MILE,
    WEBHOOK_INTERVAL_MS,
)
from .errors import RouteFormatError
from .utils import normalise_value, parse_datetime, parse_uuid, utcnow

LOGGER = logging.getLogger(__name__)

KMH_PER_MPH = METERS_PER_MILE / 1000.0


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    @classmethod
    def from_lng_lat(cls, pair: Sequence[float]) -> "Coordinate":
        """Build from a GeoJSON ``[lng, lat]`` position."""

        if len(pair) < 2:
            raise RouteFormatError(f"Expected [lng, lat] pair, got {pair!r}")
        return cls(latitude=float(pair[1]), longitude=float(pair[0]))

    def to_lng_lat(self) -> List[float]:
        return [self.longitude, self.latitude]


@dataclass(frozen=True, slots=True)
class RouteGeometry:
    """Planned path with per-segment speed limits (mph, ``None`` = unknown)."""

    coordinates: Tuple[Coordinate, ...] = ()
    distance_m: float = 0.0
    duration_s: float = 0.0
    speed_limits: Tuple[Optional[int], ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the stored value immutable.
        object.__setattr__(self, "coordinates", tuple(self.coordinates))
        object.__setattr__(self, "speed_limits", tuple(self.speed_limits))
        expected = max(0, len(self.coordinates) - 1)
        if self.speed_limits and len(self.speed_limits) != expected:
            raise ValueError(
                f"speed_limits must have {expected} entries (one per segment), "
                f"got {len(self.speed_limits)}"
            )
        if any(limit is not None and limit < 0 for limit in self.speed_limits):
            raise ValueError("speed_limits must not be negative")

    @property
    def segment_count(self) -> int:
        return max(0, len(self.coordinates) - 1)

    def speed_limit_for(self, segment_index: int) -> Optional[int]:
        if not self.speed_limits or not 0 <= segment_index < len(self.speed_limits):
            return None
        return self.speed_limits[segment_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "LineString",
            "coordinates": [coord.to_lng_lat() for coord in self.coordinates],
            "distanceMeters": self.distance_m,
            "durationSeconds": self.duration_s,
            "speedLimits": list(self.speed_limits),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteGeometry":
        try:
            coords = tuple(
                Coordinate.from_lng_lat(pair) for pair in data.get("coordinates") or []
            )
            limits = tuple(
                None if limit is None else int(limit)
                for limit in data.get("speedLimits") or []
            )
            return cls(
                coordinates=coords,
                distance_m=float(data.get("distanceMeters") or 0.0),
                duration_s=float(data.get("durationSeconds") or 0.0),
                speed_limits=limits,
            )
        except RouteFormatError:
            raise
        except (TypeError, ValueError) as exc:
            raise RouteFormatError(f"Invalid route geometry: {exc}") from exc

    @classmethod
    def from_directions_response(
        cls, data: Mapping[str, Any], *, polyline_precision: int = 5
    ) -> Optional["RouteGeometry"]:
        """Parse the first route of a directions API response.

        Geometry may be GeoJSON (``geometries=geojson``) or an encoded
        polyline string. Per-segment ``maxspeed`` annotations are converted
        to mph; they are dropped when their count does not match the number
        of segments.

        Returns ``None`` when the response holds no routes.
        """

        routes = data.get("routes") or []
        if not routes:
            return None
        try:
            route = routes[0]
            coords = _decode_route_geometry(route.get("geometry"), polyline_precision)
            limits = _collect_speed_limits(route.get("legs") or [])
            if limits and len(limits) != max(0, len(coords) - 1):
                LOGGER.debug(
                    "Dropping %s maxspeed annotations for %s coordinates",
                    len(limits),
                    len(coords),
                )
                limits = []
            return cls(
                coordinates=tuple(coords),
                distance_m=float(route.get("distance") or 0.0),
                duration_s=float(route.get("duration") or 0.0),
                speed_limits=tuple(limits),
            )
        except RouteFormatError:
            raise
        except (AttributeError, KeyError, OverflowError, TypeError, ValueError) as exc:
            raise RouteFormatError(f"Invalid directions response: {exc}") from exc


def _decode_route_geometry(geometry: Any, precision: int) -> List[Coordinate]:
    if geometry is None:
        return []
    if isinstance(geometry, str):
        try:
            decoded = polyline_decode(geometry, precision)
        except (ValueError, TypeError, IndexError) as exc:
            raise RouteFormatError("Unable to decode route polyline") from exc
        return [Coordinate(float(lat), float(lng)) for lat, lng in decoded]
    if isinstance(geometry, Mapping):
        return [Coordinate.from_lng_lat(pair) for pair in geometry.get("coordinates") or []]
    raise RouteFormatError(f"Unsupported route geometry type: {type(geometry).__name__}")


def _collect_speed_limits(legs: Sequence[Mapping[str, Any]]) -> List[Optional[int]]:
    limits: List[Optional[int]] = []
    for leg in legs:
        annotation = leg.get("annotation") or {}
        for entry in annotation.get("maxspeed") or []:
            limits.append(_maxspeed_to_mph(entry))
    return limits


def _maxspeed_to_mph(entry: Any) -> Optional[int]:
    if not isinstance(entry, Mapping):
        return None
    speed = entry.get("speed")
    if speed is None:
        return None
    unit = str(entry.get("unit") or "km/h").lower()
    mph = float(speed) if unit == "mph" else float(speed) / KMH_PER_MPH
    limit = int(round(mph))
    # Zero or negative limits carry no information.
    return limit if limit > 0 else None


@dataclass(frozen=True, slots=True)
class InterpolatedPosition:
    position: Coordinate
    bearing_deg: float
    segment_index: int


@dataclass(frozen=True, slots=True)
class GpsPayload:
    """One telemetry snapshot sent to the webhook endpoint."""

    device_id: str
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    speed: Optional[float] = None  # m/s
    bearing: Optional[float] = None
    accuracy: Optional[float] = None  # metres
    timestamp: datetime = field(default_factory=utcnow)
    sequence_number: int = 0
    simulation_id: Optional[UUID] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the camelCase JSON body posted to the endpoint."""

        return normalise_value(
            {
                "deviceId": self.device_id,
                "latitude": self.latitude,
                "longitude": self.longitude,
                "altitude": self.altitude,
                "speed": self.speed,
                "bearing": self.bearing,
                "accuracy": self.accuracy,
                "timestamp": self.timestamp,
                "sequenceNumber": self.sequence_number,
                "simulationId": self.simulation_id,
            }
        )


class SimulationState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class SimulationSettings:
    interval_ms: int = WEBHOOK_INTERVAL_MS
    speed_mph: float = DEFAULT_SPEED_MPH
    device_id: str = DEFAULT_DEVICE_ID
    # Per-simulation overrides passed to the forwarder on every tick.
    webhook_url: Optional[str] = None
    webhook_headers: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intervalMs": self.interval_ms,
            "speedMph": self.speed_mph,
            "deviceId": self.device_id,
            "webhookUrl": self.webhook_url,
            "webhookHeaders": self.webhook_headers,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulationSettings":
        defaults = cls()
        return cls(
            interval_ms=int(data.get("intervalMs", defaults.interval_ms)),
            speed_mph=float(data.get("speedMph", defaults.speed_mph)),
            device_id=str(data.get("deviceId") or defaults.device_id),
            webhook_url=data.get("webhookUrl"),
            webhook_headers=data.get("webhookHeaders"),
        )


@dataclass(frozen=True)
class SimulationRoute:
    """A saved route: waypoints, planned geometry and simulation settings."""

    name: str = ""
    waypoints: Tuple[Coordinate, ...] = ()
    geometry: Optional[RouteGeometry] = None
    settings: SimulationSettings = field(default_factory=SimulationSettings)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    last_modified_at: Optional[datetime] = None

    def with_changes(self, **changes: Any) -> "SimulationRoute":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return normalise_value(
            {
                "id": self.id,
                "name": self.name,
                "waypoints": [
                    {"latitude": wp.latitude, "longitude": wp.longitude}
                    for wp in self.waypoints
                ],
                "geometry": self.geometry.to_dict() if self.geometry else None,
                "settings": self.settings.to_dict(),
                "createdAt": self.created_at,
                "lastModifiedAt": self.last_modified_at,
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulationRoute":
        try:
            waypoints = tuple(
                Coordinate(float(wp["latitude"]), float(wp["longitude"]))
                for wp in data.get("waypoints") or []
            )
            geometry_data = data.get("geometry")
            return cls(
                id=parse_uuid(data.get("id")) or uuid4(),
                name=str(data.get("name") or ""),
                waypoints=waypoints,
                geometry=RouteGeometry.from_dict(geometry_data) if geometry_data else None,
                settings=SimulationSettings.from_dict(data.get("settings") or {}),
                created_at=parse_datetime(data.get("createdAt")) or utcnow(),
                last_modified_at=parse_datetime(data.get("lastModifiedAt")),
            )
        except RouteFormatError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise RouteFormatError(f"Invalid simulation route: {exc}") from exc


__all__ = [
    "Coordinate",
    "RouteGeometry",
    "InterpolatedPosition",
    "GpsPayload",
    "SimulationState",
    "SimulationSettings",
    "SimulationRoute",
]
