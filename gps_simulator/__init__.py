"""GPS route simulator: route geometry and webhook telemetry delivery."""

from .delivery import WebhookForwarder, WebhookSettings
from .errors import DeliveryCancelledError, DeliveryError, GpsSimulatorError
from .models import (
    Coordinate,
    GpsPayload,
    InterpolatedPosition,
    RouteGeometry,
    SimulationRoute,
    SimulationSettings,
)
from .simulation import SimulationDriver

__all__ = [
    "Coordinate",
    "GpsPayload",
    "InterpolatedPosition",
    "RouteGeometry",
    "SimulationRoute",
    "SimulationSettings",
    "SimulationDriver",
    "WebhookForwarder",
    "WebhookSettings",
    "GpsSimulatorError",
    "DeliveryError",
    "DeliveryCancelledError",
]
