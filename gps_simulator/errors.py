"""Central error types used across the application."""

from __future__ import annotations


class GpsSimulatorError(RuntimeError):
    """Base error for simulator failures."""


class DeliveryError(GpsSimulatorError):
    """Raised when the delivery pipeline is misconfigured or misused."""


class DeliveryCancelledError(DeliveryError):
    """Raised when the caller explicitly cancels a delivery in progress."""


class RouteFormatError(GpsSimulatorError, ValueError):
    """Raised when route JSON cannot be parsed into a route model."""


__all__ = [
    "GpsSimulatorError",
    "DeliveryError",
    "DeliveryCancelledError",
    "RouteFormatError",
]
