"""Optional per-attempt trace records for delivery observability."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..models import GpsPayload

LOGGER = logging.getLogger(__name__)

__all__ = ["DeliveryTrace", "TraceHook", "emit_trace", "logging_trace_hook"]


@dataclass(frozen=True, slots=True)
class DeliveryTrace:
    """Summary of one delivery attempt, shaped like a client span."""

    destination: str
    attempt: int
    latitude: float
    longitude: float
    speed: Optional[float]
    bearing: Optional[float]
    timestamp: str
    status_code: Optional[int]
    success: bool
    error_type: Optional[str] = None

    @classmethod
    def for_attempt(
        cls,
        destination: str,
        payload: GpsPayload,
        attempt: int,
        *,
        status_code: Optional[int],
        success: bool,
        error_type: Optional[str] = None,
    ) -> "DeliveryTrace":
        return cls(
            destination=destination,
            attempt=attempt,
            latitude=payload.latitude,
            longitude=payload.longitude,
            speed=payload.speed,
            bearing=payload.bearing,
            timestamp=payload.timestamp.isoformat(),
            status_code=status_code,
            success=success,
            error_type=error_type,
        )


TraceHook = Callable[[DeliveryTrace], None]


def emit_trace(hook: Optional[TraceHook], trace: DeliveryTrace) -> None:
    """Invoke ``hook``; failures are logged and never reach the caller."""

    if hook is None:
        return
    try:
        hook(trace)
    except Exception as exc:  # best-effort observability
        LOGGER.debug(
            "Trace hook failed for %s attempt=%s: %s",
            trace.destination,
            trace.attempt,
            exc,
            exc_info=True,
        )


def logging_trace_hook(trace: DeliveryTrace) -> None:
    LOGGER.debug(
        "webhook.forward url=%s attempt=%s status=%s success=%s error=%s "
        "lat=%s lng=%s speed=%s bearing=%s ts=%s",
        trace.destination,
        trace.attempt,
        trace.status_code,
        trace.success,
        trace.error_type,
        trace.latitude,
        trace.longitude,
        trace.speed,
        trace.bearing,
        trace.timestamp,
    )
