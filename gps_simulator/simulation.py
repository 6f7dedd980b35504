"""Tick-based driver that walks a route and broadcasts GPS payloads."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID, uuid4

from .config import METERS_PER_MILE
from .delivery import WebhookForwarder, get_default_forwarder
from .errors import DeliveryCancelledError, GpsSimulatorError
from .geometry import interpolate_position, route_distance
from .models import (
    GpsPayload,
    InterpolatedPosition,
    RouteGeometry,
    SimulationSettings,
    SimulationState,
)
from .utils import utcnow

LOGGER = logging.getLogger(__name__)

MPS_PER_MPH = METERS_PER_MILE / 3600.0

# How often a paused run re-checks its cancel event.
_PAUSE_POLL_SECONDS = 0.25

__all__ = ["SimulationDriver", "TickResult", "MPS_PER_MPH"]


@dataclass(frozen=True, slots=True)
class TickResult:
    fraction: float
    position: Optional[InterpolatedPosition]
    payload: Optional[GpsPayload]
    delivered: bool


class SimulationDriver:
    """Advance a device along ``geometry`` one interval at a time.

    Each tick reports the position at the current progress fraction and then
    moves forward by ``speed * interval``. Speed is the configured cruising
    speed, capped by the segment's speed limit when one is known. The first
    tick reports the route start and the last tick the route end.
    """

    def __init__(
        self,
        geometry: RouteGeometry,
        settings: SimulationSettings | None = None,
        forwarder: WebhookForwarder | None = None,
        *,
        simulation_id: UUID | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._geometry = geometry
        self._settings = settings or SimulationSettings()
        if self._settings.speed_mph <= 0:
            raise ValueError("speed_mph must be greater than zero")
        if self._settings.interval_ms <= 0:
            raise ValueError("interval_ms must be greater than zero")
        self._forwarder = forwarder or get_default_forwarder()
        self._simulation_id = simulation_id or uuid4()
        self._clock = clock
        self._total_m = route_distance(geometry.coordinates)
        self._travelled_m = 0.0
        self._sequence = 0
        self._state = SimulationState.IDLE
        self._resume = threading.Event()
        self._resume.set()

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def simulation_id(self) -> UUID:
        return self._simulation_id

    @property
    def total_distance_m(self) -> float:
        return self._total_m

    @property
    def fraction(self) -> float:
        if self._total_m <= 0:
            return 1.0
        return min(1.0, max(0.0, self._travelled_m / self._total_m))

    def effective_speed_mph(self, segment_index: int) -> float:
        limit = self._geometry.speed_limit_for(segment_index)
        if limit is not None and limit > 0:
            return min(self._settings.speed_mph, float(limit))
        return self._settings.speed_mph

    def pause(self) -> None:
        if self._state is SimulationState.RUNNING:
            self._resume.clear()
            self._state = SimulationState.PAUSED
            LOGGER.info("Simulation %s paused", self._simulation_id)

    def resume(self) -> None:
        if self._state is SimulationState.PAUSED:
            self._state = SimulationState.RUNNING
            self._resume.set()
            LOGGER.info("Simulation %s resumed", self._simulation_id)

    def step(self, cancel_event: Optional[threading.Event] = None) -> TickResult:
        """Broadcast the current position and advance by one interval.

        A ``False`` delivery is logged as a dropped tick; the simulation keeps
        going. ``DeliveryCancelledError`` propagates to the caller.
        """

        if self._state is SimulationState.COMPLETED:
            raise GpsSimulatorError("Simulation already completed")
        if self._state is SimulationState.IDLE:
            self._state = SimulationState.RUNNING
            LOGGER.info(
                "Starting simulation %s over %.1fm",
                self._simulation_id,
                self._total_m,
            )

        fraction = self.fraction
        position = interpolate_position(self._geometry.coordinates, fraction)
        if position is None:
            LOGGER.warning("Route has fewer than two points; nothing to simulate")
            self._state = SimulationState.COMPLETED
            return TickResult(fraction, None, None, False)

        speed_mph = self.effective_speed_mph(position.segment_index)
        self._sequence += 1
        payload = GpsPayload(
            device_id=self._settings.device_id,
            latitude=position.position.latitude,
            longitude=position.position.longitude,
            speed=speed_mph * MPS_PER_MPH,
            bearing=position.bearing_deg,
            timestamp=self._clock(),
            sequence_number=self._sequence,
            simulation_id=self._simulation_id,
        )
        delivered = self._forwarder.forward(
            payload,
            self._settings.webhook_url,
            self._settings.webhook_headers,
            cancel_event,
        )
        if not delivered:
            LOGGER.warning(
                "Telemetry dropped for tick seq=%s (%.1f%% of route)",
                self._sequence,
                fraction * 100,
            )

        if fraction >= 1.0:
            self._state = SimulationState.COMPLETED
            LOGGER.info(
                "Simulation %s completed after %s ticks",
                self._simulation_id,
                self._sequence,
            )
        else:
            interval_s = self._settings.interval_ms / 1000.0
            self._travelled_m += speed_mph * MPS_PER_MPH * interval_s
        return TickResult(fraction, position, payload, delivered)

    def run(
        self,
        cancel_event: Optional[threading.Event] = None,
        max_ticks: Optional[int] = None,
    ) -> int:
        """Step until completion, cancellation or ``max_ticks``; return ticks run."""

        ticks = 0
        interval_s = self._settings.interval_ms / 1000.0
        while self._state is not SimulationState.COMPLETED:
            if not self._wait_while_paused(cancel_event):
                break
            if cancel_event is not None and cancel_event.is_set():
                break
            try:
                self.step(cancel_event)
            except DeliveryCancelledError:
                LOGGER.info("Simulation %s cancelled during delivery", self._simulation_id)
                break
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            if self._state is SimulationState.COMPLETED:
                break
            if self._wait(cancel_event, interval_s):
                break
        return ticks

    def _wait_while_paused(self, cancel_event: Optional[threading.Event]) -> bool:
        while not self._resume.wait(_PAUSE_POLL_SECONDS):
            if cancel_event is not None and cancel_event.is_set():
                return False
        return True

    @staticmethod
    def _wait(cancel_event: Optional[threading.Event], delay: float) -> bool:
        if cancel_event is None:
            time.sleep(delay)
            return False
        return cancel_event.wait(delay)
