"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable payload, route and HTTP
session doubles so delivery tests never touch the network or sleep.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from typing import Any, List

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gps_simulator.models import Coordinate, GpsPayload, RouteGeometry


# --- HTTP doubles ----------------------------------------------------
class FakeResponse:
    """Minimal Response stub exposing the status code."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.headers = {"Content-Type": "application/json"}
        self.text = ""


class ScriptedSession:
    """Session stub that replays a scripted sequence of responses/exceptions.

    The final action repeats once the script is exhausted.
    """

    def __init__(self, actions: List[Any]) -> None:
        self._actions = list(actions)
        self.calls: List[dict[str, Any]] = []

    @property
    def attempts(self) -> int:
        return len(self.calls)

    def post(self, url: str, **kwargs: Any) -> Any:
        self.calls.append({"url": url, **kwargs})
        index = min(len(self.calls), len(self._actions)) - 1
        action = self._actions[index]
        if isinstance(action, Exception):
            raise action
        return action


# --- Factory helpers -------------------------------------------------
def make_payload(**overrides: Any) -> GpsPayload:
    values: dict[str, Any] = {
        "device_id": "test-device",
        "latitude": 37.7749,
        "longitude": -122.4194,
        "altitude": 0.0,
        "speed": 25.5,
        "bearing": 180.0,
        "accuracy": 5.0,
        "timestamp": datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
        "sequence_number": 1,
    }
    values.update(overrides)
    return GpsPayload(**values)


def lng_lat_route(*pairs: tuple[float, float]) -> List[Coordinate]:
    return [Coordinate.from_lng_lat(pair) for pair in pairs]


# --- Fixtures --------------------------------------------------------
@pytest.fixture(autouse=True)
def clear_webhook_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of resolution tests."""

    for key in ("GPSIM_WEBHOOK_URL", "GPSIM_WEBHOOK_HEADERS"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def payload() -> GpsPayload:
    return make_payload()


@pytest.fixture
def ok_session() -> ScriptedSession:
    return ScriptedSession([FakeResponse(200)])


@pytest.fixture
def city_route() -> RouteGeometry:
    """Three-segment route through San Francisco with partial speed limits."""

    return RouteGeometry(
        coordinates=lng_lat_route(
            (-122.4194, 37.7749),
            (-122.4170, 37.7790),
            (-122.4120, 37.7810),
            (-122.4080, 37.7850),
        ),
        distance_m=1500.0,
        duration_s=180.0,
        speed_limits=(25, None, 35),
    )
