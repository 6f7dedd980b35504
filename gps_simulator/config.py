"""Central configuration for the GPS route simulator.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Webhook delivery
# ---------------------------------------------------------------------------
# Static defaults used when neither a per-call override nor the environment
# provides a value.
WEBHOOK_DEFAULT_URL = os.getenv("GPSIM_WEBHOOK_DEFAULT_URL", "")

# Format: "Header1:Value1;Header2:Value2"
WEBHOOK_DEFAULT_HEADERS = os.getenv("GPSIM_WEBHOOK_DEFAULT_HEADERS", "")

# Environment variables consulted on every forward call. Changing them takes
# effect on the next delivery without a restart.
WEBHOOK_URL_ENV = "GPSIM_WEBHOOK_URL"
WEBHOOK_HEADERS_ENV = "GPSIM_WEBHOOK_HEADERS"

# Per-attempt request timeout in seconds.
WEBHOOK_TIMEOUT_SECONDS = _env_float("GPSIM_WEBHOOK_TIMEOUT_SECONDS", 30.0)

# Retries after the first attempt. Total attempts = 1 + WEBHOOK_RETRY_COUNT.
WEBHOOK_RETRY_COUNT = _env_int("GPSIM_WEBHOOK_RETRY_COUNT", 3)

# Backoff before retry n is WEBHOOK_BACKOFF_BASE_SECONDS * 2 ** (n - 1).
WEBHOOK_BACKOFF_BASE_SECONDS = _env_float("GPSIM_WEBHOOK_BACKOFF_BASE_SECONDS", 1.0)

# Default interval between simulated GPS updates.
WEBHOOK_INTERVAL_MS = _env_int("GPSIM_WEBHOOK_INTERVAL_MS", 1000)

# HTTP session pool sizes for concurrent deliveries.
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10


# ---------------------------------------------------------------------------
# Route storage
# ---------------------------------------------------------------------------
# Directory (absolute or relative) holding one JSON file per saved route.
ROUTES_DIRECTORY = os.getenv("GPSIM_ROUTES_DIRECTORY", os.path.join("Data", "Routes"))


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
# Spherical earth radius used by every distance/bearing calculation.
EARTH_RADIUS_M = 6_371_000.0

METERS_PER_MILE = 1609.344

# Vertices used when approximating a radius circle as a polygon.
CIRCLE_POLYGON_POINTS = 64


# ---------------------------------------------------------------------------
# Simulation defaults
# ---------------------------------------------------------------------------
DEFAULT_SPEED_MPH = _env_float("GPSIM_DEFAULT_SPEED_MPH", 30.0)
DEFAULT_DEVICE_ID = os.getenv("GPSIM_DEVICE_ID", "simulator")
