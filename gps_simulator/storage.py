"""File-backed store keeping one JSON document per saved route."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from .config import ROUTES_DIRECTORY
from .errors import RouteFormatError
from .models import SimulationRoute
from .utils import utcnow

LOGGER = logging.getLogger(__name__)

__all__ = ["RouteStore"]


class RouteStore:
    """Keyed route persistence under ``directory`` (``<id>.json`` per route)."""

    def __init__(self, directory: str | Path = ROUTES_DIRECTORY) -> None:
        self._directory = Path(directory)
        self._ensure_directory()

    @property
    def directory(self) -> Path:
        return self._directory

    def _ensure_directory(self) -> None:
        if not self._directory.exists():
            self._directory.mkdir(parents=True, exist_ok=True)
            LOGGER.info("Created routes directory: %s", self._directory)

    def _path_for(self, route_id: UUID | str) -> Optional[Path]:
        try:
            key = UUID(str(route_id))
        except ValueError:
            LOGGER.debug("Ignoring malformed route id %r", route_id)
            return None
        return self._directory / f"{key}.json"

    def _read(self, path: Path) -> SimulationRoute:
        with path.open("r", encoding="utf-8") as handle:
            return SimulationRoute.from_dict(json.load(handle))

    def list_routes(self) -> List[SimulationRoute]:
        """Return every readable route, newest first."""

        self._ensure_directory()
        routes: List[SimulationRoute] = []
        for path in sorted(self._directory.glob("*.json")):
            try:
                routes.append(self._read(path))
            except (OSError, json.JSONDecodeError, RouteFormatError) as exc:
                LOGGER.warning("Failed to read route file %s: %s", path, exc)
        routes.sort(key=lambda route: route.created_at, reverse=True)
        return routes

    def get(self, route_id: UUID | str) -> Optional[SimulationRoute]:
        path = self._path_for(route_id)
        if path is None or not path.exists():
            return None
        try:
            return self._read(path)
        except (OSError, json.JSONDecodeError, RouteFormatError) as exc:
            LOGGER.error("Failed to read route %s: %s", route_id, exc)
            return None

    def save(self, route: SimulationRoute) -> SimulationRoute:
        """Persist ``route``, keeping the original creation time on overwrite."""

        self._ensure_directory()
        existing = self.get(route.id)
        updated = route.with_changes(
            last_modified_at=utcnow(),
            created_at=existing.created_at if existing else route.created_at,
        )
        path = self._directory / f"{updated.id}.json"
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(updated.to_dict(), handle, indent=2)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError):
            tmp_path.unlink(missing_ok=True)
            raise
        LOGGER.info("Saved route: %s - %s", updated.id, updated.name)
        return updated

    def delete(self, route_id: UUID | str) -> bool:
        path = self._path_for(route_id)
        if path is None or not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            LOGGER.error("Failed to delete route %s: %s", route_id, exc)
            return False
        LOGGER.info("Deleted route: %s", route_id)
        return True
