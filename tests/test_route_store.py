"""RouteStore file persistence."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from gps_simulator.models import Coordinate, SimulationRoute
from gps_simulator.storage import RouteStore


def _route(name: str, created: datetime, geometry=None) -> SimulationRoute:
    return SimulationRoute(
        name=name,
        waypoints=(Coordinate(1.0, 2.0), Coordinate(3.0, 4.0)),
        geometry=geometry,
        created_at=created,
    )


def test_store_creates_directory(tmp_path) -> None:
    target = tmp_path / "nested" / "routes"
    store = RouteStore(target)
    assert target.is_dir()
    assert store.list_routes() == []


def test_save_and_get_round_trip(tmp_path, city_route) -> None:
    store = RouteStore(tmp_path)
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    saved = store.save(_route("A", created, city_route))
    assert saved.last_modified_at is not None
    assert (tmp_path / f"{saved.id}.json").exists()

    loaded = store.get(saved.id)
    assert loaded == saved
    assert loaded.geometry == city_route
    assert store.get(str(saved.id)) == saved


def test_resave_keeps_created_at(tmp_path) -> None:
    store = RouteStore(tmp_path)
    original = store.save(_route("A", datetime(2025, 1, 1, tzinfo=timezone.utc)))
    renamed = original.with_changes(
        name="B", created_at=datetime(2030, 1, 1, tzinfo=timezone.utc)
    )
    updated = store.save(renamed)
    assert updated.created_at == original.created_at
    assert updated.name == "B"
    assert store.get(original.id).name == "B"


def test_list_routes_newest_first_and_skips_corrupt(tmp_path, caplog) -> None:
    store = RouteStore(tmp_path)
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    older = store.save(_route("older", base))
    newer = store.save(_route("newer", base + timedelta(days=1)))
    (tmp_path / f"{uuid4()}.json").write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        routes = store.list_routes()

    assert [r.id for r in routes] == [newer.id, older.id]
    assert "failed to read route file" in caplog.text.lower()


def test_get_missing_or_corrupt_returns_none(tmp_path) -> None:
    store = RouteStore(tmp_path)
    assert store.get(uuid4()) is None
    broken = uuid4()
    (tmp_path / f"{broken}.json").write_text(json.dumps({"waypoints": [{}]}), encoding="utf-8")
    assert store.get(broken) is None


def test_delete(tmp_path) -> None:
    store = RouteStore(tmp_path)
    saved = store.save(_route("gone", datetime(2025, 1, 1, tzinfo=timezone.utc)))
    assert store.delete(saved.id) is True
    assert store.get(saved.id) is None
    assert store.delete(saved.id) is False


def test_malformed_id_is_treated_as_missing(tmp_path) -> None:
    store = RouteStore(tmp_path)
    assert store.get("not-a-uuid") is None
    assert store.delete("not-a-uuid") is False


def test_failed_save_leaves_no_temp_file(tmp_path, monkeypatch) -> None:
    store = RouteStore(tmp_path)
    route = _route("broken", datetime(2025, 1, 1, tzinfo=timezone.utc))
    monkeypatch.setattr(SimulationRoute, "to_dict", lambda self: {"bad": object()})

    with pytest.raises(TypeError):
        store.save(route)

    assert list(tmp_path.iterdir()) == []
