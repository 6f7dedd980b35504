"""Command line entry point smoke tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from conftest import FakeResponse, ScriptedSession
from gps_simulator import main as cli
from gps_simulator.delivery import forwarder as forwarder_module
from gps_simulator.errors import RouteFormatError
from gps_simulator.models import Coordinate, SimulationRoute, SimulationSettings
from gps_simulator.simulation import SimulationDriver
from gps_simulator.storage import RouteStore

DIRECTIONS = {
    "routes": [
        {
            "distance": 2200.0,
            "duration": 240.0,
            "geometry": {
                "type": "LineString",
                "coordinates": [[-122.0, 37.0], [-122.0, 37.01], [-122.01, 37.01]],
            },
        }
    ]
}


@pytest.fixture
def directions_file(tmp_path):
    path = tmp_path / "commute.json"
    path.write_text(json.dumps(DIRECTIONS), encoding="utf-8")
    return path


def test_info_summarises_directions_response(directions_file, capsys) -> None:
    assert cli.main(["info", "--route-file", str(directions_file)]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["name"] == "commute"
    assert summary["points"] == 3
    assert summary["segments"] == 2
    assert summary["plannedDistanceMeters"] == 2200.0
    assert summary["haversineDistanceMeters"] > 1000
    assert summary["knownSpeedLimits"] == 0


def test_info_reads_route_store(tmp_path, city_route, capsys) -> None:
    store = RouteStore(tmp_path)
    saved = store.save(
        SimulationRoute(
            name="Stored",
            waypoints=(Coordinate(37.7749, -122.4194),),
            geometry=city_route,
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
    )
    code = cli.main(["info", "--route-id", str(saved.id), "--routes-dir", str(tmp_path)])
    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["name"] == "Stored"
    assert summary["knownSpeedLimits"] == 2


def test_unknown_route_id_returns_error(tmp_path) -> None:
    code = cli.main(["info", "--route-id", "missing", "--routes-dir", str(tmp_path)])
    assert code == 1


def test_circle_prints_closed_polygon(capsys) -> None:
    code = cli.main(
        ["circle", "--lat", "37.0", "--lng", "-122.0", "--radius-miles", "0.5", "--points", "16"]
    )
    assert code == 0
    feature = json.loads(capsys.readouterr().out)
    ring = feature["geometry"]["coordinates"][0]
    assert feature["geometry"]["type"] == "Polygon"
    assert feature["properties"]["radiusMiles"] == 0.5
    assert len(ring) == 17
    assert ring[0] == ring[-1]


def test_load_route_file_rejects_bad_documents(tmp_path) -> None:
    not_json = tmp_path / "broken.json"
    not_json.write_text("{oops", encoding="utf-8")
    with pytest.raises(RouteFormatError):
        cli.load_route_file(not_json)

    a_list = tmp_path / "list.json"
    a_list.write_text("[]", encoding="utf-8")
    with pytest.raises(RouteFormatError):
        cli.load_route_file(a_list)

    empty = tmp_path / "empty.json"
    empty.write_text(json.dumps({"routes": []}), encoding="utf-8")
    with pytest.raises(RouteFormatError):
        cli.load_route_file(empty)


def test_load_route_file_accepts_saved_route(tmp_path, city_route) -> None:
    route = SimulationRoute(
        name="Saved",
        geometry=city_route,
        settings=SimulationSettings(speed_mph=15.0),
    )
    path = tmp_path / "saved.json"
    path.write_text(json.dumps(route.to_dict()), encoding="utf-8")
    assert cli.load_route_file(path) == route


def test_simulate_posts_payloads(monkeypatch, directions_file) -> None:
    session = ScriptedSession([FakeResponse(200)])
    monkeypatch.setattr(forwarder_module, "get_default_session", lambda: session)
    monkeypatch.setattr(SimulationDriver, "_wait", staticmethod(lambda *_args: False))

    code = cli.main(
        [
            "simulate",
            "--route-file",
            str(directions_file),
            "--webhook-url",
            "https://hooks.test/gps",
            "--webhook-headers",
            "X-Api-Key:abc",
            "--device-id",
            "cli-device",
            "--max-ticks",
            "3",
        ]
    )

    assert code == 0
    assert session.attempts == 3
    assert {call["url"] for call in session.calls} == {"https://hooks.test/gps"}
    assert session.calls[0]["headers"]["X-Api-Key"] == "abc"
    assert [call["json"]["sequenceNumber"] for call in session.calls] == [1, 2, 3]
    assert session.calls[0]["json"]["deviceId"] == "cli-device"


def test_simulate_rejects_route_without_geometry(tmp_path) -> None:
    path = tmp_path / "bare.json"
    path.write_text(json.dumps(SimulationRoute(name="bare").to_dict()), encoding="utf-8")
    assert cli.main(["simulate", "--route-file", str(path)]) == 1


@pytest.mark.parametrize(
    "document",
    [
        {"routes": [42]},
        {
            "routes": [
                {
                    "geometry": {"coordinates": [[0.0, 0.0], [0.0, 0.01]]},
                    "legs": [{"annotation": {"maxspeed": [{"speed": "fast"}]}}],
                }
            ]
        },
    ],
)
def test_info_reports_malformed_directions(tmp_path, document, caplog) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    assert cli.main(["info", "--route-file", str(path)]) == 1
    assert "invalid directions response" in caplog.text.lower()


@pytest.mark.parametrize(
    "flags",
    [["--speed-mph", "0"], ["--interval-ms", "0"], ["--retries", "-1"]],
)
def test_simulate_rejects_invalid_options(monkeypatch, directions_file, flags) -> None:
    session = ScriptedSession([FakeResponse(200)])
    monkeypatch.setattr(forwarder_module, "get_default_session", lambda: session)
    code = cli.main(["simulate", "--route-file", str(directions_file), *flags])
    assert code == 1
    assert session.attempts == 0
