"""Tests for world and body API endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from gravity.api.app import create_app
from gravity.config import Settings
from gravity.core.engine import CoreEngine
from gravity.core.simulation import Simulation


@pytest.fixture
def engine() -> CoreEngine:
    """Create an engine that is not running; routes step it directly."""
    settings = Settings(_env_file=None, spawn_mass=10.0, launch_velocity_scale=0.01)
    simulation = Simulation.from_settings(settings)
    return CoreEngine(simulation=simulation, settings=settings)


@pytest.fixture
def client(engine: CoreEngine) -> TestClient:
    """Create a test client."""
    return TestClient(create_app(engine=engine))


def test_root_and_health(client: TestClient):
    """Test the health endpoints."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["engine_running"] == "False"
    assert response.json()["tick"] == "0"


def test_world_state(client: TestClient):
    """Test the world state endpoint on an empty world."""
    response = client.get("/api/world/state")

    assert response.status_code == 200
    data = response.json()
    assert data["tick"] == 0
    assert data["body_count"] == 0
    assert data["total_mass"] == 0
    assert data["running"] is False
    assert data["world_params"]["timestep"] == 1e-4
    assert data["world_params"]["merge_policy"] == "mean"


def test_spawn_body(client: TestClient, engine: CoreEngine):
    """Test spawning a body through the API."""
    response = client.post(
        "/api/bodies",
        json={"position": [10.0, 20.0], "velocity": [1.0, 0.0], "mass": 10.0},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["queued"] is False
    assert engine.simulation.count() == 1
    assert engine.simulation.bodies()[0].id == data["id"]


def test_spawn_velocity_defaults_to_rest(client: TestClient, engine: CoreEngine):
    """Test that velocity may be omitted."""
    response = client.post("/api/bodies", json={"position": [0.0, 0.0], "mass": 1.0})

    assert response.status_code == 201
    assert engine.simulation.bodies()[0].velocity == (0.0, 0.0)


@pytest.mark.parametrize("mass", [0, -5])
def test_spawn_rejects_invalid_mass(client: TestClient, engine: CoreEngine, mass):
    """Test that non-positive masses are a 400 and create nothing."""
    response = client.post("/api/bodies", json={"position": [0.0, 0.0], "mass": mass})

    assert response.status_code == 400
    assert "mass" in response.json()["detail"]
    assert engine.simulation.count() == 0


@pytest.mark.parametrize(
    "payload",
    [
        '{"position": [NaN, 0.0], "mass": 1.0}',
        '{"position": [0.0, 0.0], "velocity": [Infinity, 0.0], "mass": 1.0}',
        '{"position": [0.0, 0.0], "mass": Infinity}',
    ],
)
def test_spawn_rejects_non_finite_json(client: TestClient, engine: CoreEngine, payload: str):
    """Test that NaN and Infinity literals fail request validation."""
    response = client.post("/api/bodies", content=payload, headers={"Content-Type": "application/json"})

    assert response.status_code == 422
    assert engine.simulation.count() == 0


def test_spawn_rejects_total_mass_overflow(client: TestClient, engine: CoreEngine):
    """Test that a mass that would overflow the total is a 400."""
    client.post("/api/bodies", json={"position": [0.0, 0.0], "mass": 1e308})

    response = client.post("/api/bodies", json={"position": [1.0, 0.0], "mass": 1e308})

    assert response.status_code == 400
    assert engine.simulation.count() == 1


def test_launch_rejects_overflowing_velocity(client: TestClient, engine: CoreEngine):
    """Test that a drag too long for a finite velocity is a 400."""
    response = client.post("/api/bodies/launch", json={"start": [1.7e308, 0.0], "end": [-1.7e308, 0.0]})

    assert response.status_code == 400
    assert "velocity" in response.json()["detail"]
    assert engine.simulation.count() == 0


def test_spawn_requires_mass(client: TestClient):
    """Test request validation for missing fields."""
    response = client.post("/api/bodies", json={"position": [0.0, 0.0]})
    assert response.status_code == 422


def test_launch_body(client: TestClient, engine: CoreEngine):
    """Test spawning from a drag gesture."""
    response = client.post("/api/bodies/launch", json={"start": [100.0, 100.0], "end": [200.0, 50.0]})

    assert response.status_code == 201
    state = engine.simulation.bodies()[0]
    assert state.position == (100.0, 100.0)
    assert state.velocity == pytest.approx((1.0, -0.5))
    assert state.mass == 10.0


def test_launch_rejects_invalid_mass(client: TestClient):
    """Test that an explicit bad mass is rejected."""
    response = client.post("/api/bodies/launch", json={"start": [0.0, 0.0], "end": [1.0, 1.0], "mass": 0})
    assert response.status_code == 400


def test_list_and_get_bodies(client: TestClient):
    """Test listing bodies and fetching one by id."""
    first = client.post("/api/bodies", json={"position": [0.0, 0.0], "mass": 4.0}).json()["id"]
    client.post("/api/bodies", json={"position": [500.0, 0.0], "mass": 9.0})

    response = client.get("/api/bodies")
    assert response.status_code == 200
    bodies = response.json()
    assert len(bodies) == 2
    assert {b["mass"] for b in bodies} == {4.0, 9.0}

    response = client.get(f"/api/bodies/{first}")
    assert response.status_code == 200
    assert response.json()["radius"] == 6.0


def test_get_unknown_body(client: TestClient):
    """Test 404 for an unknown body id."""
    response = client.get("/api/bodies/9999")
    assert response.status_code == 404


def test_step_world(client: TestClient):
    """Test manual stepping merges overlapping bodies."""
    client.post("/api/bodies", json={"position": [0.0, 0.0], "mass": 1.0})
    client.post("/api/bodies", json={"position": [1.0, 0.0], "mass": 1.0})

    response = client.post("/api/world/step", params={"count": 3})

    assert response.status_code == 200
    data = response.json()
    assert data["tick"] == 3
    assert data["body_count"] == 1
    assert data["clusters_merged"] == 1
    assert data["bodies_absorbed"] == 1


@pytest.mark.parametrize("count", [0, 1001])
def test_step_world_bounds(client: TestClient, count: int):
    """Test that the step count is validated."""
    response = client.post("/api/world/step", params={"count": count})
    assert response.status_code == 422


def test_stats(client: TestClient):
    """Test the statistics endpoint."""
    client.post("/api/world/step")

    response = client.get("/api/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["tick"] == 1
    assert data["body_count"] == 0
    assert data["bodies_absorbed"] == 0
