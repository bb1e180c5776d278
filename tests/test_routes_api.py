# tests/test_routes_api.py
import pytest
from fastapi.testclient import TestClient

from conftest import ORIGIN

from route_engine.api.v1.routes_routing import get_controller
from route_engine.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def override_controller(controller):
    app.dependency_overrides[get_controller] = lambda: controller
    yield
    app.dependency_overrides.clear()


def node_payload(node_id, offset, category=None):
    return {
        "id": node_id,
        "title": f"Site {node_id}",
        "coordinate": {"lat": ORIGIN.lat, "lon": ORIGIN.lon + offset},
        "category": category,
    }


ORIGIN_PAYLOAD = {"lat": ORIGIN.lat, "lon": ORIGIN.lon}


def test_create_route():
    payload = {
        "origin": ORIGIN_PAYLOAD,
        "nodes": [node_payload("a", 0.002), node_payload("b", 0.001)],
    }

    response = client.post("/route/", json=payload)
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["status"] == "rendered"
    assert [n["id"] for n in data["ordered_nodes"]] == ["b", "a"]
    assert data["geometry"]["tier"] == "primary"
    assert len(data["geometry"]["polyline"]) >= 2
    assert data["total_time_minutes"] == 15 + 20


def test_active_route_and_clear():
    payload = {"origin": ORIGIN_PAYLOAD, "nodes": [node_payload("a", 0.001)]}
    client.post("/route/", json=payload)

    active = client.get("/route/").json()
    assert active["state"] == "rendered"
    assert active["route"]["ordered_nodes"][0]["id"] == "a"

    assert client.delete("/route/").status_code == 204
    assert client.delete("/route/").status_code == 204

    cleared = client.get("/route/").json()
    assert cleared == {"state": "idle", "route": None}


def test_empty_nodes_is_bad_request(provider):
    response = client.post("/route/", json={"origin": ORIGIN_PAYLOAD, "nodes": []})

    assert response.status_code == 400
    assert response.json()["error"] == "precondition_failed"
    assert provider.calls == []


def test_budget_negotiation_round_trip(provider):
    provider.directions_duration = 1800.0
    nodes = [node_payload("a", 0.001), node_payload("b", 0.002), node_payload("c", 0.003)]

    response = client.post(
        "/route/",
        json={"origin": ORIGIN_PAYLOAD, "nodes": nodes, "available_minutes": 40},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["status"] == "budget_exceeded"
    assert data["proposed_reduced_count"] == 2
    assert client.get("/route/").json()["route"] is None

    response = client.post(
        "/route/reduced",
        json={
            "origin": ORIGIN_PAYLOAD,
            "nodes": nodes,
            "available_minutes": 40,
            "reduced_count": data["proposed_reduced_count"],
        },
    )
    assert response.status_code == 200
    assert [n["id"] for n in response.json()["ordered_nodes"]] == ["a", "b"]


def test_infeasible_route_is_unprocessable(provider):
    provider.directions_duration = 3600.0

    response = client.post(
        "/route/",
        json={"origin": ORIGIN_PAYLOAD, "nodes": [node_payload("a", 0.001)], "available_minutes": 30},
    )

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "route_infeasible"
    assert data["available_minutes"] == 30
    assert data["minimum_minutes"] == 70


def test_plan_route():
    payload = {
        "origin": ORIGIN_PAYLOAD,
        "catalog": [
            node_payload("a", 0.001, "religious"),
            node_payload("b", 0.002, "architecture"),
            node_payload("c", 0.003, "architecture"),
        ],
        "count": 2,
        "categories": ["architecture"],
        "display_mode": "dark",
    }

    response = client.post("/route/plan", json=payload)

    assert response.status_code == 200
    assert [n["id"] for n in response.json()["ordered_nodes"]] == ["b", "c"]


def test_plan_route_all_discovered():
    payload = {
        "origin": ORIGIN_PAYLOAD,
        "catalog": [node_payload("a", 0.001)],
        "count": 2,
        "discovered_ids": ["a"],
    }

    response = client.post("/route/plan", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "precondition_failed"


def test_invalid_coordinate_is_rejected():
    response = client.post(
        "/route/",
        json={"origin": {"lat": 123.0, "lon": 0.0}, "nodes": [node_payload("a", 0.001)]},
    )
    assert response.status_code == 422
