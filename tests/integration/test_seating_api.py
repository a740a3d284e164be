"""
Testy HTTP API planu stołów (FastAPI TestClient).
"""

import time

import pytest
from fastapi.testclient import TestClient

from src.api import app, get_registry, PlanRegistry
from src.persistence import save_hall_dimensions, load_hall_dimensions


@pytest.fixture
def registry(session_factory):
    registry = PlanRegistry(session_factory=session_factory, debounce=0)
    app.dependency_overrides[get_registry] = lambda: registry
    yield registry
    app.dependency_overrides.clear()


@pytest.fixture
def client(registry):
    with TestClient(app) as client:
        client.post("/events/boda-1/open")
        yield client


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_plan_requires_open(client):
    assert client.get("/events/nope/plan").status_code == 404


def test_open_loads_hall_size(registry, session_factory):
    save_hall_dimensions("boda-2", 2500, 1400, session_factory=session_factory)
    with TestClient(app) as client:
        state = client.post("/events/boda-2/open").json()
        assert state["hall_size"] == {"width": 1800, "height": 1200}
        assert wait_for(lambda: client.get("/events/boda-2/hall").json()["width"] == 2500)


def test_close_plan(client):
    assert client.delete("/events/boda-1").status_code == 200
    assert client.get("/events/boda-1/plan").status_code == 404
    assert client.delete("/events/boda-1").status_code == 404


def test_generate_and_undo(client):
    client.post("/events/boda-1/ceremony/grid", json={"rows": 2, "cols": 3})
    state = client.post("/events/boda-1/ceremony/grid", json={"rows": 1, "cols": 1, "aisleAfter": 0}).json()
    assert len(state["seats"]) == 1
    assert state["can_undo"] is True

    state = client.post("/events/boda-1/undo").json()
    assert len(state["seats"]) == 6
    assert state["can_redo"] is True

    state = client.post("/events/boda-1/redo").json()
    assert len(state["seats"]) == 1


def test_banquet_layout_and_selection(client):
    client.post("/events/boda-1/tab", json={"tab": "banquet"})
    state = client.post("/events/boda-1/banquet/layout",
                        json={"rows": 2, "cols": 3, "seats": 8, "gapX": 140, "gapY": 160}).json()
    tables = state["tables"]["banquet"]
    assert len(tables) == 6
    assert (tables[0]["x"], tables[0]["y"]) == (120, 160)

    selected = client.post("/events/boda-1/tables/1/select").json()["selected"]
    assert selected["name"] == "Mesa 1"

    state = client.patch("/events/boda-1/selection", json={"field": "width", "value": "150"}).json()
    assert state["tables"]["banquet"][0]["width"] == 150
    state = client.post("/events/boda-1/selection/shape").json()
    assert state["selected_table"]["shape"] == "circle"

    state = client.post("/events/boda-1/tables/1/move", json={"x": 300, "y": 320}).json()
    assert (state["tables"]["banquet"][0]["x"], state["tables"]["banquet"][0]["y"]) == (300, 320)
    assert client.post("/events/boda-1/tables/77/move", json={"x": 0, "y": 0}).status_code == 404


def test_invalid_input(client):
    assert client.post("/events/boda-1/tab", json={"tab": "cocktail"}).status_code == 422
    assert client.post("/events/boda-1/templates/gigantic").status_code == 400
    client.post("/events/boda-1/tables", json={})
    client.post(f"/events/boda-1/tables/{client.get('/events/boda-1/plan').json()['tables']['ceremony'][0]['id']}/select")
    assert client.patch("/events/boda-1/selection", json={"field": "color", "value": 1}).status_code == 400


def test_dimension_change_without_selection(client):
    client.post("/events/boda-1/tables", json={"name": "Presidencia"})
    response = client.patch("/events/boda-1/selection", json={"field": "width", "value": "999"})
    assert response.status_code == 200
    assert response.json()["tables"]["ceremony"][0]["width"] == 80


def test_areas(client):
    area = client.post("/events/boda-1/areas", json={"points": [{"x": 0, "y": 0}, {"x": 50, "y": 0}, {"x": 50, "y": 50}]}).json()
    assert area["tab"] == "ceremony"

    state = client.patch(f"/events/boda-1/areas/{area['id']}/points/2", json={"x": 60, "y": 70}).json()
    assert state["areas"]["ceremony"][0]["points"][2] == {"x": 60, "y": 70}

    assert client.delete(f"/events/boda-1/areas/{area['id']}").status_code == 200
    assert client.delete(f"/events/boda-1/areas/{area['id']}").status_code == 404


def test_toggle_and_assign(client):
    client.post("/events/boda-1/ceremony/grid", json={"rows": 1, "cols": 2})
    assert client.post("/events/boda-1/items/2/toggle").json() == {"id": "2", "enabled": False}
    assert client.post("/events/boda-1/items/2/assign", json={"guest": {"id": "g1", "name": "Ana"}}).status_code == 409

    state = client.post("/events/boda-1/items/1/assign", json={"guest": {"id": "g1", "name": "Ana"}}).json()
    assert state["seats"][0]["guestId"] == "g1"
    state = client.post("/events/boda-1/items/1/assign", json={}).json()
    assert state["seats"][0]["guestId"] is None
    assert client.post("/events/boda-1/items/999/toggle").status_code == 404


def test_occupancy(client):
    client.post("/events/boda-1/tab", json={"tab": "banquet"})
    client.post("/events/boda-1/banquet/layout", json={"rows": 1, "cols": 2})
    roster = [
        {"id": "g1", "name": "Ana García", "tableId": 1, "companion": 2},
        {"id": "g2", "name": "Luis Pérez", "table": "Mesa 2", "companion": "x"},
    ]
    result = client.post("/events/boda-1/occupancy", json={"guests": roster}).json()
    assert [r["count"] for r in result] == [3, 1]
    assert result[0]["labels"] == ["AG"]
    assert len(result[1]["markers"]) == 1


def test_hall_save_cancels_pending_load(registry, session_factory):
    save_hall_dimensions("boda-3", 2500, 1400, session_factory=session_factory)
    registry.debounce = 0.2
    with TestClient(app) as client:
        client.post("/events/boda-3/open")
        client.put("/events/boda-3/hall", json={"width": 900, "height": 600})
        time.sleep(0.4)
        assert client.get("/events/boda-3/hall").json() == {"width": 900, "height": 600}


def test_hall_save_is_persisted(client, session_factory):
    response = client.put("/events/boda-1/hall", json={"width": 3000, "height": 2000})
    assert response.json() == {"width": 3000, "height": 2000}
    size = load_hall_dimensions("boda-1", session_factory=session_factory)
    assert (size.width, size.height) == (3000, 2000)


def test_layout_save_and_load(client, registry):
    client.post("/events/boda-1/templates/medium")
    assert client.post("/events/boda-1/layout/save").json() == {"saved": {"ceremony": True, "banquet": True}}

    client.delete("/events/boda-1")
    client.post("/events/boda-1/open")
    state = client.post("/events/boda-1/layout/load").json()
    assert len(state["seats"]) == 120
    assert len(state["tables"]["banquet"]) == 12
    assert all(t["seats"] == 10 for t in state["tables"]["banquet"])


def test_templates_listing(client):
    ids = [t["id"] for t in client.get("/templates").json()]
    assert ids == ["intimate", "medium", "large"]
