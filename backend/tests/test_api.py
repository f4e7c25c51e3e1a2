"""Tests for the HTTP surface: notices CRUD and arrival envelopes."""

import asyncio
import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from transit_board.api.deps import get_bus_board, get_notice_store, get_train_board
from transit_board.config import settings
from transit_board.core.arrival_board import ArrivalBoard
from transit_board.core.arrival_formatter import ArrivalFormatter
from transit_board.core.destinations import (
    BusDestinationRules,
    DestinationResolver,
    TrainDestinationRules,
)
from transit_board.core.feed_client import FeedClient
from transit_board.core.notice_store import InMemoryNoticeStore
from transit_board.core.stations import StationDirectory
from transit_board.main import app
from feeds import build_feed, trip

PASSWORD = "letmein"


@pytest.fixture
def make_board():
    clients = []

    def factory(label, handler, resolver, formatter=None) -> ArrivalBoard:
        client = FeedClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return ArrivalBoard(
            label=label,
            client=client,
            feed_url=f"https://feeds.example/{label}.pb",
            stop_ids=frozenset({"56"}),
            station_name="Mount Vernon West",
            resolver=resolver,
            formatter=formatter or ArrivalFormatter(),
            api_key="k",
        )

    yield factory
    for client in clients:
        asyncio.run(client.close())


@pytest.fixture
def store():
    return InMemoryNoticeStore()


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(settings, "admin_password", PASSWORD)
    app.dependency_overrides[get_notice_store] = lambda: store
    # No lifespan: nothing here touches the database
    yield TestClient(app)
    app.dependency_overrides.clear()


def create(client, **fields):
    body = {"password": PASSWORD, "title": "Elevator", "content": "Elevator B out of service", **fields}
    return client.post("/api/notices", json=body)


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_and_list_notice(client):
    resp = create(client, priority="high")
    assert resp.status_code == 201
    notice = resp.json()["notice"]
    assert notice["title"] == "Elevator"
    assert notice["priority"] == "high"
    assert notice["active"] is True

    listed = client.get("/api/notices").json()["notices"]
    assert [n["id"] for n in listed] == [notice["id"]]


def test_create_with_wrong_password_is_rejected(client):
    create(client)
    before = len(client.get("/api/notices").json()["notices"])

    resp = client.post("/api/notices", json={"password": "nope", "title": "X", "content": "Y"})
    assert resp.status_code == 401

    after = len(client.get("/api/notices").json()["notices"])
    assert after == before


def test_wrong_password_checked_before_validation(client):
    resp = client.post("/api/notices", json={"password": "nope"})
    assert resp.status_code == 401


def test_missing_password_is_rejected(client):
    resp = client.post("/api/notices", json={"title": "X", "content": "Y"})
    assert resp.status_code == 401


def test_unset_admin_password_rejects_writes(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_password", "")
    resp = client.post("/api/notices", json={"password": "", "title": "X", "content": "Y"})
    assert resp.status_code == 401


def test_missing_title_is_validation_error(client):
    resp = client.post("/api/notices", json={"password": PASSWORD, "content": "Y"})
    assert resp.status_code == 422
    assert client.get("/api/notices").json()["notices"] == []


def test_bad_priority_is_validation_error(client):
    resp = create(client, priority="urgent")
    assert resp.status_code == 422


def test_update_notice(client):
    notice_id = create(client).json()["notice"]["id"]
    resp = client.patch(f"/api/notices/{notice_id}", json={"password": PASSWORD, "active": False})
    assert resp.status_code == 200
    assert resp.json()["notice"]["active"] is False
    assert client.get("/api/notices").json()["notices"] == []
    assert len(client.get("/api/notices/all").json()["notices"]) == 1


def test_update_requires_password(client):
    notice_id = create(client).json()["notice"]["id"]
    resp = client.patch(f"/api/notices/{notice_id}", json={"password": "nope", "active": False})
    assert resp.status_code == 401
    assert client.get("/api/notices").json()["notices"][0]["active"] is True


def test_update_unknown_notice(client):
    resp = client.patch("/api/notices/missing", json={"password": PASSWORD, "title": "New"})
    assert resp.status_code == 404


def test_delete_notice(client):
    notice_id = create(client).json()["notice"]["id"]
    resp = client.request("DELETE", f"/api/notices/{notice_id}", json={"password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert client.get("/api/notices/all").json()["notices"] == []


def test_delete_requires_password(client):
    notice_id = create(client).json()["notice"]["id"]
    assert client.request("DELETE", f"/api/notices/{notice_id}", json={"password": "x"}).status_code == 401
    assert client.delete(f"/api/notices/{notice_id}").status_code == 401
    assert len(client.get("/api/notices").json()["notices"]) == 1


def test_delete_unknown_notice(client):
    resp = client.request("DELETE", "/api/notices/missing", json={"password": PASSWORD})
    assert resp.status_code == 404


def test_expired_notices_hidden(client):
    past = (datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(hours=1)).isoformat()
    future = (datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1)).isoformat()
    create(client, title="Old", expires_at=past)
    create(client, title="Current", expires_at=future)
    titles = [n["title"] for n in client.get("/api/notices").json()["notices"]]
    assert titles == ["Current"]


def test_notices_ordered_by_priority(client):
    create(client, title="Low", priority="low")
    create(client, title="High", priority="high")
    create(client, title="Medium", priority="medium")
    titles = [n["title"] for n in client.get("/api/notices").json()["notices"]]
    assert titles == ["High", "Medium", "Low"]


def test_verify_password(client):
    assert client.post("/api/notices/verify", json={"password": PASSWORD}).json() == {"valid": True}
    assert client.post("/api/notices/verify", json={"password": "x"}).status_code == 401


def test_keep_alive(client):
    resp = client.get("/api/keep-alive")
    assert resp.status_code == 200
    assert resp.json()["success"] is True


def test_trains_envelope_uses_camel_case(client, make_board):
    now = int(datetime.datetime.now(datetime.timezone.utc).timestamp())

    def handler(request):
        return httpx.Response(200, content=build_feed([
            trip("T1", "2", [("56", now + 10 * 60, 0), ("1", now + 40 * 60, 0)], entity_id="1234"),
        ]))

    resolver = DestinationResolver(StationDirectory({"1": "Grand Central Terminal"}), TrainDestinationRules())
    board = make_board("trains", handler, resolver, ArrivalFormatter(nominal_status="on-time", show_run_number=True))
    app.dependency_overrides[get_train_board] = lambda: board

    body = client.get("/api/trains").json()
    assert body["isLive"] is True
    assert body["station"] == "Mount Vernon West"
    assert "error" not in body
    arrival = body["arrivals"][0]
    assert arrival["destination"] == "Grand Central Terminal"
    assert arrival["routeLabel"] == "Harlem Line"
    assert arrival["vehicleOrTripId"] == "1234"
    assert 9 <= arrival["minutesAway"] <= 10


def test_board_combines_feeds(client, make_board):
    def ok(request):
        return httpx.Response(200, content=build_feed([]))

    def down(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    train_resolver = DestinationResolver(StationDirectory(), TrainDestinationRules())
    bus_resolver = DestinationResolver(StationDirectory(), BusDestinationRules())
    train_board = make_board("trains", ok, train_resolver)
    bus_board = make_board("buses", down, bus_resolver)
    app.dependency_overrides[get_train_board] = lambda: train_board
    app.dependency_overrides[get_bus_board] = lambda: bus_board

    body = client.get("/api/board").json()
    assert body["trains"]["isLive"] is True
    assert body["trains"]["note"] == "No trains currently approaching."
    assert body["buses"]["isLive"] is False
    assert body["buses"]["arrivals"] == []
    assert "Buses data unavailable" in body["buses"]["error"]
