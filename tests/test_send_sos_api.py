import logging

import pytest
from fastapi.testclient import TestClient

from app.api_service import app
from app.routers.sos import get_sms_gateway
from security.firebase_auth import get_caller_identity
from sos.models import CallerIdentity


@pytest.fixture
def client_for(gateway_factory):
    def make(signed_in=True, **gateway_kwargs):
        gw = gateway_factory(**gateway_kwargs)
        caller = CallerIdentity(uid="user-1") if signed_in else None
        app.dependency_overrides[get_caller_identity] = lambda: caller
        app.dependency_overrides[get_sms_gateway] = lambda: gw
        return TestClient(app), gw

    yield make
    app.dependency_overrides.clear()


def test_send_sos_success(client_for):
    client, gw = client_for()
    resp = client.post(
        "/sendSOS",
        json={"data": {"message": "Help, call me", "contacts": [{"phone": " 555-0100 "}, {"phone": "555-0101"}]}},
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "result": {"ok": True, "results": [{"to": "555-0100", "sid": "SM0001"}, {"to": "555-0101", "sid": "SM0002"}]}
    }
    assert resp.headers["X-Request-Id"]


def test_send_sos_caps_recipients(client_for):
    client, gw = client_for()
    contacts = [{"phone": f"555-010{i}"} for i in range(5)]
    resp = client.post("/sendSOS", json={"data": {"message": "Help", "contacts": contacts}})
    assert resp.status_code == 200
    assert len(resp.json()["result"]["results"]) == 3
    assert len(gw.calls) == 3


def test_unauthenticated_maps_to_401(client_for):
    client, gw = client_for(signed_in=False)
    resp = client.post("/sendSOS", json={"data": {"message": "Help", "contacts": [{"phone": "555-0100"}]}})
    assert resp.status_code == 401
    assert resp.json() == {"error": {"status": "UNAUTHENTICATED", "message": "Sign in required."}}
    assert gw.calls == []


def test_invalid_argument_maps_to_400(client_for):
    client, gw = client_for()
    resp = client.post("/sendSOS", json={"data": {"message": "  ", "contacts": [{"phone": "555-0100"}]}})
    assert resp.status_code == 400
    assert resp.json() == {"error": {"status": "INVALID_ARGUMENT", "message": "contacts and message are required"}}
    assert gw.calls == []


def test_missing_data_is_invalid_argument(client_for):
    client, _ = client_for()
    resp = client.post("/sendSOS", json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["status"] == "INVALID_ARGUMENT"


def test_non_object_body_is_bad_request(client_for):
    client, _ = client_for()
    resp = client.post("/sendSOS", json=["message", "Help"])
    assert resp.status_code == 400
    assert resp.json() == {"error": {"status": "INVALID_ARGUMENT", "message": "Bad Request"}}


def test_provider_failure_is_ok_false_with_200(client_for):
    client, gw = client_for(fail_on=2, error=RuntimeError("carrier rejected"))
    resp = client.post(
        "/sendSOS",
        json={"data": {"message": "Help", "contacts": [{"phone": "555-0100"}, {"phone": "555-0101"}]}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"result": {"ok": False, "error": "carrier rejected"}}
    assert "555-0100" not in resp.text


def test_request_id_is_echoed(client_for):
    client, _ = client_for()
    resp = client.post(
        "/sendSOS",
        headers={"X-Request-Id": "req-42"},
        json={"data": {"message": "Help", "contacts": [{"phone": "555-0100"}]}},
    )
    assert resp.headers["X-Request-Id"] == "req-42"


def test_missing_gateway_is_internal():
    app.dependency_overrides[get_caller_identity] = lambda: CallerIdentity(uid="user-1")
    try:
        resp = TestClient(app).post("/sendSOS", json={"data": {"message": "Help", "contacts": [{"phone": "1"}]}})
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert resp.json() == {"error": {"status": "INTERNAL", "message": "INTERNAL"}}


def test_health_reports_gateway(monkeypatch, gateway):
    client = TestClient(app)
    assert client.get("/health").json()["sms_gateway_ready"] is False

    monkeypatch.setattr(app.state, "sms_gateway", gateway, raising=False)
    data = client.get("/health").json()
    assert data["ok"] is True
    assert data["credentials_source"] == "env"
    assert "+15550009999" not in str(data)


def test_internal_error_keeps_request_id():
    def broken_auth():
        raise RuntimeError("identity backend down")

    app.dependency_overrides[get_caller_identity] = broken_auth
    try:
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.post(
            "/sendSOS",
            headers={"X-Request-Id": "req-500"},
            json={"data": {"message": "Help", "contacts": [{"phone": "555-0100"}]}},
        )
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert resp.json() == {"error": {"status": "INTERNAL", "message": "INTERNAL"}}
    assert resp.headers["X-Request-Id"] == "req-500"


def _events(caplog):
    return [getattr(r, "extra", {}).get("event") for r in caplog.records]


def test_wrong_method_uses_callable_error_shape(caplog):
    with caplog.at_level(logging.INFO, logger="sos.api"):
        resp = TestClient(app).get("/sendSOS", headers={"X-Request-Id": "req-405"})
    assert resp.status_code == 405
    assert resp.json() == {"error": {"status": "INVALID_ARGUMENT", "message": "Method Not Allowed"}}
    assert resp.headers["X-Request-Id"] == "req-405"
    assert "http_exception" in _events(caplog)


def test_unknown_path_is_not_found(caplog):
    with caplog.at_level(logging.INFO, logger="sos.api"):
        resp = TestClient(app).post("/sendSMS", json={"data": {}})
    assert resp.status_code == 404
    assert resp.json() == {"error": {"status": "NOT_FOUND", "message": "Not Found"}}
    assert "http_exception" in _events(caplog)
