"""Tests for the HTTP API."""

from datetime import datetime, timedelta, timezone
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from gatepass.config import Config
from gatepass.main import create_app
from gatepass.services.audit_log import InMemoryAuditLogStore

from .conftest import EXPIRED_PASS, VALID_PASS


@pytest.fixture
def settings():
    settings = Config()
    settings.CHECKPOINT_FACILITY = "server_room"
    settings.CHECKPOINT_GATE = "Server Room North Gate"
    return settings


@pytest.fixture
def client(settings, repositories):
    requests, approvals = repositories
    app = create_app(
        settings,
        store=InMemoryAuditLogStore(),
        requests=requests,
        approvals=approvals,
        start_worker=False,
    )
    return TestClient(app)


def _scan(client, raw, terminal="gate-1"):
    return client.post(f"/api/checkpoints/{terminal}/scan", json={"raw": raw})


def _record(client, raw, action, terminal="gate-1", reason=None):
    assert _scan(client, raw, terminal).status_code == 200
    body = {"action": action}
    if reason:
        body["reason"] = reason
    return client.post(f"/api/checkpoints/{terminal}/decision", json=body)


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "ok"}


def test_scan_valid_pass(client):
    response = _scan(client, VALID_PASS)

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "verified"
    assert body["method"] == "scan"
    assert body["verdict"]["ok"] is True
    assert body["verdict"]["reasons"] == []
    assert body["defaultAction"] == "admit"
    assert body["claim"]["number"] == "REQ-00002"


def test_scan_url_form(client):
    response = _scan(client, f"https://passes.example.com/verify?data={quote(EXPIRED_PASS)}")

    assert response.status_code == 200
    assert response.json()["verdict"]["reasons"] == ["Pass has expired."]
    assert response.json()["defaultAction"] == "deny"


def test_scan_invalid_payload(client):
    response = _scan(client, "hello")

    assert response.status_code == 400
    assert client.get("/api/checkpoints/gate-1").json()["state"] == "idle"


def test_scan_while_pending_conflicts(client):
    _scan(client, VALID_PASS)

    assert _scan(client, EXPIRED_PASS).status_code == 409
    assert _scan(client, VALID_PASS).status_code == 200


def test_decision_records_log(client):
    client.put("/api/checkpoints/gate-1/metadata", json={"guardName": "Guard Alpha"})

    response = _record(client, VALID_PASS, "admit")

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "idle"
    assert body["lastEntry"]["action"] == "admit"
    assert body["lastEntry"]["guardName"] == "Guard Alpha"
    assert body["lastEntry"]["gate"] == "Server Room North Gate"

    logs = client.get("/api/logs").json()["logs"]
    assert [log["id"] for log in logs] == [body["lastEntry"]["id"]]


def test_rescan_after_decision_is_verified(client):
    assert _record(client, VALID_PASS, "deny").status_code == 200

    response = _scan(client, VALID_PASS)

    assert response.status_code == 200
    assert response.json()["state"] == "verified"
    assert response.json()["verdict"]["ok"] is True


def test_deny_without_reason_logs_invalid_pass(client):
    response = _record(client, VALID_PASS, "deny")

    entry = response.json()["lastEntry"]
    assert entry["reason"] == "Invalid pass"
    assert entry["valid"] is True


def test_decision_without_scan_conflicts(client):
    response = client.post("/api/checkpoints/gate-1/decision", json={"action": "deny"})

    assert response.status_code == 409


def test_reset_discards_pending_pass(client):
    _scan(client, VALID_PASS)

    response = client.post("/api/checkpoints/gate-1/reset")

    assert response.json()["state"] == "idle"
    assert client.get("/api/logs").json()["logs"] == []


def test_terminals_are_independent(client):
    _scan(client, VALID_PASS, terminal="north")

    assert _scan(client, EXPIRED_PASS, terminal="south").status_code == 200
    assert client.get("/api/checkpoints/north").json()["claim"]["number"] == "REQ-00002"


def test_manual_lookup(client):
    response = client.post("/api/checkpoints/gate-1/lookup", json={"requestNumber": "REQ-00002"})

    assert response.status_code == 200
    body = response.json()
    assert body["method"] == "manual"
    assert body["request"]["requestNumber"] == "REQ-00002"
    assert body["approvals"]["complete"] is True


def test_manual_lookup_unknown(client):
    response = client.post("/api/checkpoints/gate-1/lookup", json={"requestNumber": "REQ-404"})

    assert response.status_code == 404


def test_verify_claim_is_stateless(client):
    response = client.post("/api/verify/claim", json={"raw": VALID_PASS, "facility": "lab"})

    assert response.status_code == 200
    assert response.json()["verdict"]["reasons"] == ["Facility mismatch for this checkpoint."]
    assert client.get("/api/checkpoints/gate-1").json()["state"] == "idle"


def test_verify_record(client):
    response = client.get("/api/verify/REQ-00004", params={"facility": "data_center"})

    assert response.status_code == 200
    body = response.json()
    assert body["verdict"]["reasons"] == ["Request is not approved (status: pending)."]
    assert body["approvals"]["complete"] is False
    assert client.get("/api/verify/REQ-404").status_code == 404


def test_log_filters_and_facilities(client):
    _record(client, VALID_PASS, "admit")
    _record(client, EXPIRED_PASS, "deny")

    assert len(client.get("/api/logs").json()["logs"]) == 2
    denied = client.get("/api/logs", params={"action": "deny"}).json()["logs"]
    assert [log["requestNumber"] for log in denied] == ["REQ-00007"]
    searched = client.get("/api/logs", params={"q": "kamanda"}).json()["logs"]
    assert [log["requestNumber"] for log in searched] == ["REQ-00002"]
    assert client.get("/api/logs/facilities").json() == {"facilities": ["server_room"]}


def test_date_only_to_covers_the_whole_day(client):
    _record(client, VALID_PASS, "admit")
    today = datetime.now(timezone.utc).date()

    same_day = client.get("/api/logs", params={"to": today.isoformat()}).json()["logs"]
    day_before = client.get("/api/logs", params={"to": (today - timedelta(days=1)).isoformat()}).json()["logs"]

    assert [log["requestNumber"] for log in same_day] == ["REQ-00002"]
    assert day_before == []


def test_invalid_log_filter(client):
    assert client.get("/api/logs", params={"from": "not-a-date"}).status_code == 422


def test_export_csv(client):
    _record(client, EXPIRED_PASS, "deny", reason='He said "go"')

    response = client.get("/api/logs/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"access-logs-" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "id,timestamp,requestNumber,requestId,requesterName,facility,gate,action,method,guardName,reason,valid"
    assert '"He said ""go"""' in lines[1]


def test_purge_requires_confirmation(client):
    _record(client, VALID_PASS, "admit")

    assert client.delete("/api/logs").status_code == 400
    assert len(client.get("/api/logs").json()["logs"]) == 1

    response = client.delete("/api/logs", params={"confirm": "true"})

    assert response.json() == {"removed": 1}
    assert client.get("/api/logs").json()["logs"] == []
