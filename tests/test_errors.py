"""Tests de l'enveloppe d'erreur commune."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from sagasynth.app.main import app
from sagasynth.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
)


def test_domain_error_envelope_carries_trace_id(wired):
    client = TestClient(app)
    r = client.get("/api/nft/5", headers={"X-Trace-ID": "trace-123"})
    assert r.status_code == HTTP_NOT_FOUND
    assert set(r.json()) == {"error", "code", "details", "trace_id"}
    assert r.json()["trace_id"] == "trace-123"


def test_trace_id_falls_back_to_request_id(wired):
    client = TestClient(app)
    r = client.get("/api/bounty/9", headers={"X-Request-ID": "req-42"})
    assert r.json()["trace_id"] == "req-42"
    assert r.headers["X-Request-ID"] == "req-42"


def test_schema_errors_are_400(wired):
    client = TestClient(app)
    r = client.post("/api/generate", json={"sample_size": "many"})
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert r.json()["fields"] == ["sample_size"]


def test_unknown_route_uses_envelope(wired):
    client = TestClient(app)
    r = client.get("/api/nothing-here")
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "NOT_FOUND"


def test_unexpected_error_is_500_without_cause(wired):
    wired.registry.mint = MagicMock(side_effect=RuntimeError("secret detail"))
    client = TestClient(app, raise_server_exceptions=False)
    r = client.post(
        "/api/nft/mint",
        json={"contentHash": "0xab", "contentLink": "l", "tokenURI": "u"},
    )
    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["code"] == "INTERNAL_ERROR"
    assert "secret" not in r.text


def test_malformed_request_id_is_replaced(wired):
    client = TestClient(app)
    r = client.get("/health", headers={"X-Request-ID": "bad id with spaces <x>"})
    assert r.headers["X-Request-ID"] != "bad id with spaces <x>"
    assert len(r.headers["X-Request-ID"]) == 36
