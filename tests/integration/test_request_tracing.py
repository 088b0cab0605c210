"""Integration tests covering request ID propagation and middleware."""

from __future__ import annotations

import logging


def test_request_id_echoed_when_provided(client):
    request_id = "test-request-123"
    response = client.get("/health", headers={"X-Request-ID": request_id})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == request_id


def test_request_id_generated_when_missing(client):
    response = client.get("/health")
    assert response.status_code == 200
    generated = response.headers.get("X-Request-ID")
    assert generated
    assert len(generated) >= 8


def test_request_id_set_on_error_responses(client):
    response = client.post("/receipt", content=b"", headers={"Content-Type": "image/png"})
    assert response.status_code == 400
    assert response.headers.get("X-Request-ID")


def test_access_log_carries_request_id(client, caplog):
    with caplog.at_level(logging.INFO, logger="docscan.access"):
        client.get("/health", headers={"X-Request-ID": "trace-me"})

    records = [record for record in caplog.records if record.name == "docscan.access"]
    assert records
    assert records[-1].request_id == "trace-me"
    assert "GET /health status=200" in records[-1].getMessage()
