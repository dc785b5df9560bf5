import json
import logging

import pytest

from quizhub.core.logger.logger import JsonFormatter


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Capture INFO and above from the request logger"""
    caplog.set_level(logging.INFO, logger="quizhub.request")


def _request_records(caplog):
    return [r for r in caplog.records if r.name == "quizhub.request"]


async def test_request_logging(client, caplog):
    """API requests are logged with their correlation ID"""
    correlation_id = "test-correlation-id"

    response = await client.get("/quiz/categories", headers={"X-Request-ID": correlation_id})
    assert response.status_code == 401

    record = next(r for r in _request_records(caplog) if r.getMessage() == "Request completed")
    assert record.request_id == correlation_id
    assert record.method == "GET"
    assert record.path == "/quiz/categories"
    assert record.status_code == 401
    assert record.duration_ms >= 0


async def test_validation_errors_answer_400(client, caplog):
    response = await client.post("/auth/signup", json={"invalid": "data"}, headers={"X-Request-ID": "bad-input"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "INVALID_INPUT"
    assert body["error"]["request_id"] == "bad-input"
    assert body["error"]["details"]["validation_errors"]

    record = next(r for r in _request_records(caplog) if getattr(r, "request_id", None) == "bad-input")
    assert record.status_code == 400


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("quizhub.test", logging.WARNING, __file__, 1, "Rate limit exceeded", None, None)
    record.ip = "1.2.3.4"
    record.limit = 5

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "quizhub.test"
    assert payload["message"] == "Rate limit exceeded"
    assert payload["ip"] == "1.2.3.4"
    assert payload["limit"] == 5


def test_json_formatter_merges_json_messages():
    record = logging.LogRecord("quizhub.test", logging.INFO, __file__, 1, json.dumps({"event": "startup"}), None, None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "startup"
    assert "message" not in payload
