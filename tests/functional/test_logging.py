import json
import logging

import pytest
from fastapi.testclient import TestClient

from app.core.logging import JsonFormatter, request_id_ctx

pytestmark = pytest.mark.usefixtures("clean_db")


# funciones auxiliares para logs
def _logs_messages(caplog) -> list[str]:
    return [record.getMessage() for record in caplog.records]


#verifica logs de login
def test_logging_login_success(client: TestClient, caplog):
    caplog.set_level(logging.INFO)

    resp = client.post("/api/v1/auth/login", data={"username": "admin", "password": "admin"})
    assert resp.status_code == 200, resp.text

    assert "login_success" in _logs_messages(caplog)


#verifica logs de login fallido
def test_logging_login_failure(client: TestClient, caplog):
    caplog.set_level(logging.INFO)

    resp = client.post("/api/v1/auth/login", data={"username": "admin", "password": "wrong"})
    assert resp.status_code == 401, resp.text

    failed = [r for r in caplog.records if r.getMessage() == "login_failed"]
    assert failed
    assert failed[0].levelno == logging.WARNING
    assert failed[0].username == "admin"


#cada request deja un request_completed y devuelve X-Request-ID
def test_request_id_is_propagated(client: TestClient, admin_headers, caplog):
    caplog.set_level(logging.INFO)

    resp = client.get("/api/v1/books/", headers={**admin_headers, "X-Request-ID": "req-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-123"

    completed = [r for r in caplog.records if r.getMessage() == "request_completed"]
    assert any(r.request_id == "req-123" and r.path == "/api/v1/books/" for r in completed)


#el reporte deja un log report_ready con los tamaños de cada resultado
def test_logging_report_ready(client: TestClient, admin_headers, caplog):
    caplog.set_level(logging.INFO)

    resp = client.post("/api/v1/reports/circulation", headers=admin_headers)
    assert resp.status_code == 200

    ready = [r for r in caplog.records if r.getMessage() == "report_ready"]
    assert ready
    assert ready[-1].operation == "circulation_report"
    assert ready[-1].issued_loans == 0


def test_json_formatter_includes_extra_and_context():
    record = logging.LogRecord(
        name="api.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="book_created",
        args=(),
        exc_info=None,
    )
    record.operation = "book_create"
    record.book_id = "B1"

    token = request_id_ctx.set("req-json")
    try:
        payload = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx.reset(token)

    assert payload["message"] == "book_created"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "api.test"
    assert payload["operation"] == "book_create"
    assert payload["book_id"] == "B1"
    assert payload["request_id"] == "req-json"
