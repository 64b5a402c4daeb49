"""Tests for the optional SQLite request log."""

import sqlite3

import api.request_log as request_log_module
import scripts.init_db as init_db_module
from api.request_log import RequestLog, log_request


def test_disabled_log_writes_nothing(tmp_path, monkeypatch):
    db_path = tmp_path / "requests.db"
    monkeypatch.setattr(request_log_module, "REQUEST_LOG_ENABLED", False)
    monkeypatch.setattr(request_log_module, "REQUEST_LOG_DB_PATH", db_path)

    log_request(RequestLog(endpoint="/calculate-billing-date", method="POST", status_code=200))

    assert not db_path.exists()


def test_enabled_log_records_request_and_details(tmp_path, monkeypatch):
    db_path = tmp_path / "db" / "requests.db"
    monkeypatch.setattr(init_db_module, "REQUEST_LOG_DB_PATH", db_path)
    monkeypatch.setattr(request_log_module, "REQUEST_LOG_ENABLED", True)
    monkeypatch.setattr(request_log_module, "REQUEST_LOG_DB_PATH", db_path)
    init_db_module.create_database()

    log = RequestLog(
        endpoint="/calculate-billing-date",
        method="POST",
        contact_id="42",
        calculated_date="2024-03-27",
        status_code=200,
        details=[("integration_error", "Webhook: 500")],
    )
    log_request(log)

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT endpoint, contact_id, calculated_date, status_code FROM api_requests"
        ).fetchone()
        details = conn.execute(
            "SELECT detail_type, message FROM api_request_details WHERE request_id = ?",
            (log.request_id,),
        ).fetchall()
    finally:
        conn.close()

    assert row == ("/calculate-billing-date", "42", "2024-03-27", 200)
    assert details == [("integration_error", "Webhook: 500")]
