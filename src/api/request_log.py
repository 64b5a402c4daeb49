"""SQLite request logging for API."""

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import Request

from core.config import REQUEST_LOG_DB_PATH, REQUEST_LOG_ENABLED

logger = logging.getLogger(__name__)


@dataclass
class RequestLog:
    """Captured request/response data for logging."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    contact_id: str | None = None
    task_id: str | None = None
    calculated_date: str | None = None
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    details: list[tuple[str, str]] = field(default_factory=list)  # (type, message)


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def log_request(log: RequestLog) -> None:
    """Write request log to SQLite database when request logging is enabled."""
    logger.info(
        f"{log.method} {log.endpoint} -> {log.status_code} "
        f"({log.processing_time_ms} ms){' ' + log.error_code if log.error_code else ''}"
    )
    if not REQUEST_LOG_ENABLED:
        return

    conn = sqlite3.connect(REQUEST_LOG_DB_PATH)
    try:
        cursor = conn.cursor()

        # Insert main request record
        cursor.execute(
            """
            INSERT INTO api_requests (
                request_id, timestamp, endpoint, method, client_ip,
                contact_id, task_id, calculated_date,
                status_code, error_code, error_message, processing_time_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                log.request_id,
                log.timestamp,
                log.endpoint,
                log.method,
                log.client_ip,
                log.contact_id,
                log.task_id,
                log.calculated_date,
                log.status_code,
                log.error_code,
                log.error_message,
                log.processing_time_ms,
            ),
        )

        # Insert detail records
        for detail_type, message in log.details:
            cursor.execute(
                """
                INSERT INTO api_request_details (request_id, detail_type, message)
                VALUES (?, ?, ?)
            """,
                (log.request_id, detail_type, message),
            )

        conn.commit()
    finally:
        conn.close()
