"""Tests for the time-to-leave service routes."""

import json

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

import api.dependencies as dependencies_module
import api.routes.clickup as clickup_routes
import services.pushcut as pushcut_module
from api.dependencies import get_clickup_client
from api.travel_main import app
from conftest import mock_client
from core.http_client import get_http_client
from core.webhook_security import compute_hmac_sha256
from services.clickup import ClickUpClient


class ClickUpStub:
    def __init__(self, task, task_status=200):
        self.task = task
        self.task_status = task_status
        self.writes = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(self.task_status, json=self.task)
        self.writes.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"id": "sub-1"})


@pytest.fixture
def clickup_stub(sample_task):
    return ClickUpStub(sample_task)


@pytest.fixture
def test_client(clickup_stub, monkeypatch):
    monkeypatch.setattr(clickup_routes, "CLICKUP_WEBHOOK_SECRET", "")
    monkeypatch.setattr(dependencies_module, "SERVICE_API_KEY", "")
    monkeypatch.setattr(pushcut_module, "PUSHCUT_API_KEY", "")

    http_client = mock_client(clickup_stub)
    clickup = ClickUpClient(http_client, api_token="pk_test")

    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_clickup_client] = lambda: clickup
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def start_date_update(task_id="abc123", after="1718445600000"):
    return {
        "event": "taskUpdated",
        "task_id": task_id,
        "webhook_id": "wh-1",
        "history_items": [{"field": "start_date", "before": None, "after": after}],
    }


class TestWebhook:
    def test_update_without_start_date_change_is_ignored(self, test_client, clickup_stub):
        payload = {
            "event": "taskUpdated",
            "task_id": "abc123",
            "history_items": [{"field": "name", "before": "a", "after": "b"}],
        }
        response = test_client.post("/clickup-webhook", json=payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "status": "ignored",
            "taskId": "abc123",
            "reason": "No start date change",
        }
        assert clickup_stub.writes == []

    def test_cleared_start_date_is_ignored(self, test_client):
        response = test_client.post("/clickup-webhook", json=start_date_update(after=None))
        assert response.json()["status"] == "ignored"

    def test_unknown_event_is_rejected(self, test_client):
        response = test_client.post(
            "/clickup-webhook", json={"event": "taskDeleted", "task_id": "abc123"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_malformed_body_is_rejected(self, test_client):
        response = test_client.post(
            "/clickup-webhook",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_start_date_change_is_processed(self, test_client, clickup_stub, monkeypatch):
        monkeypatch.setattr(clickup_routes, "process_task", _field_strategy(clickup_routes))

        response = test_client.post("/clickup-webhook", json=start_date_update())

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["status"] == "processed"
        assert body["travelMinutes"] == 20
        assert body["matchedKeyword"] == "dentist"
        assert body["leaveTime"] == "2024-06-15T09:40:00+00:00"
        assert body["integrations"]["clickup"]["success"] is True
        assert clickup_stub.writes[0][0] == "/api/v2/task/abc123/field/fld-leave"

    def test_task_created_without_appointment_tag(self, test_client, sample_task):
        sample_task["tags"] = []
        response = test_client.post(
            "/clickup-webhook", json={"event": "taskCreated", "task_id": "abc123"}
        )

        body = response.json()
        assert body["status"] == "skipped"
        assert body["reason"] == "Task has no appointment tag"

    def test_out_of_range_start_date_uses_task_start(self, test_client):
        response = test_client.post(
            "/clickup-webhook", json=start_date_update(after="99999999999999999999")
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["startTime"] == "2024-06-15T10:00:00+00:00"

    def test_task_fetch_failure_is_502(self, test_client, clickup_stub):
        clickup_stub.task_status = 404
        response = test_client.post("/clickup-webhook", json=start_date_update())

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["code"] == "UPSTREAM_ERROR"


class TestWebhookSignature:
    @pytest.fixture(autouse=True)
    def secret(self, test_client, monkeypatch):
        # Applied after test_client, which clears the secret
        monkeypatch.setattr(clickup_routes, "CLICKUP_WEBHOOK_SECRET", "whsec")

    def test_missing_signature(self, test_client):
        response = test_client.post("/clickup-webhook", json=start_date_update())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Missing X-Signature header"

    def test_wrong_signature(self, test_client):
        response = test_client.post(
            "/clickup-webhook", json=start_date_update(), headers={"X-Signature": "deadbeef"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_valid_signature(self, test_client):
        body = json.dumps({"event": "taskCreated", "task_id": "abc123"}).encode()
        response = test_client.post(
            "/clickup-webhook",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Signature": compute_hmac_sha256("whsec", body),
            },
        )
        assert response.status_code == status.HTTP_200_OK


class TestOperationalRoutes:
    def test_manual_trigger(self, test_client, monkeypatch):
        monkeypatch.setattr(clickup_routes, "process_task", _field_strategy(clickup_routes))

        response = test_client.post("/manual-trigger/abc123")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["startTime"] == "2024-06-15T10:00:00+00:00"

    def test_manual_trigger_requires_api_key(self, test_client, monkeypatch):
        monkeypatch.setattr(dependencies_module, "SERVICE_API_KEY", "secret")
        response = test_client.post("/manual-trigger/abc123")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_task_fields(self, test_client):
        body = test_client.get("/task-fields/abc123").json()

        assert body["tags"] == ["Appointment", "personal"]
        assert body["custom_fields"][0]["id"] == "fld-leave"

    def test_health(self, test_client):
        body = test_client.get("/health").json()

        assert body["service"] == "ClickUp Time to Leave"
        assert set(body["integrations"]) == {"clickup", "webhook_signature", "pushcut"}


def test_unconfigured_clickup_is_503(monkeypatch):
    monkeypatch.setattr(dependencies_module, "CLICKUP_API_TOKEN", "")
    client = TestClient(app)

    response = client.post("/clickup-webhook", json=start_date_update())

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["code"] == "NOT_CONFIGURED"


def _field_strategy(routes):
    """process_task pinned to the custom-field strategy."""
    original = routes.process_task

    async def run(clickup, http_client, task_id, start_override=None):
        return await original(
            clickup, http_client, task_id, start_override, strategy="field", field_id="fld-leave"
        )

    return run
