"""
ClickUp API client for task reads and write-back.
"""

import logging
from typing import Any

import httpx

from core.config import CLICKUP_API_TOKEN, CLICKUP_API_URL
from core.exceptions import VendorAPIError
from models.tasks import TaskRecord

logger = logging.getLogger(__name__)


class ClickUpClient:
    """Minimal ClickUp v2 client authenticated with a personal API token."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_token: str = CLICKUP_API_TOKEN,
        base_url: str = CLICKUP_API_URL,
    ):
        self.http_client = http_client
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.api_token)

    async def _request(self, method: str, path: str, action: str, **kwargs: Any) -> Any:
        response = await self.http_client.request(
            method,
            f"{self.base_url}{path}",
            headers={"Authorization": self.api_token, "Content-Type": "application/json"},
            **kwargs,
        )
        if not response.is_success:
            raise VendorAPIError(
                "clickup",
                response.status_code,
                f"ClickUp API error while {action} ({response.status_code}): {response.text}",
            )
        try:
            return response.json()
        except ValueError as e:
            raise VendorAPIError(
                "clickup", response.status_code, f"ClickUp returned a non-JSON body while {action}"
            ) from e

    async def get_task(self, task_id: str) -> TaskRecord:
        return await self._request("GET", f"/task/{task_id}", f"fetching task {task_id}")

    async def set_custom_field(self, task_id: str, field_id: str, value: Any) -> Any:
        """Set a custom field. Date fields take epoch millis."""
        logger.info(f"Setting field {field_id} on task {task_id}")
        return await self._request(
            "POST",
            f"/task/{task_id}/field/{field_id}",
            f"updating field {field_id}",
            json={"value": value, "value_options": {"time": True}},
        )

    async def create_subtask(
        self, parent: TaskRecord, name: str, due_date_ms: int, description: str = ""
    ) -> Any:
        list_id = (parent.get("list") or {}).get("id")
        if not list_id:
            raise VendorAPIError("clickup", None, f"Task {parent.get('id')} has no list id")

        logger.info(f"Creating subtask '{name}' under task {parent.get('id')}")
        return await self._request(
            "POST",
            f"/list/{list_id}/task",
            "creating subtask",
            json={
                "name": name,
                "description": description,
                "parent": parent.get("id"),
                "due_date": due_date_ms,
                "due_date_time": True,
            },
        )

    async def task_fields(self, task_id: str) -> dict[str, Any]:
        """Summary of a task's schedule, tags and custom fields."""
        task = await self.get_task(task_id)
        return {
            "task_id": task.get("id", task_id),
            "name": task.get("name"),
            "start_date": task.get("start_date"),
            "due_date": task.get("due_date"),
            "tags": [tag.get("name") for tag in task.get("tags") or []],
            "custom_fields": [
                {
                    "id": f.get("id"),
                    "name": f.get("name"),
                    "type": f.get("type"),
                    "value": f.get("value"),
                }
                for f in task.get("custom_fields") or []
            ],
        }
