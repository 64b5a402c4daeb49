"""
Time-to-leave automation for ClickUp appointment tasks.

When an appointment's start date is set, estimate travel time from the task
text and push a "leave by" time back to ClickUp (custom field or subtask)
and to PushCut.
"""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

from core.config import (
    CLICKUP_LEAVE_STRATEGY,
    CLICKUP_LEAVE_TIME_FIELD_ID,
    DEFAULT_TRAVEL_MINUTES,
    DISPLAY_TIMEZONE,
)
from core.exceptions import IntegrationError
from models.tasks import TaskRecord, TimeToLeaveResult
from services import pushcut
from services.clickup import ClickUpClient
from services.travel import (
    compute_leave_time,
    estimate_travel_minutes,
    has_appointment_tag,
    parse_clickup_timestamp,
    to_clickup_timestamp,
)

logger = logging.getLogger(__name__)

STRATEGY_FIELD = "field"
STRATEGY_SUBTASK = "subtask"


def format_local(value: datetime) -> str:
    return value.astimezone(ZoneInfo(DISPLAY_TIMEZONE)).strftime("%a %b %d, %I:%M %p")


async def _write_back(
    clickup: ClickUpClient,
    task: TaskRecord,
    leave_time: datetime,
    minutes: int,
    strategy: str,
    field_id: str,
) -> dict:
    status = {"attempted": True, "success": False, "strategy": strategy}
    leave_ms = to_clickup_timestamp(leave_time)

    try:
        if strategy == STRATEGY_FIELD:
            if not field_id:
                status.update(attempted=False, reason="CLICKUP_LEAVE_TIME_FIELD_ID not configured")
                return status
            await clickup.set_custom_field(task["id"], field_id, leave_ms)
            status["field_id"] = field_id
        else:
            subtask = await clickup.create_subtask(
                task,
                name=f"Leave for {task.get('name') or 'appointment'} at {format_local(leave_time)}",
                due_date_ms=leave_ms,
                description=f"Estimated travel time: {minutes} minutes",
            )
            status["subtask_id"] = subtask.get("id")
        status["success"] = True
    except (IntegrationError, httpx.HTTPError) as e:
        logger.error(f"ClickUp write-back failed for task {task.get('id')}: {e}")
        status["error"] = str(e)
    return status


async def _notify(
    http_client: httpx.AsyncClient, task: TaskRecord, leave_time: datetime, minutes: int
) -> dict:
    if not pushcut.is_configured():
        return {"attempted": False, "success": False, "reason": "PushCut not configured"}

    status = {"attempted": True, "success": False}
    try:
        await pushcut.send_notification(
            http_client,
            title=f"Leave by {format_local(leave_time)}",
            text=f"{task.get('name') or 'Appointment'}: allow {minutes} minutes of travel",
        )
        status["success"] = True
    except (IntegrationError, httpx.HTTPError) as e:
        logger.error(f"PushCut notification failed for task {task.get('id')}: {e}")
        status["error"] = str(e)
    return status


async def process_task(
    clickup: ClickUpClient,
    http_client: httpx.AsyncClient,
    task_id: str,
    start_override: str | int | None = None,
    strategy: str = CLICKUP_LEAVE_STRATEGY,
    field_id: str = CLICKUP_LEAVE_TIME_FIELD_ID,
    travel_times: dict[str, int] | None = None,
    default_minutes: int = DEFAULT_TRAVEL_MINUTES,
) -> TimeToLeaveResult:
    """
    Run the automation for one task.

    Args:
        start_override: new start date (epoch millis) from a webhook; the
            task's own start_date is used when absent

    Raises:
        IntegrationError: the task itself could not be fetched
    """
    result = TimeToLeaveResult(task_id=task_id)
    task = await clickup.get_task(task_id)

    if not has_appointment_tag(task):
        result.reason = "Task has no appointment tag"
        logger.info(f"Task {task_id} skipped: {result.reason}")
        return result

    start_time = parse_clickup_timestamp(start_override) or parse_clickup_timestamp(
        task.get("start_date")
    )
    if start_time is None:
        result.reason = "Task has no start date"
        logger.info(f"Task {task_id} skipped: {result.reason}")
        return result

    minutes, keyword = estimate_travel_minutes(task, travel_times, default_minutes)
    leave_time = compute_leave_time(start_time, minutes)
    logger.info(
        f"Task {task_id}: {minutes} min travel ({keyword or 'default'}), "
        f"leave at {leave_time.isoformat()}"
    )

    result.processed = True
    result.travel_minutes = minutes
    result.matched_keyword = keyword
    result.start_time = start_time
    result.leave_time = leave_time
    result.strategy = strategy
    result.integrations["clickup"] = await _write_back(
        clickup, task, leave_time, minutes, strategy, field_id
    )
    result.integrations["pushcut"] = await _notify(http_client, task, leave_time, minutes)
    return result
