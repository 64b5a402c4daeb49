"""ClickUp webhook and operational endpoints for the time-to-leave service."""

import logging
import time

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import TypeAdapter, ValidationError

from api.dependencies import get_clickup_client, verify_api_key
from api.models.requests import ClickUpWebhookEvent, TaskUpdatedEvent
from api.models.responses import ErrorCodes, TimeToLeaveResponse
from api.request_log import RequestLog, get_client_ip, log_request
from core.config import CLICKUP_WEBHOOK_SECRET
from core.exceptions import IntegrationError, WebhookSignatureError
from core.http_client import get_http_client
from core.webhook_security import verify_clickup_signature
from models.tasks import TimeToLeaveResult
from services.clickup import ClickUpClient
from services.time_to_leave import process_task

logger = logging.getLogger(__name__)

router = APIRouter()

_webhook_event_adapter = TypeAdapter(ClickUpWebhookEvent)


def to_response(result: TimeToLeaveResult) -> TimeToLeaveResponse:
    return TimeToLeaveResponse(
        status="processed" if result.processed else "skipped",
        task_id=result.task_id,
        reason=result.reason,
        travel_minutes=result.travel_minutes,
        matched_keyword=result.matched_keyword,
        start_time=result.start_time.isoformat() if result.start_time else None,
        leave_time=result.leave_time.isoformat() if result.leave_time else None,
        strategy=result.strategy,
        integrations=result.integrations or None,
    )


def _upstream_error(task_id: str, error: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={
            "error": f"Could not load task {task_id} from ClickUp",
            "code": ErrorCodes.UPSTREAM_ERROR,
            "details": [str(error)],
        },
    )


@router.post(
    "/clickup-webhook",
    response_model=TimeToLeaveResponse,
    response_model_exclude_none=True,
)
async def clickup_webhook(
    request: Request,
    clickup: ClickUpClient = Depends(get_clickup_client),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Handle taskUpdated / taskCreated deliveries.

    Only start-date changes on tasks tagged as appointments do any work.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/clickup-webhook", method="POST", client_ip=get_client_ip(request)
    )

    try:
        payload = await request.body()

        if CLICKUP_WEBHOOK_SECRET:
            try:
                verify_clickup_signature(
                    CLICKUP_WEBHOOK_SECRET, payload, request.headers.get("X-Signature")
                )
            except WebhookSignatureError as e:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail={"error": str(e), "code": ErrorCodes.UNAUTHORIZED, "details": []},
                )

        try:
            event = _webhook_event_adapter.validate_json(payload)
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error": "Unsupported webhook payload",
                    "code": ErrorCodes.VALIDATION_ERROR,
                    "details": [
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    ],
                },
            )

        request_log.task_id = event.task_id
        start_override = None

        if isinstance(event, TaskUpdatedEvent):
            change = event.start_date_change()
            if change is None or change.after in (None, ""):
                logger.info(f"Ignoring {event.event} for task {event.task_id}: no start date change")
                request_log.status_code = 200
                return TimeToLeaveResponse(
                    status="ignored", task_id=event.task_id, reason="No start date change"
                )
            start_override = change.after

        try:
            result = await process_task(clickup, http_client, event.task_id, start_override)
        except (IntegrationError, httpx.HTTPError) as e:
            raise _upstream_error(event.task_id, e)

        request_log.status_code = 200
        return to_response(result)

    except HTTPException as e:
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
        raise

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        try:
            log_request(request_log)
        except Exception as log_error:
            logger.warning(f"Request log write failed: {log_error}")


@router.post(
    "/manual-trigger/{task_id}",
    response_model=TimeToLeaveResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def manual_trigger(
    task_id: str,
    clickup: ClickUpClient = Depends(get_clickup_client),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """Run the automation for a task using its current start date."""
    try:
        result = await process_task(clickup, http_client, task_id)
    except (IntegrationError, httpx.HTTPError) as e:
        raise _upstream_error(task_id, e)
    return to_response(result)


@router.get("/task-fields/{task_id}", dependencies=[Depends(verify_api_key)])
async def task_fields(task_id: str, clickup: ClickUpClient = Depends(get_clickup_client)):
    """Show a task's tags, dates and custom field ids (for configuring the field strategy)."""
    try:
        return await clickup.task_fields(task_id)
    except (IntegrationError, httpx.HTTPError) as e:
        raise _upstream_error(task_id, e)
