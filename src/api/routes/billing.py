"""Billing date calculation endpoint."""

import logging
import time
from datetime import date, datetime

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import get_goal_dispatcher, get_token_store
from api.models.requests import BILLING_EXAMPLE, BillingDateRequest
from api.models.responses import (
    BillingDateResponse,
    BillingIntegrations,
    DelayInfo,
    ErrorCodes,
    IntegrationStatus,
    KeapGoalStatus,
)
from api.request_log import RequestLog, get_client_ip, log_request
from core.config import (
    AIRTABLE_API_KEY,
    AIRTABLE_BASE_ID,
    API_VERSION,
    KEAP_API_TOKEN,
    KEAP_CLIENT_ID,
    KEAP_CLIENT_SECRET,
    KEAP_ERROR_GOAL_ID,
    KEAP_SUCCESS_GOAL_ID,
    WEBHOOK_URL,
)
from core.exceptions import IntegrationError
from core.http_client import get_http_client
from models.billing import BillingDateResult
from models.goals import GoalConfig
from services import airtable, webhook
from services.billing_dates import calculate_billing_date
from services.goals import GoalDispatcher
from services.tokens import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter()


def billing_features() -> dict[str, bool]:
    """Which integrations have credentials configured."""
    return {
        "airtable": bool(AIRTABLE_API_KEY and AIRTABLE_BASE_ID),
        "webhook": bool(WEBHOOK_URL),
        "keap_oauth": bool(KEAP_CLIENT_ID and KEAP_CLIENT_SECRET),
        "keap_legacy_key": bool(KEAP_API_TOKEN),
        "default_success_goal": bool(KEAP_SUCCESS_GOAL_ID),
        "default_error_goal": bool(KEAP_ERROR_GOAL_ID),
    }


def _bad_request(error: str, details: list[str] | None = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": error,
            "code": ErrorCodes.INVALID_REQUEST,
            "details": details or [],
            "example": BILLING_EXAMPLE,
        },
    )


def validate_contact_id(contact_id: str | int | None) -> str:
    """Contact ids are Keap's numeric ids, sent as a string or a number."""
    if contact_id is None or str(contact_id).strip() == "":
        raise _bad_request("contactId is required")
    value = str(contact_id).strip()
    if not value.isdigit():
        raise _bad_request("contactId must be numeric", [f"Received: {value}"])
    return value


def parse_billing_date(date_str: str | None) -> date:
    """Parse the start date string to a date object."""
    if not date_str:
        raise _bad_request("date is required")
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise _bad_request("Invalid date format. Use YYYY-MM-DD", [f"Received: {date_str}"])


def goal_config_from(body: BillingDateRequest) -> GoalConfig:
    return GoalConfig(
        success_call_name=body.success_call_name,
        error_call_name=body.error_call_name,
        integration=body.integration,
        success_goal_id=str(body.keap_success_goal_id) if body.keap_success_goal_id else None,
        error_goal_id=str(body.keap_error_goal_id) if body.keap_error_goal_id else None,
    )


# =============================================================================
# INTEGRATIONS
# =============================================================================


async def _store_in_airtable(
    client: httpx.AsyncClient, contact_id: str, result: BillingDateResult
) -> IntegrationStatus:
    if not airtable.is_configured():
        return IntegrationStatus(reason="Airtable credentials not configured")

    outcome = IntegrationStatus(attempted=True)
    try:
        outcome.record_id = await airtable.store_billing_result(client, contact_id, result)
        outcome.success = outcome.record_id is not None
    except (IntegrationError, httpx.HTTPError) as e:
        logger.error(f"Error storing in Airtable: {e}")
        outcome.error = str(e)
    return outcome


async def _send_webhook(
    client: httpx.AsyncClient, contact_id: str, result: BillingDateResult
) -> IntegrationStatus:
    if not webhook.is_configured():
        return IntegrationStatus(reason="No webhook URL configured")

    outcome = IntegrationStatus(attempted=True)
    try:
        outcome.response = await webhook.send_billing_result(client, contact_id, result)
        outcome.success = True
    except (IntegrationError, httpx.HTTPError) as e:
        logger.error(f"Error calling webhook: {e}")
        outcome.error = str(e)
    return outcome


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get("/")
async def service_info(store: TokenStore = Depends(get_token_store)):
    """Service description, configured features and endpoint list."""
    token_status = store.status()
    return {
        "status": "healthy",
        "service": "Billing Date Calculator",
        "version": API_VERSION,
        "features": {
            **billing_features(),
            "keap_oauth_tokens": token_status["has_access_token"]
            and token_status["has_refresh_token"],
        },
        "endpoints": {
            "POST /calculate-billing-date": "Calculate the next billing date and report it",
            "GET /oauth/authorize": "Start OAuth authorization flow",
            "GET /oauth/callback": "OAuth callback endpoint",
            "GET /oauth/status": "Check OAuth token status",
            "POST /oauth/refresh": "Manually refresh OAuth token",
            "POST /goals/discover": "Resolve a goal by call name",
            "POST /goals/test": "Fire a success or error goal for a contact",
            "GET /goals/health": "Goal integration readiness",
        },
        "example": BILLING_EXAMPLE,
    }


@router.post(
    "/calculate-billing-date",
    response_model=BillingDateResponse,
    response_model_exclude_none=True,
)
async def calculate_billing_date_endpoint(
    request: Request,
    body: BillingDateRequest,
    http_client: httpx.AsyncClient = Depends(get_http_client),
    dispatcher: GoalDispatcher = Depends(get_goal_dispatcher),
):
    """
    Calculate the next billing date (15th or 27th) and report it.

    Reporting to Airtable, the webhook and Keap goals is best effort: each
    integration's outcome is returned in ``integrations`` and a failure there
    never changes the status code.
    """
    start_time = time.time()

    request_log = RequestLog(
        endpoint="/calculate-billing-date",
        method="POST",
        client_ip=get_client_ip(request),
        contact_id=str(body.contact_id) if body.contact_id is not None else None,
    )

    try:
        contact_id = validate_contact_id(body.contact_id)
        start_date = parse_billing_date(body.date)

        result = calculate_billing_date(start_date, body.delay)
        request_log.calculated_date = result.calculated_date.isoformat()

        integrations = BillingIntegrations()
        integration_errors = []

        if not body.skip_airtable:
            integrations.airtable = await _store_in_airtable(http_client, contact_id, result)
            if integrations.airtable.error:
                integration_errors.append(f"Airtable: {integrations.airtable.error}")

        if not body.skip_webhook:
            integrations.webhook = await _send_webhook(http_client, contact_id, result)
            if integrations.webhook.error:
                integration_errors.append(f"Webhook: {integrations.webhook.error}")

        if not body.skip_keap_goals:
            goal_result = await dispatcher.dispatch(
                contact_id,
                is_success=not integration_errors,
                error_detail="; ".join(integration_errors) or None,
                config=goal_config_from(body),
            )
            integrations.keap_goal = KeapGoalStatus.model_validate(goal_result.to_dict())
            if goal_result.error:
                integration_errors.append(f"Keap goal: {goal_result.error}")

        for error in integration_errors:
            request_log.details.append(("integration_error", error))
        request_log.status_code = 200
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        return BillingDateResponse(
            success=True,
            contact_id=contact_id,
            original_date=result.original_date.isoformat(),
            delay=DelayInfo(
                days=result.delay.days,
                months=result.delay.months,
                original=result.delay_text,
            ),
            calculated_date=result.calculated_date.isoformat(),
            day_of_month=result.day_of_month,
            message=f"Billing date calculated for contact {contact_id}",
            integrations=integrations,
        )

    except HTTPException as e:
        # Log HTTP errors
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        raise

    except Exception as e:
        # Unexpected errors: fire the error goal if we can, then report
        logger.exception("Billing date calculation failed")
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        if body.contact_id and not body.skip_keap_goals:
            try:
                await dispatcher.dispatch(
                    str(body.contact_id),
                    is_success=False,
                    error_detail=str(e),
                    config=goal_config_from(body),
                )
            except Exception as goal_error:
                logger.error(f"Failed to trigger error goal: {goal_error}")

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Internal server error",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [str(e)],
            },
        )

    finally:
        # Always log the request
        try:
            log_request(request_log)
        except Exception as log_error:
            # Don't fail the request if logging fails
            logger.warning(f"Request log write failed: {log_error}")
