"""
Generic outbound webhook for billing results.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from core.config import WEBHOOK_SOURCE, WEBHOOK_URL
from core.exceptions import VendorAPIError
from models.billing import BillingDateResult

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    return bool(WEBHOOK_URL)


def build_payload(contact_id: str, result: BillingDateResult) -> dict[str, Any]:
    return {
        "contactId": contact_id,
        "calculatedBillingDate": result.calculated_date.isoformat(),
        "dayOfMonth": result.day_of_month,
        "originalDate": result.original_date.isoformat(),
        "delay": {
            "days": result.delay.days,
            "months": result.delay.months,
            "original": result.delay_text,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": WEBHOOK_SOURCE,
    }


async def send_billing_result(
    client: httpx.AsyncClient, contact_id: str, result: BillingDateResult
) -> Any:
    """
    POST the result to the configured webhook.

    Returns:
        The webhook's JSON reply, or None when no URL is configured.

    Raises:
        VendorAPIError: non-2xx status or a non-JSON reply
    """
    if not is_configured():
        logger.info("No webhook URL configured, skipping webhook call")
        return None

    response = await client.post(WEBHOOK_URL, json=build_payload(contact_id, result))

    if not response.is_success:
        raise VendorAPIError(
            "webhook",
            response.status_code,
            f"Webhook error: {response.status_code} {response.reason_phrase}",
        )

    try:
        return response.json()
    except ValueError as e:
        raise VendorAPIError("webhook", response.status_code, "Webhook returned a non-JSON body") from e
