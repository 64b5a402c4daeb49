"""
Airtable record of each billing calculation.
"""

import json
import logging
import time
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from core.config import (
    AIRTABLE_API_KEY,
    AIRTABLE_API_URL,
    AIRTABLE_BASE_ID,
    AIRTABLE_SCRIPT_NAME,
    AIRTABLE_TABLE_NAME,
)
from core.exceptions import VendorAPIError
from models.billing import BillingDateResult

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    return bool(AIRTABLE_API_KEY and AIRTABLE_BASE_ID)


def build_record_fields(contact_id: str, result: BillingDateResult) -> dict:
    """Field values for the results table."""
    calculated = result.calculated_date.isoformat()
    input_data = {"date": result.original_date.isoformat(), "delay": result.delay_text}
    output_data = {
        "calculatedDate": calculated,
        "dayOfMonth": result.day_of_month,
        "delay": {
            "days": result.delay.days,
            "months": result.delay.months,
            "original": result.delay_text,
        },
    }
    return {
        "Execution ID": f"billing_{contact_id}_{int(time.time() * 1000)}",
        "Script Name": AIRTABLE_SCRIPT_NAME,
        "Contact ID": contact_id,
        "Status": "Success",
        "Input Data": json.dumps(input_data),
        "Output Data": json.dumps(output_data),
        "Timestamp": datetime.now(timezone.utc).isoformat(),
        "Calculated Billing Date": calculated,
    }


async def store_billing_result(
    client: httpx.AsyncClient, contact_id: str, result: BillingDateResult
) -> str | None:
    """
    Create one record for the calculation.

    Returns:
        The new record id, or None when Airtable is not configured.

    Raises:
        VendorAPIError: Airtable rejected the request
    """
    if not is_configured():
        logger.info("Airtable credentials not configured, skipping storage")
        return None

    url = f"{AIRTABLE_API_URL}/{AIRTABLE_BASE_ID}/{quote(AIRTABLE_TABLE_NAME, safe='')}"
    response = await client.post(
        url,
        headers={"Authorization": f"Bearer {AIRTABLE_API_KEY}"},
        json={"records": [{"fields": build_record_fields(contact_id, result)}]},
    )

    if not response.is_success:
        raise VendorAPIError(
            "airtable",
            response.status_code,
            f"Airtable API error: {response.status_code} {response.reason_phrase}",
        )

    try:
        record_id = response.json()["records"][0]["id"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise VendorAPIError(
            "airtable", response.status_code, "Airtable response did not contain a record"
        ) from e

    logger.info(f"Stored billing result for contact {contact_id} in Airtable ({record_id})")
    return record_id
