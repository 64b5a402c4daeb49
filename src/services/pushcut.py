"""
PushCut notifications.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from core.config import PUSHCUT_API_KEY, PUSHCUT_API_URL, PUSHCUT_NOTIFICATION_NAME
from core.exceptions import VendorAPIError

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    return bool(PUSHCUT_API_KEY)


async def send_notification(client: httpx.AsyncClient, title: str, text: str) -> Any:
    """
    Trigger the configured PushCut notification.

    Returns:
        PushCut's reply, or None when no API key is configured.
    """
    if not is_configured():
        logger.info("PushCut not configured, skipping notification")
        return None

    url = f"{PUSHCUT_API_URL}/notifications/{quote(PUSHCUT_NOTIFICATION_NAME, safe='')}"
    response = await client.post(
        url, headers={"API-Key": PUSHCUT_API_KEY}, json={"title": title, "text": text}
    )
    if not response.is_success:
        raise VendorAPIError(
            "pushcut", response.status_code, f"PushCut error: {response.status_code} {response.text}"
        )

    logger.info(f"Sent PushCut notification '{title}'")
    try:
        return response.json()
    except ValueError:
        return {"status": response.status_code}
