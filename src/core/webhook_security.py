"""
ClickUp webhook signature verification.

ClickUp signs each delivery with HMAC-SHA256 of the raw body using the
webhook's secret and sends the hex digest in the X-Signature header.
"""

import hashlib
import hmac
import logging

from core.exceptions import WebhookSignatureError

logger = logging.getLogger(__name__)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_clickup_signature(secret: str, payload: bytes, signature: str | None) -> None:
    """
    Raises:
        WebhookSignatureError: signature missing or not matching
    """
    if not signature:
        logger.warning("ClickUp webhook received without X-Signature header")
        raise WebhookSignatureError("Missing X-Signature header")

    expected = compute_hmac_sha256(secret, payload)
    if not hmac.compare_digest(expected, signature.strip().lower()):
        logger.warning("ClickUp webhook signature mismatch")
        raise WebhookSignatureError("Invalid webhook signature")
