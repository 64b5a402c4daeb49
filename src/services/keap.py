"""
Keap (Infusionsoft) REST calls used by goal dispatch.
"""

import logging
from typing import Any

import httpx

from core.config import GOAL_INTEGRATION, KEAP_API_BASE_URL
from core.exceptions import IntegrationError, VendorAPIError
from services.tokens import TokenStore

logger = logging.getLogger(__name__)


def _json_or_raise(response: httpx.Response, action: str) -> Any:
    if not response.is_success:
        raise VendorAPIError(
            "keap",
            response.status_code,
            f"Keap API error while {action} ({response.status_code}): {response.text}",
        )
    try:
        return response.json()
    except ValueError as e:
        raise VendorAPIError(
            "keap", response.status_code, f"Keap returned a non-JSON body while {action}"
        ) from e


class KeapClient:
    """Campaign and goal endpoints, authenticated through the token store."""

    def __init__(self, token_store: TokenStore, base_url: str = KEAP_API_BASE_URL):
        self.token_store = token_store
        self.base_url = base_url.rstrip("/")

    async def list_campaigns(self) -> list[dict[str, Any]]:
        response = await self.token_store.request("GET", f"{self.base_url}/campaigns")
        data = _json_or_raise(response, "listing campaigns")
        campaigns = data.get("campaigns") if isinstance(data, dict) else None
        if not isinstance(campaigns, list):
            raise VendorAPIError(
                "keap", response.status_code, "Keap campaigns response had an unexpected shape"
            )
        return [c for c in campaigns if isinstance(c, dict)]

    async def trigger_goal(
        self,
        contact_id: str | int,
        goal_id: str | int,
        goal_type: str = "success",
        integration: str = GOAL_INTEGRATION,
    ) -> Any:
        """Fire a campaign goal for a contact."""
        try:
            contact, goal = int(contact_id), int(goal_id)
        except (TypeError, ValueError) as e:
            raise IntegrationError(
                f"Contact id and goal id must be numeric (got {contact_id!r}, {goal_id!r})"
            ) from e

        payload = {
            "contact_id": contact,
            "goal_id": goal,
            "call_name": f"billing_calculator_{goal_type}",
            "integration": integration,
        }
        logger.info(f"Triggering Keap {goal_type} goal {goal_id} for contact {contact_id}")

        response = await self.token_store.request(
            "POST", f"{self.base_url}/campaigns/goals", json=payload
        )
        result = _json_or_raise(response, f"triggering {goal_type} goal {goal_id}")

        logger.info(f"Triggered Keap {goal_type} goal for contact {contact_id}")
        return result

    async def check_token(self) -> bool:
        """True if the current credential can read the account profile."""
        try:
            response = await self.token_store.request("GET", f"{self.base_url}/account/profile")
        except Exception as e:
            logger.warning(f"Keap token check failed: {e}")
            return False
        return response.is_success
