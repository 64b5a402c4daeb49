"""
Goal dispatch: turn a success/error outcome into a Keap campaign goal.

Resolution policy:
    1. A call name, if given, is resolved by searching campaigns. Any
       discovery failure (not found, timeout, vendor error) falls through.
    2. A numeric goal id from the request, else the environment default,
       is triggered directly.
    3. With neither, the dispatch is skipped without calling Keap.

Every outcome is returned as a GoalResult; nothing is raised.
"""

import asyncio
import logging

import httpx

from core.config import (
    GOAL_DISCOVERY_TIMEOUT_SECONDS,
    GOAL_INTEGRATION,
    KEAP_ERROR_GOAL_ID,
    KEAP_SUCCESS_GOAL_ID,
)
from core.exceptions import GoalDiscoveryTimeout, GoalNotFoundError, IntegrationError
from models.goals import GoalConfig, GoalDiscovery, GoalResult
from services.keap import KeapClient

logger = logging.getLogger(__name__)


class GoalDispatcher:
    """Resolves and fires success/error goals for a contact."""

    def __init__(
        self,
        keap: KeapClient,
        default_success_goal_id: str | None = KEAP_SUCCESS_GOAL_ID,
        default_error_goal_id: str | None = KEAP_ERROR_GOAL_ID,
        discovery_timeout: float = GOAL_DISCOVERY_TIMEOUT_SECONDS,
    ):
        self.keap = keap
        self.default_success_goal_id = default_success_goal_id
        self.default_error_goal_id = default_error_goal_id
        self.discovery_timeout = discovery_timeout

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    async def discover_goal(
        self, call_name: str, integration: str = GOAL_INTEGRATION
    ) -> GoalDiscovery:
        """
        Find the goal whose call_name and integration both match.

        Raises:
            GoalNotFoundError: no campaign has a matching goal
            GoalDiscoveryTimeout: the campaign search took too long
            IntegrationError: Keap rejected the request
        """
        logger.info(f"Discovering goal for call_name '{call_name}' ({integration})")
        try:
            return await asyncio.wait_for(
                self._search_campaigns(call_name, integration), self.discovery_timeout
            )
        except asyncio.TimeoutError as e:
            raise GoalDiscoveryTimeout(
                f"Goal discovery for '{call_name}' timed out after {self.discovery_timeout:g}s. "
                "Pass a numeric goal id (keapSuccessGoalId / keapErrorGoalId) to skip discovery."
            ) from e

    async def _search_campaigns(self, call_name: str, integration: str) -> GoalDiscovery:
        campaigns = await self.keap.list_campaigns()

        for campaign in campaigns:
            for goal in campaign.get("goals") or []:
                if not isinstance(goal, dict) or goal.get("id") is None:
                    continue
                if goal.get("call_name") == call_name and goal.get("integration") == integration:
                    logger.info(
                        f"Found goal {goal.get('id')} for '{call_name}' "
                        f"in campaign '{campaign.get('name')}'"
                    )
                    return GoalDiscovery(
                        goal_id=goal.get("id"),
                        campaign_id=campaign.get("id"),
                        campaign_name=campaign.get("name"),
                        goal_name=goal.get("name") or call_name,
                    )

        raise GoalNotFoundError(
            f"No goal with call_name '{call_name}' and integration '{integration}' "
            "exists in any campaign"
        )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def dispatch(
        self,
        contact_id: str | int,
        is_success: bool,
        error_detail: str | None = None,
        config: GoalConfig | None = None,
    ) -> GoalResult:
        """Fire the success or error goal for a contact. Never raises."""
        config = config or GoalConfig()
        goal_type = "success" if is_success else "error"
        integration = config.integration or GOAL_INTEGRATION
        call_name = config.success_call_name if is_success else config.error_call_name

        request_goal_id = config.success_goal_id if is_success else config.error_goal_id
        default_goal_id = self.default_success_goal_id if is_success else self.default_error_goal_id
        goal_id = request_goal_id or default_goal_id

        result = GoalResult(goal_type=goal_type, error_detail=error_detail)

        if not call_name and not goal_id:
            result.skipped = True
            result.reason = (
                f"No {goal_type} goal configured (neither call name nor goal ID provided)"
            )
            logger.info(result.reason)
            return result

        result.attempted = True

        if call_name:
            result.call_name = call_name
            result.integration = integration
            try:
                discovery = await self.discover_goal(call_name, integration)
            except (IntegrationError, httpx.HTTPError) as e:
                logger.warning(f"Goal discovery failed for '{call_name}': {e}")
                result.discovery_error = str(e)
                if not goal_id:
                    result.method = "call_name_discovery"
                    result.source = "request"
                    result.error = str(e)
                    return result
            else:
                result.method = "call_name_discovery"
                result.source = "request"
                result.goal_discovery = discovery
                result.goal_id = discovery.goal_id
                return await self._trigger(result, contact_id, discovery.goal_id, integration)

        result.method = "direct_goal_id"
        result.source = "request" if request_goal_id else "environment"
        result.goal_id = goal_id
        return await self._trigger(result, contact_id, goal_id, integration)

    async def _trigger(
        self, result: GoalResult, contact_id: str | int, goal_id: str | int, integration: str
    ) -> GoalResult:
        try:
            result.response = await self.keap.trigger_goal(
                contact_id, goal_id, result.goal_type, integration
            )
            result.success = True
        except (IntegrationError, httpx.HTTPError) as e:
            logger.error(f"Error triggering Keap {result.goal_type} goal: {e}")
            result.error = str(e)
        return result
