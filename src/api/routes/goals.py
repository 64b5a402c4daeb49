"""Goal discovery and diagnostics endpoints."""

import httpx
from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_goal_dispatcher, get_token_store, verify_api_key
from api.models.requests import GOAL_DISCOVER_EXAMPLE, GoalDiscoverRequest, GoalTestRequest
from api.models.responses import ErrorCodes, KeapGoalStatus
from core.config import GOAL_INTEGRATION
from core.exceptions import GoalDiscoveryTimeout, IntegrationError
from models.goals import GoalConfig
from services.goals import GoalDispatcher
from services.tokens import TokenStore

router = APIRouter(prefix="/goals")


@router.post("/discover")
async def discover_goal(
    body: GoalDiscoverRequest,
    dispatcher: GoalDispatcher = Depends(get_goal_dispatcher),
):
    """Resolve a call name to a goal id without firing it."""
    if not body.call_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "callName is required",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [],
                "example": GOAL_DISCOVER_EXAMPLE,
            },
        )

    integration = body.integration or GOAL_INTEGRATION
    try:
        discovery = await dispatcher.discover_goal(body.call_name, integration)
    except (IntegrationError, httpx.HTTPError) as e:
        suggestion = (
            "Use a numeric goal id instead of a call name"
            if isinstance(e, GoalDiscoveryTimeout)
            else "Make sure the goal exists in an active campaign with the correct "
            "call_name and integration values"
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Goal discovery failed",
                "code": ErrorCodes.GOAL_NOT_FOUND,
                "details": [str(e)],
                "callName": body.call_name,
                "integration": integration,
                "suggestion": suggestion,
            },
        )

    return {
        "success": True,
        "message": "Goal discovered successfully",
        "callName": body.call_name,
        "integration": integration,
        "discovery": {
            "goalId": discovery.goal_id,
            "campaignId": discovery.campaign_id,
            "campaignName": discovery.campaign_name,
            "goalName": discovery.goal_name,
            "discoveryMethod": discovery.discovery_method,
        },
    }


@router.post("/test", dependencies=[Depends(verify_api_key)])
async def test_goal(
    body: GoalTestRequest,
    dispatcher: GoalDispatcher = Depends(get_goal_dispatcher),
    store: TokenStore = Depends(get_token_store),
):
    """Fire a success or error goal for a contact, as the billing endpoint would."""
    if not body.contact_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "contactId is required for testing",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [],
                "example": {"contactId": "12345", "testSuccess": True, **GOAL_DISCOVER_EXAMPLE},
            },
        )

    config = GoalConfig(
        success_call_name=body.success_call_name,
        error_call_name=body.error_call_name,
        integration=body.integration,
        success_goal_id=str(body.keap_success_goal_id) if body.keap_success_goal_id else None,
        error_goal_id=str(body.keap_error_goal_id) if body.keap_error_goal_id else None,
    )
    test_type = "success" if body.test_success else "error"
    goal_result = await dispatcher.dispatch(
        body.contact_id,
        is_success=body.test_success,
        error_detail=None if body.test_success else "Test error scenario",
        config=config,
    )

    return {
        "success": True,
        "testType": test_type,
        "contactId": str(body.contact_id),
        "goalResult": KeapGoalStatus.model_validate(goal_result.to_dict()).model_dump(
            by_alias=True, exclude_none=True
        ),
        "authenticationUsed": store.auth_method,
        "message": f"Test {test_type} goal triggered for contact {body.contact_id}",
    }


@router.get("/health")
async def goals_health(
    store: TokenStore = Depends(get_token_store),
    dispatcher: GoalDispatcher = Depends(get_goal_dispatcher),
):
    """Whether goals can be fired and how."""
    token_status = store.status()
    has_oauth_tokens = token_status["has_access_token"] and token_status["has_refresh_token"]
    ready = token_status["has_access_token"] or token_status["fallback_to_legacy"]
    return {
        "status": "configured" if ready else "not configured",
        "ready": ready,
        "authentication_method": store.auth_method,
        "automatic_refresh": has_oauth_tokens,
        "default_success_goal_id": dispatcher.default_success_goal_id or "not configured",
        "default_error_goal_id": dispatcher.default_error_goal_id or "not configured",
        "discovery_timeout_seconds": dispatcher.discovery_timeout,
        "oauth": token_status,
    }
