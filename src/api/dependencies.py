"""FastAPI dependencies for authentication and shared resources."""

import secrets

import httpx
from fastapi import Depends, Header, HTTPException, Request, status

from api.models.responses import ErrorCodes
from core.config import CLICKUP_API_TOKEN, SERVICE_API_KEY
from core.http_client import get_http_client
from services.clickup import ClickUpClient
from services.goals import GoalDispatcher
from services.keap import KeapClient
from services.tokens import TokenStore, build_token_store


async def verify_api_key(
    x_api_key: str | None = Header(None, alias="X-API-Key"),
) -> str | None:
    """
    Verify API key from X-API-Key header for operational endpoints.

    Open when SERVICE_API_KEY is not configured.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not SERVICE_API_KEY:
        return None

    # Use constant-time comparison to prevent timing attacks
    if not x_api_key or not secrets.compare_digest(x_api_key, SERVICE_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    return x_api_key


def get_token_store(request: Request) -> TokenStore:
    """The app's single token store, created on first use."""
    store = getattr(request.app.state, "token_store", None)
    if store is None:
        store = build_token_store(get_http_client())
        request.app.state.token_store = store
    return store


def get_keap_client(store: TokenStore = Depends(get_token_store)) -> KeapClient:
    return KeapClient(store)


def get_goal_dispatcher(keap: KeapClient = Depends(get_keap_client)) -> GoalDispatcher:
    return GoalDispatcher(keap)


def get_clickup_client(
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> ClickUpClient:
    """ClickUp client; 503 when no API token is configured."""
    clickup = ClickUpClient(http_client, api_token=CLICKUP_API_TOKEN)
    if not clickup.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "ClickUp is not configured",
                "code": ErrorCodes.NOT_CONFIGURED,
                "details": ["CLICKUP_API_TOKEN environment variable is required"],
            },
        )
    return clickup
