"""Keap OAuth authorization-code flow and token maintenance endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from api.dependencies import get_keap_client, get_token_store, verify_api_key
from api.models.responses import ErrorCodes
from core.config import KEAP_REDIRECT_URI
from core.exceptions import AuthenticationError
from services.keap import KeapClient
from services.tokens import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth")


def _redirect_uri(request: Request) -> str:
    return KEAP_REDIRECT_URI or str(request.url_for("oauth_callback"))


def _expires_at_iso(store: TokenStore) -> str | None:
    return store.status()["token_expires_at"]


@router.get("/authorize")
async def oauth_authorize(request: Request, store: TokenStore = Depends(get_token_store)):
    """Redirect to Keap's consent page."""
    if not store.client_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "OAuth not configured",
                "code": ErrorCodes.NOT_CONFIGURED,
                "details": ["KEAP_CLIENT_ID environment variable is required"],
            },
        )
    return RedirectResponse(store.authorization_url(_redirect_uri(request)), status_code=302)


@router.get("/callback", name="oauth_callback")
async def oauth_callback(
    request: Request,
    code: str | None = None,
    error: str | None = None,
    store: TokenStore = Depends(get_token_store),
):
    """
    Exchange the authorization code for tokens.

    Tokens live in memory only; the response lists the environment variables
    to set so a redeploy keeps them.
    """
    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "OAuth authorization failed",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [error],
            },
        )
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Missing authorization code",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [],
            },
        )

    try:
        token_data = await store.exchange_code(code, _redirect_uri(request))
    except AuthenticationError as e:
        logger.error(f"OAuth callback error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Token exchange failed",
                "code": ErrorCodes.UPSTREAM_ERROR,
                "details": [str(e)],
            },
        )

    return {
        "success": True,
        "message": "OAuth authorization successful",
        "token_info": {
            "expires_in": token_data.get("expires_in"),
            "scope": token_data.get("scope"),
            "expires_at": _expires_at_iso(store),
        },
        "next_steps": [
            f"Set KEAP_ACCESS_TOKEN environment variable to: {store.state.access_token}",
            f"Set KEAP_REFRESH_TOKEN environment variable to: {store.state.refresh_token}",
            "The service refreshes the access token automatically from here on",
        ],
    }


@router.get("/status")
async def oauth_status(
    store: TokenStore = Depends(get_token_store),
    keap: KeapClient = Depends(get_keap_client),
):
    """Current token state plus a live check against the account profile."""
    result = store.status()
    result["token_valid"] = await keap.check_token() if store.state.access_token else False
    result["checked_at"] = datetime.now(timezone.utc).isoformat()
    return result


@router.post("/refresh", dependencies=[Depends(verify_api_key)])
async def oauth_refresh(store: TokenStore = Depends(get_token_store)):
    """Force a token refresh."""
    try:
        token_data = await store.refresh()
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Token refresh failed",
                "code": ErrorCodes.UPSTREAM_ERROR,
                "details": [str(e)],
            },
        )

    return {
        "success": True,
        "message": "Token refreshed successfully",
        "expires_in": token_data.get("expires_in"),
        "expires_at": _expires_at_iso(store),
    }
