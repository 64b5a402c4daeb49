"""
OAuth access token lifecycle for the Keap API.

A single TokenStore owns the access/refresh token pair for the process. It
refreshes ahead of expiry, falls back to the legacy API key when refresh is
impossible, and retries a call once after a 401. Refreshes are single-flight:
concurrent callers await the same exchange instead of racing each other.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import urlencode

import httpx

from core.config import (
    KEAP_ACCESS_TOKEN,
    KEAP_API_TOKEN,
    KEAP_AUTHORIZE_URL,
    KEAP_CLIENT_ID,
    KEAP_CLIENT_SECRET,
    KEAP_REFRESH_TOKEN,
    KEAP_TOKEN_EXPIRES_AT,
    KEAP_TOKEN_URL,
    TOKEN_REFRESH_MARGIN_MS,
)
from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass
class TokenState:
    """Current OAuth credential. Fields are replaced together on refresh."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at_ms: int | None = None


def _iso_from_ms(value: int | None) -> str | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()


class TokenStore:
    """Holds and refreshes the OAuth credential shared by all requests."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        client_id: str = "",
        client_secret: str = "",
        legacy_api_key: str | None = None,
        state: TokenState | None = None,
        token_url: str = KEAP_TOKEN_URL,
        authorize_url: str = KEAP_AUTHORIZE_URL,
        clock: Callable[[], float] = time.time,
    ):
        self.http_client = http_client
        self.client_id = client_id
        self.client_secret = client_secret
        self.legacy_api_key = legacy_api_key
        self.state = state or TokenState()
        self.token_url = token_url
        self.authorize_url = authorize_url
        self._clock = clock
        self._inflight: asyncio.Future | None = None

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    @property
    def oauth_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # -------------------------------------------------------------------------
    # Token access
    # -------------------------------------------------------------------------

    async def get_valid_access_token(self) -> str | None:
        """
        Return a usable bearer token, or None if nothing is configured.

        Falls back to the legacy API key when no OAuth token is held or when a
        due refresh fails. Never raises.
        """
        if not self.state.access_token:
            return self.legacy_api_key

        expires_at = self.state.expires_at_ms
        if expires_at is not None and self.now_ms() + TOKEN_REFRESH_MARGIN_MS >= expires_at:
            try:
                await self.refresh()
            except AuthenticationError as e:
                logger.warning(f"Token refresh failed, falling back to legacy API key: {e}")
                return self.legacy_api_key

        return self.state.access_token

    async def refresh(self) -> dict[str, Any]:
        """
        Exchange the refresh token for a new access token.

        Concurrent calls share one in-flight exchange and all see its result.

        Raises:
            AuthenticationError: missing credentials or a rejected exchange
        """
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh_once())
            self._inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future) -> None:
        if self._inflight is future:
            self._inflight = None

    async def _refresh_once(self) -> dict[str, Any]:
        if not (self.state.refresh_token and self.client_id and self.client_secret):
            raise AuthenticationError("Missing OAuth credentials for token refresh")

        logger.info("Refreshing OAuth access token...")
        token_data = await self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": self.state.refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            }
        )
        self._apply(token_data, keep_refresh_token=True)
        logger.info("OAuth token refreshed successfully")
        return token_data

    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Authorization-code grant; replaces the whole token state."""
        if not self.oauth_configured:
            raise AuthenticationError("KEAP_CLIENT_ID and KEAP_CLIENT_SECRET are required")

        token_data = await self._post_token(
            {
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": redirect_uri,
                "code": code,
            }
        )
        self._apply(token_data, keep_refresh_token=False)
        logger.info("OAuth tokens obtained successfully")
        return token_data

    async def _post_token(self, form: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self.http_client.post(self.token_url, data=form)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            raise AuthenticationError(
                f"Token exchange failed: {response.status_code} {response.reason_phrase}"
            )

        try:
            token_data = response.json()
        except ValueError as e:
            raise AuthenticationError("Token endpoint returned a non-JSON body") from e

        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            raise AuthenticationError("No access token in token response")

        expires_in = token_data.get("expires_in")
        if expires_in is not None:
            try:
                token_data["expires_in"] = int(expires_in)
            except (TypeError, ValueError) as e:
                raise AuthenticationError(
                    f"Invalid expires_in in token response: {expires_in!r}"
                ) from e
        return token_data

    def _apply(self, token_data: dict[str, Any], keep_refresh_token: bool) -> None:
        refresh_token = token_data.get("refresh_token")
        if keep_refresh_token and not refresh_token:
            refresh_token = self.state.refresh_token

        expires_in = token_data.get("expires_in")
        expires_at = self.now_ms() + int(expires_in) * 1000 if expires_in is not None else None

        # Swap the whole state at once so readers never see a mixed pair
        self.state = TokenState(
            access_token=token_data["access_token"],
            refresh_token=refresh_token,
            expires_at_ms=expires_at,
        )

    def authorization_url(self, redirect_uri: str) -> str:
        """Vendor URL that starts the authorization-code flow."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": "full",
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    # -------------------------------------------------------------------------
    # Authenticated requests
    # -------------------------------------------------------------------------

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send an authenticated request.

        A 401 triggers one retry: with the newer token if another request has
        already refreshed, else after one refresh. The retry's response
        is returned as-is, so a second 401 is left for the caller to report.

        Raises:
            AuthenticationError: no token available, or the refresh failed
        """
        token = await self.get_valid_access_token()
        if not token:
            raise AuthenticationError("No access token available")

        response = await self._send(method, url, token, kwargs)

        if response.status_code == 401:
            current = self.state.access_token
            if current and current != token:
                # Another request already replaced the rejected token
                logger.info("Access token rejected, retrying once with the newer token")
                response = await self._send(method, url, current, kwargs)
            elif self.state.refresh_token:
                logger.info("Access token rejected, refreshing and retrying once")
                await self.refresh()
                response = await self._send(method, url, self.state.access_token, kwargs)

        return response

    async def _send(
        self, method: str, url: str, token: str, kwargs: dict[str, Any]
    ) -> httpx.Response:
        options = dict(kwargs)
        options["headers"] = {
            **options.get("headers", {}),
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        return await self.http_client.request(method, url, **options)

    def status(self) -> dict[str, Any]:
        """Read-only snapshot of the credential state."""
        return {
            "oauth_configured": self.oauth_configured,
            "has_access_token": bool(self.state.access_token),
            "has_refresh_token": bool(self.state.refresh_token),
            "token_expires_at": _iso_from_ms(self.state.expires_at_ms),
            "fallback_to_legacy": bool(self.legacy_api_key),
        }

    @property
    def auth_method(self) -> str:
        if self.state.access_token:
            return "OAuth 2.0"
        if self.legacy_api_key:
            return "Legacy API Key"
        return "none"


def build_token_store(http_client: httpx.AsyncClient) -> TokenStore:
    """Create the store from environment configuration."""
    return TokenStore(
        http_client,
        client_id=KEAP_CLIENT_ID,
        client_secret=KEAP_CLIENT_SECRET,
        legacy_api_key=KEAP_API_TOKEN,
        state=TokenState(
            access_token=KEAP_ACCESS_TOKEN,
            refresh_token=KEAP_REFRESH_TOKEN,
            expires_at_ms=KEAP_TOKEN_EXPIRES_AT,
        ),
    )
