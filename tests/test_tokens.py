"""Tests for the OAuth token store."""

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import mock_client
from core.exceptions import AuthenticationError, VendorAPIError
from services.keap import KeapClient
from services.tokens import TokenState, TokenStore

TOKEN_URL = "https://keap.test/token"
API_URL = "https://keap.test/crm"


def make_store(handler, clock, **overrides) -> TokenStore:
    options = {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "legacy_api_key": "legacy-key",
        "state": TokenState(
            access_token="old-access",
            refresh_token="old-refresh",
            expires_at_ms=int(clock() * 1000) + 3600 * 1000,
        ),
        "token_url": TOKEN_URL,
        "clock": clock,
    }
    options.update(overrides)
    return TokenStore(mock_client(handler), **options)


def token_response(access="new-access", refresh="new-refresh", expires_in=3600):
    body = {"access_token": access, "expires_in": expires_in, "scope": "full"}
    if refresh:
        body["refresh_token"] = refresh
    return httpx.Response(200, json=body)


class TestGetValidAccessToken:
    @pytest.mark.asyncio
    async def test_legacy_key_without_oauth_token(self, clock):
        def handler(request):
            raise AssertionError("no network call expected")

        store = make_store(handler, clock, state=TokenState(expires_at_ms=0))
        assert await store.get_valid_access_token() == "legacy-key"

    @pytest.mark.asyncio
    async def test_none_when_nothing_configured(self, clock):
        store = make_store(lambda r: None, clock, state=TokenState(), legacy_api_key=None)
        assert await store.get_valid_access_token() is None

    @pytest.mark.asyncio
    async def test_current_token_when_not_near_expiry(self, clock):
        def handler(request):
            raise AssertionError("no refresh expected")

        store = make_store(handler, clock)
        assert await store.get_valid_access_token() == "old-access"

    @pytest.mark.asyncio
    async def test_unknown_expiry_returns_token(self, clock):
        def handler(request):
            raise AssertionError("no refresh expected")

        store = make_store(
            handler, clock, state=TokenState(access_token="tok", refresh_token="r")
        )
        assert await store.get_valid_access_token() == "tok"

    @pytest.mark.asyncio
    async def test_refreshes_within_five_minutes_of_expiry(self, clock):
        calls = []

        def handler(request):
            calls.append(parse_qs(request.content.decode()))
            return token_response()

        store = make_store(handler, clock)
        clock.advance(3600 - 299)

        assert await store.get_valid_access_token() == "new-access"
        assert len(calls) == 1
        assert calls[0]["grant_type"] == ["refresh_token"]
        assert calls[0]["refresh_token"] == ["old-refresh"]
        assert store.state.refresh_token == "new-refresh"
        assert store.state.expires_at_ms == int(clock() * 1000) + 3600 * 1000

    @pytest.mark.asyncio
    async def test_failed_refresh_falls_back_to_legacy_key(self, clock):
        store = make_store(lambda r: httpx.Response(400, json={"error": "invalid_grant"}), clock)
        clock.advance(3600)

        assert await store.get_valid_access_token() == "legacy-key"
        assert store.state.access_token == "old-access"


class TestRefresh:
    @pytest.mark.asyncio
    async def test_keeps_refresh_token_when_none_issued(self, clock):
        store = make_store(lambda r: token_response(refresh=None), clock)
        await store.refresh()
        assert store.state.access_token == "new-access"
        assert store.state.refresh_token == "old-refresh"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, clock):
        store = make_store(lambda r: token_response(), clock, client_secret="")
        with pytest.raises(AuthenticationError, match="Missing OAuth credentials"):
            await store.refresh()

    @pytest.mark.asyncio
    async def test_rejected_exchange(self, clock):
        store = make_store(lambda r: httpx.Response(401), clock)
        with pytest.raises(AuthenticationError, match="Token exchange failed: 401"):
            await store.refresh()

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_exchange(self, clock):
        calls = []

        async def handler(request):
            calls.append(request)
            await asyncio.sleep(0.01)
            return token_response(access=f"access-{len(calls)}")

        store = make_store(handler, clock)
        results = await asyncio.gather(store.refresh(), store.refresh(), store.refresh())

        assert len(calls) == 1
        assert all(r["access_token"] == "access-1" for r in results)
        assert store.state.access_token == "access-1"

    @pytest.mark.asyncio
    async def test_later_refresh_makes_a_new_call(self, clock):
        calls = []

        def handler(request):
            calls.append(request)
            return token_response(access=f"access-{len(calls)}")

        store = make_store(handler, clock)
        await store.refresh()
        await store.refresh()

        assert len(calls) == 2
        assert store.state.access_token == "access-2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_in", ["soon", [3600]])
    async def test_invalid_expires_in_is_rejected(self, clock, expires_in):
        body = {"access_token": "new-access", "expires_in": expires_in}
        store = make_store(lambda r: httpx.Response(200, json=body), clock)

        with pytest.raises(AuthenticationError, match="Invalid expires_in"):
            await store.refresh()
        assert store.state.access_token == "old-access"

    @pytest.mark.asyncio
    async def test_invalid_expires_in_falls_back_to_legacy_key(self, clock):
        body = {"access_token": "new-access", "expires_in": "soon"}
        store = make_store(lambda r: httpx.Response(200, json=body), clock)
        clock.advance(3600)

        assert await store.get_valid_access_token() == "legacy-key"


class TestAuthorizationCode:
    def test_authorization_url(self, clock):
        store = make_store(lambda r: None, clock, authorize_url="https://keap.test/authorize")
        url = store.authorization_url("https://svc.test/oauth/callback")

        assert url.startswith("https://keap.test/authorize?")
        assert "client_id=client-id" in url
        assert "response_type=code" in url
        assert "scope=full" in url
        assert "redirect_uri=https%3A%2F%2Fsvc.test%2Foauth%2Fcallback" in url

    @pytest.mark.asyncio
    async def test_exchange_code_replaces_state(self, clock):
        seen = {}

        def handler(request):
            seen.update(parse_qs(request.content.decode()))
            return token_response(access="code-access", refresh="code-refresh")

        store = make_store(handler, clock, state=TokenState())
        await store.exchange_code("the-code", "https://svc.test/cb")

        assert seen["grant_type"] == ["authorization_code"]
        assert seen["code"] == ["the-code"]
        assert store.state.access_token == "code-access"
        assert store.state.refresh_token == "code-refresh"
        assert store.status()["has_access_token"] is True


class TestAuthenticatedRequests:
    @pytest.mark.asyncio
    async def test_no_token_raises(self, clock):
        store = make_store(lambda r: None, clock, state=TokenState(), legacy_api_key=None)
        with pytest.raises(AuthenticationError):
            await store.request("GET", f"{API_URL}/campaigns")

    @pytest.mark.asyncio
    async def test_401_refreshes_once_and_retries(self, clock):
        token_calls = []
        api_auth = []

        def handler(request):
            if str(request.url) == TOKEN_URL:
                token_calls.append(request)
                return token_response()
            api_auth.append(request.headers["Authorization"])
            if len(api_auth) == 1:
                return httpx.Response(401)
            return httpx.Response(200, json={"ok": True})

        store = make_store(handler, clock)
        response = await store.request("GET", f"{API_URL}/campaigns")

        assert response.status_code == 200
        assert len(token_calls) == 1
        assert api_auth == ["Bearer old-access", "Bearer new-access"]

    @pytest.mark.asyncio
    async def test_second_401_is_not_retried_again(self, clock):
        token_calls = []
        goal_calls = []

        def handler(request):
            if str(request.url) == TOKEN_URL:
                token_calls.append(request)
                return token_response()
            goal_calls.append(json.loads(request.content))
            return httpx.Response(401, text="Unauthorized")

        keap = KeapClient(make_store(handler, clock), base_url=API_URL)
        with pytest.raises(VendorAPIError) as exc_info:
            await keap.trigger_goal("42", "7")

        assert exc_info.value.status_code == 401
        assert len(token_calls) == 1
        assert len(goal_calls) == 2

    @pytest.mark.asyncio
    async def test_401_for_already_replaced_token_skips_refresh(self, clock):
        token_calls = []
        api_auth = []

        def handler(request):
            if str(request.url) == TOKEN_URL:
                token_calls.append(request)
                return token_response(access="third-access")
            api_auth.append(request.headers["Authorization"])
            if request.headers["Authorization"] == "Bearer old-access":
                # A concurrent request refreshed while this one was in flight
                store.state = TokenState(
                    access_token="second-access",
                    refresh_token="second-refresh",
                    expires_at_ms=int(clock() * 1000) + 3600 * 1000,
                )
                return httpx.Response(401)
            return httpx.Response(200, json={"ok": True})

        store = make_store(handler, clock)
        response = await store.request("GET", f"{API_URL}/campaigns")

        assert response.status_code == 200
        assert token_calls == []
        assert api_auth == ["Bearer old-access", "Bearer second-access"]
        assert store.state.access_token == "second-access"

    @pytest.mark.asyncio
    async def test_401_without_refresh_token_is_returned(self, clock):
        def handler(request):
            return httpx.Response(401)

        store = make_store(
            handler, clock, state=TokenState(access_token="tok", refresh_token=None)
        )
        response = await store.request("GET", f"{API_URL}/campaigns")
        assert response.status_code == 401


def test_status_snapshot(clock):
    store = make_store(lambda r: None, clock, state=TokenState(access_token="a"))
    status = store.status()

    assert status == {
        "oauth_configured": True,
        "has_access_token": True,
        "has_refresh_token": False,
        "token_expires_at": None,
        "fallback_to_legacy": True,
    }
    assert store.auth_method == "OAuth 2.0"
