"""Tests for the login, logout and refresh endpoints."""

from datetime import timedelta
from urllib.parse import parse_qs, urlencode, urlsplit
from uuid import uuid4

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError

from src.features.auth.dependencies import get_oauth_provider, get_token_codec, get_token_service
from src.features.auth.oauth import OAuthProviderError
from src.features.auth.schemas import OAuthUserInfo
from src.features.auth.service import TokenService
from src.features.auth.store import RefreshTokenStore
from src.features.user.service import UserService
from src.main import app

DEBUG_TOKEN_URL = "http://testserver/api/oauth/debug/token"


class FakeGoogleProvider:
    """Provider double that never leaves the process."""

    def __init__(self, user_info: OAuthUserInfo | None = None, fail: bool = False):
        self.user_info = user_info or OAuthUserInfo(email="google.user@example.com", name="Google User")
        self.fail = fail
        self.exchanged_codes: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.com/auth?{urlencode({'state': state})}"

    async def exchange(self, code: str) -> str:
        if self.fail:
            raise OAuthProviderError("token exchange failed")
        self.exchanged_codes.append(code)
        return "provider-access-token"

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        return self.user_info


class BrokenStore:
    async def fetch_by_id(self, token_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))


@pytest.fixture
def google():
    provider = FakeGoogleProvider()
    app.dependency_overrides[get_oauth_provider] = lambda: provider
    return provider


@pytest.fixture
def live_token_service(session) -> TokenService:
    """Token service on the real clock, matching what the endpoints use."""
    return TokenService(
        codec=get_token_codec(),
        store=RefreshTokenStore(session),
        access_token_lifetime=timedelta(minutes=5),
        refresh_token_lifetime=timedelta(minutes=30),
    )


def _query(location: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(location).query).items()}


class TestRefreshEndpoint:
    async def test_refresh_success(self, client, make_user, live_token_service):
        user = await make_user(email="refresh@example.com")
        token = await live_token_service.create_refresh_token(user.id)

        response = await client.post(f"/api/refresh/{token.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert set(data) == {"access_token", "expiration", "refresh_token"}
        assert data["refresh_token"] != str(token.id)
        assert get_token_codec().decode(data["access_token"]).email == "refresh@example.com"

    async def test_rotation_chain(self, client, make_user, live_token_service):
        user = await make_user(email="u@example.com")
        login = await live_token_service.issue_tokens(user.id, user.email)

        second = (await client.post(f"/api/refresh/{login.refresh_token}")).json()
        assert second["access_token"] != login.access_token
        assert second["refresh_token"] != login.refresh_token

        third = await client.post(f"/api/refresh/{second['refresh_token']}")
        assert third.status_code == status.HTTP_200_OK

        reused = await client.post(f"/api/refresh/{login.refresh_token}")
        assert reused.status_code == status.HTTP_400_BAD_REQUEST
        assert reused.json() == {"detail": "Invalid refresh token"}

    async def test_unknown_token(self, client):
        response = await client.post(f"/api/refresh/{uuid4()}")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_malformed_token_id(self, client):
        response = await client.post("/api/refresh/not-a-uuid")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"detail": "Invalid refresh token format"}

    async def test_database_failure_returns_500(self, client):
        app.dependency_overrides[get_token_service] = lambda: TokenService(
            codec=get_token_codec(),
            store=BrokenStore(),
            access_token_lifetime=timedelta(minutes=5),
            refresh_token_lifetime=timedelta(minutes=30),
        )

        response = await client.post(f"/api/refresh/{uuid4()}")
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"detail": "Internal server error"}


class TestLogoutEndpoint:
    async def test_logout_invalidates_refresh_tokens(self, client, make_user, auth_headers, live_token_service):
        user = await make_user()
        token = await live_token_service.create_refresh_token(user.id)

        response = await client.post("/api/logout", headers=auth_headers(user))
        assert response.status_code == status.HTTP_204_NO_CONTENT

        refresh = await client.post(f"/api/refresh/{token.id}")
        assert refresh.status_code == status.HTTP_400_BAD_REQUEST

    async def test_logout_twice(self, client, make_user, auth_headers):
        user = await make_user()
        assert (await client.post("/api/logout", headers=auth_headers(user))).status_code == 204
        assert (await client.post("/api/logout", headers=auth_headers(user))).status_code == 204

    async def test_logout_requires_authentication(self, client):
        response = await client.post("/api/logout")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"detail": "Unauthorized"}


class TestGoogleLogin:
    async def test_redirects_to_provider(self, client, google):
        response = await client.get("/api/login/google")

        assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
        location = response.headers["location"]
        assert location.startswith("https://accounts.example.com/auth")
        assert _query(location)["state"] == DEBUG_TOKEN_URL

    async def test_trusted_redirect_and_route(self, client, google):
        response = await client.get(
            "/api/login/google", params={"c": "http://localhost:3000/after-login", "r": "/dashboard"}
        )

        state = _query(response.headers["location"])["state"]
        assert state.startswith("http://localhost:3000/after-login")
        assert _query(state) == {"r": "/dashboard"}

    async def test_untrusted_redirect_is_ignored(self, client, google):
        response = await client.get("/api/login/google", params={"c": "https://evil.example.com/steal"})
        assert _query(response.headers["location"])["state"] == DEBUG_TOKEN_URL

    async def test_provider_not_configured(self, client):
        response = await client.get("/api/login/google")
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestGoogleCallback:
    async def test_success_creates_user_and_issues_tokens(self, client, session, google):
        response = await client.get("/api/oauth/google/callback", params={"code": "abc", "state": DEBUG_TOKEN_URL})

        assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
        location = response.headers["location"]
        assert location.startswith(DEBUG_TOKEN_URL)
        assert google.exchanged_codes == ["abc"]

        params = _query(location)
        identity = get_token_codec().decode(params["access_token"])
        assert identity.email == "google.user@example.com"

        user = await UserService.get_user_by_email(session, "google.user@example.com")
        assert user is not None
        assert user.id == identity.user_id
        assert user.username == "Google User"

        refresh = await client.post(f"/api/refresh/{params['refresh_token']}")
        assert refresh.status_code == status.HTTP_200_OK

    async def test_existing_user_is_reused(self, client, make_user, google):
        user = await make_user(email="google.user@example.com")

        response = await client.get("/api/oauth/google/callback", params={"code": "abc"})

        params = _query(response.headers["location"])
        assert get_token_codec().decode(params["access_token"]).user_id == user.id

    async def test_provider_error_is_forwarded(self, client, google):
        response = await client.get(
            "/api/oauth/google/callback", params={"error": "access_denied", "state": "http://localhost:3000/cb"}
        )

        location = response.headers["location"]
        assert location.startswith("http://localhost:3000/cb")
        assert _query(location) == {"error": "access_denied"}

    async def test_missing_code(self, client, google):
        response = await client.get("/api/oauth/google/callback")
        assert _query(response.headers["location"]) == {"error": "missing_code"}

    async def test_exchange_failure(self, client, google):
        google.fail = True
        response = await client.get("/api/oauth/google/callback", params={"code": "abc"})

        params = _query(response.headers["location"])
        assert params == {"error": "oauth_failed"}


class TestDebugToken:
    async def test_debug_landing_page(self, client):
        response = await client.get("/api/oauth/debug/token")
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json() == {"message": "Login successful"}
