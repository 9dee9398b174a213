"""Google OAuth2 provider."""

import logging
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from .schemas import OAuthUserInfo

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = ["openid", "email", "profile"]


class OAuthProviderError(Exception):
    """Raised when the provider exchange or profile lookup fails."""


class GoogleOAuthProvider:
    """Authorization-code flow against Google."""

    name = "google"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.transport = transport

    def authorization_url(self, state: str) -> str:
        """Build the consent screen URL; ``state`` is echoed back to the callback."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "access_type": "offline",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange(self, code: str) -> str:
        """Exchange an authorization code for a provider access token."""
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=data, headers={"Accept": "application/json"})
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise OAuthProviderError(f"token exchange failed: {exc}") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise OAuthProviderError("token exchange returned no access_token")
        return access_token

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        """Fetch the signed-in user's profile."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                return OAuthUserInfo.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            raise OAuthProviderError(f"user info lookup failed: {exc}") from exc
