"""Authentication schemas (DTOs)."""

from pydantic import BaseModel, EmailStr


class TokenResponse(BaseModel):
    """Access/refresh token pair."""

    access_token: str
    expiration: int  # refresh token expiry, unix seconds
    refresh_token: str


class OAuthUserInfo(BaseModel):
    """User profile returned by an OAuth2 provider."""

    email: EmailStr
    name: str | None = None
    picture: str | None = None


class MessageResponse(BaseModel):
    message: str
