"""Authentication exceptions.

Domain errors (raised by the token codec and token service) are plain
exceptions; the HTTP exceptions below are what routers and dependencies raise
once a domain error has been classified.
"""

from datetime import datetime

from fastapi import HTTPException, status


# Domain errors
class TokenError(Exception):
    """Base class for access token decode failures."""

    reason = "invalid token"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.reason)


class MalformedTokenError(TokenError):
    """The string is not a well-formed signed token."""

    reason = "malformed token"


class BadSignatureError(TokenError):
    """The token signature does not verify against the signing secret."""

    reason = "signature verification failed"


class TokenExpiredError(TokenError):
    """The current time is at or past the token's expiry claim."""

    reason = "token expired"

    def __init__(self, expired_at: datetime):
        self.expired_at = expired_at
        super().__init__(f"token expired at {expired_at.isoformat()}")


class TokenNotYetValidError(TokenError):
    """The current time precedes the token's not-before claim."""

    reason = "token not yet valid"

    def __init__(self, not_before: datetime):
        self.not_before = not_before
        super().__init__(f"token not valid before {not_before.isoformat()}")


class InvalidClaimsError(TokenError):
    """The claims cannot be read as an identity claim."""

    reason = "invalid token claims"


class TokenSigningError(Exception):
    """Signing an access token failed."""


class InvalidRefreshTokenError(Exception):
    """The refresh token is unknown, expired or already used."""

    def __init__(self, token_id=None, reason: str = "invalid refresh token"):
        self.token_id = token_id
        self.reason = reason
        super().__init__(reason)


# HTTP exceptions
class AuthenticationException(HTTPException):
    """Base authentication exception."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class UnauthorizedException(AuthenticationException):
    """Raised by the authentication gate for any missing or invalid credential."""

    def __init__(self):
        super().__init__(detail="Unauthorized")


class InvalidRefreshTokenException(HTTPException):
    """Raised when a refresh token cannot be redeemed."""

    def __init__(self, detail: str = "Invalid refresh token"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnsupportedProviderException(HTTPException):
    """Raised when an OAuth2 provider is unknown or not configured."""

    def __init__(self, provider: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported OAuth2 provider: {provider}")
