"""Authentication dependencies for FastAPI."""

import logging
from datetime import timedelta
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import settings
from src.database.dependencies import get_db_session

from .exceptions import TokenError, UnauthorizedException
from .jwt_utils import IdentityClaim, TokenCodec
from .oauth import GoogleOAuthProvider
from .service import TokenService
from .store import RefreshTokenStore

logger = logging.getLogger(__name__)

# Request state attribute holding the authenticated user id
USER_ID_STATE_KEY = "user_id"

# Raw header so that tokens are accepted with or without the "Bearer " prefix
authorization_header = APIKeyHeader(name="Authorization", scheme_name="BearerToken", auto_error=False)


@lru_cache
def get_token_codec() -> TokenCodec:
    """Process-wide access token codec built from settings."""
    return TokenCodec(settings.secret_key, settings.jwt_algorithm)


async def get_token_service(
    session: AsyncSession = Depends(get_db_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenService:
    return TokenService(
        codec=codec,
        store=RefreshTokenStore(session),
        access_token_lifetime=timedelta(minutes=settings.access_token_expire_minutes),
        refresh_token_lifetime=timedelta(minutes=settings.refresh_token_expire_minutes),
    )


def get_oauth_provider() -> GoogleOAuthProvider | None:
    """Google provider, or None when client credentials are not configured."""
    if not settings.google_oauth_enabled:
        return None
    return GoogleOAuthProvider(
        client_id=settings.google_client_id or "",
        client_secret=settings.google_client_secret or "",
        redirect_uri=f"{settings.base_url}{settings.api_prefix}/oauth/google/callback",
    )


async def get_current_identity(
    request: Request,
    authorization: str | None = Depends(authorization_header),
    codec: TokenCodec = Depends(get_token_codec),
) -> IdentityClaim:
    """Authenticate the request from its access token.

    Every failure is reported as the same 401; the precise cause is only
    logged. On success the user id is stored on ``request.state``.

    Raises:
        UnauthorizedException: Missing or invalid credential

    """
    if not authorization:
        logger.warning(f"Authorization header required for {request.method} {request.url.path}")
        raise UnauthorizedException()

    try:
        identity = codec.decode(authorization)
    except TokenError as err:
        logger.warning(f"Authorization header invalid for {request.method} {request.url.path}: {err}")
        raise UnauthorizedException() from err

    setattr(request.state, USER_ID_STATE_KEY, identity.user_id)
    logger.debug(f"Authenticated user {identity.user_id}")
    return identity


async def get_current_user_id(identity: IdentityClaim = Depends(get_current_identity)) -> UUID:
    """User id of the authenticated caller."""
    return identity.user_id
