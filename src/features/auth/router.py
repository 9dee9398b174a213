"""Authentication router (OAuth2 login, logout and token refresh endpoints)."""

import logging
from functools import lru_cache
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import settings
from src.database.dependencies import get_db_session
from src.features.user.service import UserService

from .dependencies import get_current_user_id, get_oauth_provider, get_token_service
from .exceptions import (
    InvalidRefreshTokenError,
    InvalidRefreshTokenException,
    TokenSigningError,
    UnsupportedProviderException,
)
from .oauth import GoogleOAuthProvider, OAuthProviderError
from .schemas import MessageResponse, TokenResponse
from .service import TokenService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Authentication"])


def _default_redirect() -> str:
    return f"{settings.base_url}{settings.api_prefix}/oauth/debug/token"


@lru_cache
def _trusted_origins() -> frozenset[str]:
    base = urlsplit(settings.base_url)
    origins = {f"{base.scheme}://{base.netloc}"}
    origins.update(o for o in settings.get_cors_configuration().allow_origins if o != "*")
    return frozenset(origins)


def _resolve_redirect(target: str | None) -> str:
    """Return ``target`` if it points at a trusted origin, else the debug endpoint."""
    if not target:
        return _default_redirect()

    parts = urlsplit(target)
    if f"{parts.scheme}://{parts.netloc}" not in _trusted_origins():
        logger.warning(f"Ignoring untrusted OAuth2 redirect target: {target}")
        return _default_redirect()
    return target


def _with_query(url: str, **params: str) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True) + list(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/login/google")
async def login(
    c: str | None = None,
    r: str | None = None,
    provider: GoogleOAuthProvider | None = Depends(get_oauth_provider),
):
    """Start the Google OAuth2 flow.

    - **c**: URL the callback redirects to with the issued tokens
    - **r**: Frontend route forwarded to that URL
    """
    if provider is None:
        logger.warning("Google OAuth2 login requested but provider is not configured")
        raise UnsupportedProviderException("google")

    redirect_to = _resolve_redirect(c)
    if r:
        redirect_to = _with_query(redirect_to, r=r)

    auth_url = provider.authorization_url(state=redirect_to)
    logger.info("Redirecting to Google OAuth2")
    return _redirect(auth_url)


@router.get("/oauth/google/callback")
async def oauth_callback(
    state: str | None = None,
    code: str | None = None,
    error: str | None = None,
    provider: GoogleOAuthProvider | None = Depends(get_oauth_provider),
    token_service: TokenService = Depends(get_token_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Complete the Google OAuth2 flow and redirect with the issued tokens.

    Failures redirect to the same target with an ``error`` code instead.
    """
    if provider is None:
        raise UnsupportedProviderException("google")

    redirect_to = _resolve_redirect(state)

    if error:
        logger.warning(f"OAuth2 callback returned error: {error}")
        return _redirect(_with_query(redirect_to, error=error))

    if not code:
        logger.warning("Missing code in OAuth2 callback")
        return _redirect(_with_query(redirect_to, error="missing_code"))

    try:
        provider_token = await provider.exchange(code)
        user_info = await provider.get_user_info(provider_token)
    except OAuthProviderError as exc:
        logger.error(f"OAuth2 provider call failed: {exc}")
        return _redirect(_with_query(redirect_to, error="oauth_failed"))

    try:
        user = await UserService.find_or_create(session, user_info.email, user_info.name, user_info.picture)
        tokens = await token_service.issue_tokens(user.id, user.email)
        await session.commit()
    except (SQLAlchemyError, TokenSigningError) as exc:
        await session.rollback()
        logger.error(f"Failed to complete login: {exc}")
        return _redirect(_with_query(redirect_to, error="login_failed"))

    logger.info(f"OAuth2 login successful for user {user.id}")
    return _redirect(_with_query(redirect_to, access_token=tokens.access_token, refresh_token=tokens.refresh_token))


@router.get("/oauth/debug/token", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def debug_token():
    """Default landing page after a successful login."""
    return MessageResponse(message="Login successful")


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    user_id: UUID = Depends(get_current_user_id),
    token_service: TokenService = Depends(get_token_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Inactivate every refresh token of the authenticated user."""
    await token_service.invalidate_all_for_user(user_id)
    await session.commit()
    logger.info(f"User {user_id} logged out")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/refresh/{refresh_token_id}", response_model=TokenResponse)
async def refresh_token(
    refresh_token_id: str,
    token_service: TokenService = Depends(get_token_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Exchange a refresh token for a new access token and refresh token.

    The submitted refresh token is consumed and cannot be used again.
    """
    try:
        token_id = UUID(refresh_token_id)
    except ValueError as err:
        raise InvalidRefreshTokenException(detail="Invalid refresh token format") from err

    try:
        tokens = await token_service.rotate_refresh_token(token_id)
    except InvalidRefreshTokenError as err:
        raise InvalidRefreshTokenException() from err

    await session.commit()
    return tokens
