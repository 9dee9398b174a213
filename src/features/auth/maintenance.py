"""Periodic cleanup of expired and inactive refresh tokens."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import settings

from .dependencies import get_token_codec
from .service import TokenService
from .store import RefreshTokenStore

logger = logging.getLogger(__name__)

SessionProvider = Callable[[], AbstractAsyncContextManager[AsyncSession]]


async def sweep_refresh_tokens(session_provider: SessionProvider) -> int:
    """Delete expired or inactive refresh tokens in one committed session."""
    async with session_provider() as session:
        service = TokenService(
            codec=get_token_codec(),
            store=RefreshTokenStore(session),
            access_token_lifetime=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_token_lifetime=timedelta(minutes=settings.refresh_token_expire_minutes),
        )
        return await service.purge_refresh_tokens()


async def run_refresh_token_sweeper(session_provider: SessionProvider, interval_seconds: int) -> None:
    """Run :func:`sweep_refresh_tokens` every ``interval_seconds`` until cancelled.

    A failed sweep is logged and retried on the next tick.
    """
    logger.info(f"Refresh token sweeper started (interval {interval_seconds}s)")
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await sweep_refresh_tokens(session_provider)
        except SQLAlchemyError as exc:
            logger.error(f"Refresh token sweep failed: {exc}")
