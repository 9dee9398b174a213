import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from src.config.cors_config import CORSConfigurationError
from src.config.logging_config import configure_logging
from src.config.settings import settings
from src.database import client as db_client
from src.features.auth.exceptions import TokenSigningError
from src.features.auth.maintenance import run_refresh_token_sweeper
from src.features.auth.router import router as auth_router
from src.features.task.router import router as task_router
from src.features.user.router import router as user_router

configure_logging(settings.log_level, settings.log_format, settings.debug)
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "Rate limit exceeded"},
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log persistence and signing failures; answer with a generic 500."""
    logger.error(f"Internal error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    await db_client.init_db()
    sweeper: asyncio.Task | None = None
    if settings.refresh_token_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            run_refresh_token_sweeper(db_client.get_session, settings.refresh_token_sweep_interval_seconds)
        )
    yield
    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await db_client.close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

# Add rate limiting middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)

# Persistence and signing failures never leak detail to clients
app.add_exception_handler(SQLAlchemyError, internal_error_handler)
app.add_exception_handler(TokenSigningError, internal_error_handler)

# Configure CORS middleware from the origin allow-list
try:
    cors_config = settings.get_cors_configuration()
    cors_config.log_configuration()
    app.add_middleware(CORSMiddleware, **cors_config.get_middleware_config())
except CORSConfigurationError as exc:
    logger.error(f"CORS configuration error: {exc}")
    raise

# Router Registration
routers: list[APIRouter] = [
    auth_router,
    user_router,
    task_router,
]

for router in routers:
    app.include_router(router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
