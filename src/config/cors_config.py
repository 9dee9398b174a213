"""CORS allow-list configuration."""

import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_DEVELOPMENT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]


class CORSConfigurationError(Exception):
    """Raised when CORS configuration is invalid or insecure."""

    pass


def normalize_origin(origin: str) -> str:
    """Normalize an origin URL by stripping whitespace and trailing slashes.

    Raises:
        CORSConfigurationError: If origin is empty or not an absolute URL.

    """
    origin = origin.strip()

    if not origin:
        raise CORSConfigurationError("Origin cannot be empty")

    if origin == "*":
        return origin

    parsed = urlparse(origin)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise CORSConfigurationError(f"Invalid origin URL: {origin}")

    return origin.rstrip("/")


def parse_comma_separated_list(value: str | list[str] | None) -> list[str]:
    """Parse a comma-separated string (or list) into stripped, non-empty items."""
    if value is None:
        return []

    if isinstance(value, list):
        return [v.strip() for v in value if v.strip()]

    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]

    raise CORSConfigurationError(f"Invalid value type: {type(value)}")


class CORSConfiguration:
    """Origin allow-list for browser clients.

    A wildcard (``*``) admits any origin but never with credentials. Explicit
    origins are answered with their own origin and credentials enabled.
    Wildcards are refused in production.
    """

    def __init__(self, allow_origins: str | list[str] | None = None, environment: str = "development"):
        self.environment = environment.lower()

        if allow_origins is None and self.environment == "development":
            origins = list(DEFAULT_DEVELOPMENT_ORIGINS)
        else:
            origins = parse_comma_separated_list(allow_origins)

        self.allow_origins = [normalize_origin(o) for o in origins]
        self.allow_methods = list(ALLOWED_METHODS)
        self.allow_headers = list(ALLOWED_HEADERS)

        if self.is_wildcard and len(self.allow_origins) > 1:
            raise CORSConfigurationError("Wildcard origin (*) cannot be combined with explicit origins")

        if self.is_wildcard and self.environment == "production":
            raise CORSConfigurationError("Wildcard origins (*) are not allowed in production environment")

        if not self.allow_origins:
            logger.warning(f"No CORS origins configured for {self.environment}; cross-origin requests will be refused")

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.allow_origins

    @property
    def allow_credentials(self) -> bool:
        return bool(self.allow_origins) and not self.is_wildcard

    def is_allowed(self, origin: str) -> bool:
        """Check whether a request origin is on the allow-list."""
        if self.is_wildcard:
            return True
        return origin.rstrip("/") in self.allow_origins

    def get_middleware_config(self) -> dict:
        """Keyword arguments for Starlette's CORSMiddleware."""
        return {
            "allow_origins": self.allow_origins,
            "allow_credentials": self.allow_credentials,
            "allow_methods": self.allow_methods,
            "allow_headers": self.allow_headers,
        }

    def log_configuration(self) -> None:
        logger.info(
            f"CORS configured for {self.environment}: origins={self.allow_origins} "
            f"credentials={self.allow_credentials}"
        )
