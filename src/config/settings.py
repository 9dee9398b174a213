"""Application settings and configuration."""

import logging

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.cors_config import CORSConfiguration, CORSConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application (hardcoded constants)
    app_name: str = "Task API"
    app_version: str = "0.1.0"

    # Environment-specific settings
    debug: bool = False
    environment: str  # development, staging, production

    # Database
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    database_echo: bool = False
    database_create_tables: bool = True

    # API
    api_prefix: str = "/api"
    base_url: str = "http://localhost:8080"

    # CORS
    cors_allow_origins: str | None = None

    # Security
    secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_minutes: int = 30
    refresh_token_sweep_interval_seconds: int = 3600

    # Google OAuth2
    google_client_id: str | None = None
    google_client_secret: str | None = None

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "120/minute"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "staging", "production"}
        env = str(v).lower()
        if env not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}, got {env}")
        return env

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Reject an empty signing secret."""
        if not v.strip():
            raise ValueError("secret_key must not be empty")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"text", "json"}:
            raise ValueError(f"log_format must be 'text' or 'json', got {v}")
        return fmt

    @model_validator(mode="after")
    def validate_token_lifetimes(self) -> "Settings":
        """Refresh tokens must outlive the access tokens they renew."""
        if self.access_token_expire_minutes <= 0:
            raise ValueError("access_token_expire_minutes must be positive")
        if self.refresh_token_expire_minutes <= self.access_token_expire_minutes:
            raise ValueError("refresh_token_expire_minutes must be greater than access_token_expire_minutes")
        return self

    @property
    def google_oauth_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    def get_cors_configuration(self) -> CORSConfiguration:
        """Build the CORS configuration for the current environment.

        Raises:
            CORSConfigurationError: If CORS configuration is invalid or insecure.

        """
        try:
            return CORSConfiguration(
                allow_origins=self.cors_allow_origins,
                environment=self.environment,
            )
        except CORSConfigurationError as exc:
            logger.error(f"Failed to create CORS configuration: {exc}")
            raise


settings = Settings()  # type: ignore[call-arg]
