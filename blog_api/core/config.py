"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("a, b,,c ")
        ['a', 'b', 'c']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        "logs/combined.log",
        description="Log file path when output=file",
    )
    error_file_path: str | None = Field(
        None,
        description="Optional extra file receiving only ERROR and above",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate log files at this size (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode (tracebacks in 500 responses)",
    )
    cors_origins: str = Field(
        "http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )
    upload_dir: str = Field(
        "uploads",
        description="Directory where uploaded files are stored and served from",
    )
    max_upload_size_mb: int = Field(
        5,
        description="Maximum file upload size in megabytes",
        ge=1,
    )
    allowed_upload_types: str = Field(
        "jpeg,png,gif,webp,pdf",
        description="Comma-separated list of accepted upload types",
    )
    default_page_size: int = Field(10, description="Default posts per page", ge=1)
    max_page_size: int = Field(100, description="Upper bound for ?limit=", ge=1, le=1000)

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_strategy: str = Field(
        "fixed_window",
        description="Limiter algorithm: fixed_window or sliding_window",
    )
    rate_limit_requests: int = Field(
        5,
        description="Requests allowed per window on authentication endpoints",
        ge=1,
    )
    rate_limit_api_requests: int = Field(
        60,
        description="Requests allowed per window on write endpoints",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_max_entries: int = Field(
        10_000,
        description="Maximum number of tracked clients per limiter (LRU eviction)",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: int = Field(
        300,
        description="Minimum seconds between sweeps of expired limiter entries",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_trust_forwarded_for: bool = Field(
        False,
        description="Key clients by the left-most X-Forwarded-For address (only behind a trusted proxy)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Token issuance and verification settings."""

    jwt_secret: str = Field(
        "change-me",
        description="HMAC secret used to sign access tokens",
    )
    jwt_algorithm: str = Field("HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(
        60,
        description="Access token lifetime in minutes",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """SQLAlchemy connection settings."""

    url: str = Field("sqlite:///./blog.db", description="SQLAlchemy database URL")
    echo: bool = Field(False, description="Log emitted SQL statements")

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class MailSettings(BaseSettings):
    """SMTP delivery settings. Mail is disabled unless host and sender are set."""

    host: str | None = Field(None, description="SMTP server host")
    port: int = Field(587, description="SMTP server port")
    user: str | None = Field(None, description="SMTP login user")
    password: str | None = Field(None, description="SMTP login password")
    from_address: str | None = Field(None, description="Envelope sender address")
    use_tls: bool = Field(True, description="Issue STARTTLS before login")
    timeout_seconds: float = Field(10.0, description="SMTP socket timeout")

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        case_sensitive=False,
    )

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.from_address)


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    mail: MailSettings = Field(default_factory=MailSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
