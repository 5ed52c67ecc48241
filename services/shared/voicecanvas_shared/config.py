"""Pydantic settings for application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="",
        description="Database connection URL (postgres:// or postgresql+asyncpg://)",
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Connection pool size",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Max connections beyond pool size",
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for logs",
    )


class APISettings(BaseSettings):
    """API server settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="API server port",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )


class AuthSettings(BaseSettings):
    """Session verification settings.

    Sessions are issued by the web front end and signed with the shared secret;
    this service only verifies them.
    """

    model_config = SettingsConfigDict(env_prefix="AUTH_")

    session_secret: str = Field(
        default="",
        description="HMAC secret shared with the session issuer",
    )
    session_cookie_name: str = Field(
        default="vc_session",
        description="Cookie carrying the signed session",
    )
    session_ttl_seconds: int = Field(
        default=86400 * 30,
        ge=60,
        description="Lifetime of issued sessions",
    )


class StripeSettings(BaseSettings):
    """Stripe billing settings, including the price identifiers of each plan."""

    model_config = SettingsConfigDict(env_prefix="STRIPE_", populate_by_name=True)

    secret_key: str = Field(default="", description="Stripe secret API key")
    webhook_secret: str = Field(default="", description="Webhook endpoint signing secret")
    yearly_price_id: str = Field(default="", description="Price ID of the yearly plan")
    monthly_price_id: str = Field(default="", description="Price ID of the monthly plan")
    price_10k_id: str = Field(
        default="",
        validation_alias="STRIPE_10K_PRICE_ID",
        description="Price ID of the 10,000 character pack",
    )
    price_1m_id: str = Field(
        default="",
        validation_alias="STRIPE_1M_PRICE_ID",
        description="Price ID of the 1,000,000 character pack",
    )
    price_3m_id: str = Field(
        default="",
        validation_alias="STRIPE_3M_PRICE_ID",
        description="Price ID of the 3,000,000 character pack",
    )


class EmailSettings(BaseSettings):
    """Transactional email (Resend) settings."""

    model_config = SettingsConfigDict(env_prefix="")

    resend_api_key: str = Field(default="", description="Resend API key")
    email_from: str = Field(
        default="noreply@voicecanvas.com",
        description="Sender address for transactional mail",
    )
    resend_timeout_seconds: float = Field(default=10.0, gt=0)


class SpeechSettings(BaseSettings):
    """Text-to-speech provider settings."""

    model_config = SettingsConfigDict(env_prefix="")

    minimax_api_key: str = Field(default="", description="Minimax API key")
    minimax_group_id: str = Field(default="", description="Minimax group ID")
    minimax_base_url: str = Field(default="https://api.minimax.chat/v1/t2a_v2")
    minimax_timeout_seconds: float = Field(default=15.0, gt=0)
    aws_region: str = Field(default="us-east-1", description="AWS region for Polly")
    polly_timeout_seconds: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
    )

    service_name: str = Field(
        default="voicecanvas-api",
        description="Service name for logging",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used in emailed links and checkout redirects",
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    speech: SpeechSettings = Field(default_factory=SpeechSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        The application settings.
    """
    return Settings()


def refresh_settings() -> Settings:
    """Clear settings cache and return fresh settings.

    Returns:
        Fresh application settings.
    """
    get_settings.cache_clear()
    return get_settings()
