"""Application settings and configuration.

This module defines all configuration options for the AnonChat auth service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="AnonChat Auth", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Session token signing for the local identity provider
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Wallet signature authentication
    wallet_auth_secret: str | None = Field(default=None, alias="WALLET_AUTH_SECRET")
    nonce_ttl_seconds: int = Field(default=300, alias="NONCE_TTL_SECONDS")
    nonce_prefix: str = Field(default="anonchat", alias="NONCE_PREFIX")
    identity_email_domain: str = Field(
        default="wallet.anonchat.local",
        alias="IDENTITY_EMAIL_DOMAIN",
    )

    # Identity provider selection
    identity_provider: Literal["local", "supabase"] = Field(
        default="local",
        alias="IDENTITY_PROVIDER",
    )
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")
    supabase_timeout_seconds: float = Field(default=10.0, alias="SUPABASE_TIMEOUT_SECONDS")

    # Database configuration (local identity provider)
    database_url: str = Field(default="sqlite:///./anonchat.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def supabase_enabled(self) -> bool:
        """Return True when the Supabase provider is selected and configured."""
        return bool(
            self.identity_provider == "supabase"
            and self.supabase_url
            and self.supabase_anon_key
        )


settings = Settings()  # type: ignore[call-arg]
