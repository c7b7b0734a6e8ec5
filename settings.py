"""
Configuration for the Expense Manager

Values come from environment variables (and an optional .env file).
Every setting has an insecure default so the app runs locally for demos;
override SECRET_KEY and DATABASE_URL anywhere else.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Document store
    database_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    database_name: str = Field(
        default="expense_manager",
        description="Database holding the user and transaction collections",
    )

    # Tokens / hashing
    secret_key: str = Field(
        default="your-secret-key",
        description="HS256 signing secret for session tokens",
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        ge=1,
        description="Session token lifetime",
    )
    bcrypt_rounds: int = Field(
        default=10,
        ge=4,
        le=31,
        description="bcrypt cost factor",
    )

    # HTTP
    port: int = Field(default=3001, description="Listen port")
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # Demo account created at startup
    seed_demo_user: bool = Field(default=True)
    demo_email: str = Field(default="demo@exemplo.com")
    demo_password: str = Field(default="senha123")

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


class ClientSettings(BaseSettings):
    """Settings for the HTTP client application."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(
        default="http://localhost:3001/api",
        description="Base URL of the REST API",
    )
    timeout: float = Field(
        default=5.0,
        gt=0,
        description="Per-request ceiling in seconds; a timed out call is not retried",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get server settings (cached).

    Call get_settings.cache_clear() to reload.
    """
    return Settings()


@lru_cache()
def get_client_settings() -> ClientSettings:
    return ClientSettings()
