"""Configuration management for careloop."""

from typing import Literal

from croniter import croniter
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="production", description="Deployment environment; development exposes error details"
    )

    # Document store
    database_path: str = Field(default="careloop.db", description="SQLite file backing the document store")

    # Identity provider
    auth_backend: Literal["firebase", "signed"] = Field(
        default="firebase", description="Bearer token verifier: Firebase ID tokens or locally signed tokens"
    )
    firebase_api_key: str | None = Field(default=None, description="Firebase Web API key for token lookup")
    firebase_auth_base_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Firebase Identity Toolkit REST base URL",
    )
    secret_key: str = Field(default="change-me", description="Signing key for locally issued bearer tokens")
    signed_token_max_age_seconds: int = Field(default=86400, description="Lifetime of locally signed tokens")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # HTTP
    cors_origins: list[str] = Field(
        default=["http://localhost:3001"], description="Origins allowed to call the API with credentials"
    )

    # Periodic execution generation
    enable_scheduler: bool = Field(default=False, description="Run the periodic execution generation job")
    generation_cron: str = Field(default="0 2 * * *", description="CRON expression for the generation job")
    generation_horizon_days: int = Field(
        default=7, ge=0, description="Generate occurrences scheduled up to this many days ahead"
    )

    # Execution lifecycle policy
    enforce_status_transitions: bool = Field(
        default=False, description="Reject status changes that are not in the execution transition table"
    )
    validate_covering_execution: bool = Field(
        default=False, description="Require the covering id of a coverage request to be an existing execution"
    )

    @field_validator("generation_cron")
    @classmethod
    def validate_generation_cron(cls, v: str) -> str:
        """Validate the generation schedule is a CRON expression."""
        if not croniter.is_valid(v):
            msg = f"Invalid CRON expression for generation_cron: {v}"
            raise ValueError(msg)
        return v

    @property
    def is_development(self) -> bool:
        """Whether internal error details may be returned to clients."""
        return self.environment == "development"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # Pagination Defaults
    DEFAULT_PAGE_LIMIT: int = 50
    DEFAULT_EXECUTION_PAGE_LIMIT: int = 100
    MAX_PAGE_LIMIT: int = 1000

    # Task executions
    DEFAULT_QUANTITY_PURCHASED: int = 1
    PURCHASE_DEFAULT_UNIT: str = "piece"

    # Categories
    DEFAULT_CATEGORY_COLOR: str = "#6B7280"

    # Identity provider
    SIGNED_TOKEN_SALT: str = "careloop-auth"


def get_settings() -> Settings:
    """Build application settings from the environment."""
    return Settings()


constants = Constants()
