"""
Configuration management for the Optimizer Dashboard.

This module handles application settings loaded from environment variables,
providing type-safe configuration with validation and defaults.

Design decisions:
- Pydantic Settings for automatic env var loading and validation
- Service account credentials are NOT settings fields: they are discovered
  from a broad, ordered list of variable names by
  optimizer_dashboard.credentials.resolver
- Properties for computed values (is_production)
"""

from typing import Union

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via environment variables.
    Example: DASHBOARD_API_KEY=xxx uvicorn optimizer_dashboard.main:app

    Configuration sections:
    1. Analytics store - BigQuery dataset and project defaults
    2. Security - Webhook authentication and CORS
    3. Application - Runtime behavior and logging
    """

    # ===== Analytics Store Configuration =====
    default_project_id: str = Field(
        default="amazon-ppc-474902",
        description="Project used when neither a project variable nor the credential supplies one"
    )
    bq_dataset_id: str = Field(
        default="amazon_ppc",
        description="BigQuery dataset holding optimizer results"
    )
    bq_location: str = Field(
        default="us-east4",
        description="BigQuery dataset location"
    )

    # ===== Security Settings =====
    dashboard_api_key: str | None = Field(
        default=None,
        description="Shared secret the optimizer sends as Bearer token or X-API-Key header"
    )
    cors_origins: Union[str, list[str]] = Field(
        default="",
        description="Allowed CORS origins - comma-separated string or list"
    )

    # ===== Application Settings =====
    app_env: str = Field(
        default="development",
        pattern="^(development|staging|production|test)$",
        description="Application environment"
    )
    log_level: str = Field(
        default="info",
        pattern="^(debug|info|warning|error|critical)$",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Log output format (json for prod, console for dev)"
    )

    @model_validator(mode="after")
    def parse_cors_origins(self):
        """Parse cors_origins from string to list and validate."""
        # Parse CORS origins
        cors_value = self.cors_origins
        if isinstance(cors_value, str):
            self.cors_origins = [origin.strip() for origin in cors_value.split(",") if origin.strip()]

        # Validate CORS in production
        # Why? A wildcard would let any web page call the webhooks from a browser
        if self.app_env == "production" and "*" in self.cors_origins:
            raise ValueError("CORS wildcard not allowed in production")

        # Set default if empty (local Next.js frontend)
        if not self.cors_origins:
            self.cors_origins = ["http://localhost:3000"]

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )


# Singleton instance - loaded once at module import
settings = Settings()
