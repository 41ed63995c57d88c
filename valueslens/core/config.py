"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables. Collaborator
    credentials are optional: a missing key puts that collaborator in its
    degraded mode instead of failing startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="valueslens-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=262144, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_secret_key: str = Field(default="", description="Supabase secret key for backend operations")

    # OpenAI
    openai_api_key: str = Field(default="", description="OpenAI API key; definitions fall back when unset")
    openai_model: str = Field(default="gpt-4o", description="OpenAI model to use")
    generation_timeout_seconds: float = Field(
        default=25.0,
        gt=0,
        le=60,
        description="Upper bound on a single generation call before falling back",
    )
    mock_openai: bool | None = Field(default=None, description="Skip the model and serve deterministic output. Auto-enabled in development, disabled in production.")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_publishable_key: str = Field(default="", description="Stripe publishable key (for frontend)")
    report_price_cents: int = Field(default=1200, ge=0, description="Price of the values report in cents")
    report_product_name: str = Field(default="Your 2026 Values Report", description="Checkout line item name")
    report_product_description: str = Field(
        default="PDF report with all 5 values, decision framework, and printable wallet card",
        description="Checkout line item description",
    )

    # Frontend
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend application URL for share links and checkout redirects",
    )

    @model_validator(mode="after")
    def set_mock_openai_default(self) -> "Settings":
        """Set mock_openai based on environment if MOCK_OPENAI was not given.

        Production defaults to live generation, every other environment to
        deterministic output.
        """
        if self.mock_openai is None:
            self.mock_openai = self.app_env != "production"

        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_generation_configured(self) -> bool:
        """Check if the definition model can be called at all."""
        return bool(self.openai_api_key) and not self.mock_openai

    @property
    def is_storage_configured(self) -> bool:
        """Check if durable storage credentials are present."""
        return bool(self.supabase_url and self.supabase_secret_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
