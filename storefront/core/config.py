"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="storefront-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:4200,https://localhost:4200",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")

    # Auth
    jwt_secret: str = Field(..., description="Secret used to verify access tokens")
    jwt_algorithm: str = Field(default="HS256", description="Access token signing algorithm")
    jwt_audience: str | None = Field(default=None, description="Expected token audience, if any")

    # Paystack
    paystack_secret_key: str = Field(default="", description="Paystack secret key (also signs webhooks)")
    paystack_base_url: str = Field(default="https://api.paystack.co", description="Paystack API base URL")
    paystack_currency: str = Field(default="ZAR", description="Currency for new transactions")
    paystack_timeout_seconds: float = Field(default=10.0, description="Timeout for Paystack API calls")
    paystack_max_retries: int = Field(default=3, description="Attempts for transient Paystack failures")

    # Cart
    cart_expiry_days: int = Field(default=30, description="Days until an untouched cart expires")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_paystack_test_mode(self) -> bool:
        """Check if using Paystack test keys."""
        return self.paystack_secret_key.startswith("sk_test_")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
