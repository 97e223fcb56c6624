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
    app_name: str = Field(default="faithmatch-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_jwt_secret: str = Field(..., description="Secret used to verify Supabase-issued access tokens")
    jwt_algorithm: str = Field(default="HS256", description="Algorithm of Supabase access tokens")
    admin_role: str = Field(default="admin", description="Token role allowed to manage options")

    # Option registry
    option_cache_ttl_seconds: int = Field(default=300, ge=0, description="Option snapshot time-to-live in seconds")

    # Matching
    default_page_size: int = Field(default=20, ge=1, description="Default number of candidates per page")
    max_page_size: int = Field(default=100, ge=1, le=100, description="Upper bound for candidates per page")
    candidate_pool_limit: int = Field(default=500, ge=1, description="Max profiles loaded per candidate search")
    bachelors_education_value: str = Field(
        default="bachelors-degree",
        description="Education option treated as the bachelor's threshold",
    )
    unranked_education_values: str = Field(
        default="other",
        description="Comma-separated education options excluded from ordinal comparison",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def unranked_education_list(self) -> list[str]:
        """Parse unranked education values into a list."""
        return [value.strip() for value in self.unranked_education_values.split(",") if value.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


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
