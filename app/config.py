# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Loads configuration from environment variables using pydantic-settings.
# A single Settings class holds every configuration value for the API,
# the Celery worker and the vendor clients (LLMs, RapidAPI, PixelCut).
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Vendor keys other than OpenAI are optional: a provider whose key is
    missing is reported as unconfigured instead of failing startup.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="JWT secret used to verify HS256 Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (Celery broker + websocket event bridge)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # AI Providers
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str = Field(
        ...,
        description="OpenAI API key"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Fallback model when an agent has no model configured"
    )

    ANTHROPIC_API_KEY: str = Field(
        default="",
        description="Anthropic API key (Claude models)"
    )

    GEMINI_API_KEY: str = Field(
        default="",
        description="Google Gemini API key"
    )

    DEEPSEEK_API_KEY: str = Field(
        default="",
        description="DeepSeek API key"
    )

    DEEPSEEK_BASE_URL: str = Field(
        default="https://api.deepseek.com",
        description="Base URL of the OpenAI-compatible DeepSeek endpoint"
    )

    DEFAULT_AI_TEMPERATURE: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature used when a request does not set one"
    )

    DEFAULT_AI_MAX_TOKENS: int = Field(
        default=2000,
        ge=1,
        description="Max output tokens used when a request does not set one"
    )

    LISTING_AGENT_ID: str = Field(
        default="agent-amazon-listings",
        description="Agent row that configures the Amazon listing pipeline"
    )

    # -------------------------------------------------------------------------
    # Data Enrichment / Image Tools
    # -------------------------------------------------------------------------

    RAPIDAPI_KEY: str = Field(
        default="",
        description="RapidAPI key for the Real-Time Amazon Data API"
    )

    RAPIDAPI_HOST: str = Field(
        default="real-time-amazon-data.p.rapidapi.com",
        description="RapidAPI host for Amazon data"
    )

    PIXELCUT_API_KEY: str = Field(
        default="",
        description="PixelCut developer API key"
    )

    PIXELCUT_BASE_URL: str = Field(
        default="https://api.developer.pixelcut.ai/v1",
        description="PixelCut developer API base URL"
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for outbound REST calls"
    )

    # -------------------------------------------------------------------------
    # Credits
    # -------------------------------------------------------------------------

    LOW_CREDIT_THRESHOLD: int = Field(
        default=100,
        ge=0,
        description="Balance under which the dashboard warns about credits"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Import Settings
    # -------------------------------------------------------------------------

    MAX_IMPORT_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum size of an uploaded CSV import in MB"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://app.com" -> ["http://localhost:3000", "https://app.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def max_import_size_bytes(self) -> int:
        return self.MAX_IMPORT_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


settings = get_settings()
