"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    products_table: str = Field(
        default="products",
        description="Local catalog table (sku, titulo)"
    )
    mappings_table: str = Field(
        default="sige_mappings",
        description="Confirmed SKU -> SIGE product mappings"
    )

    # ===================
    # SIGE ERP
    # ===================
    sige_base_url: Optional[str] = Field(
        None,
        description="SIGE REST API base URL"
    )
    sige_api_token: Optional[str] = Field(
        None,
        description="Bearer token for the SIGE API (acquired outside this service)"
    )
    sige_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        le=120,
        description="Per-request timeout for SIGE calls"
    )
    sige_balance_concurrency: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Balance fetches in flight per group"
    )
    sige_catalog_page_size: int = Field(
        default=500,
        ge=1,
        le=500,
        description="Page size when listing the SIGE product catalog"
    )
    local_catalog_page_size: int = Field(
        default=1000,
        ge=1,
        le=1000,
        description="Page size when reading the local products table"
    )

    # ===================
    # BALANCE LOOKUP CACHE
    # ===================
    balance_cache_ttl_found_seconds: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="How long a found balance lookup is reused"
    )
    balance_cache_ttl_not_found_seconds: int = Field(
        default=120,
        ge=0,
        le=3600,
        description="How long a not-found balance lookup is reused"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def sige_configured(self) -> bool:
        """Check if the SIGE base URL is set."""
        return bool(self.sige_base_url)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
