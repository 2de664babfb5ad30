"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API Settings
    api_key: str = Field(
        default="dev-api-key",
        description="API key for authentication",
    )
    api_title: str = Field(
        default="Storefront Core",
        description="API title",
    )
    api_version: str = Field(
        default="0.1.0",
        description="API version",
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Catalog
    products_file: str = Field(
        default="",
        description="Path to a JSON product export used as the catalog source",
    )
    query_cache_size: int = Field(
        default=256,
        description="Maximum memoized catalog query results per catalog version",
    )

    # Cart persistence
    storage_backend: str = Field(
        default="memory",
        description="Snapshot storage backend (memory, redis)",
    )
    storage_namespace: str = Field(
        default="storefront",
        description="Key prefix for persisted cart and wishlist documents",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection string",
    )
    owner_cache_size: int = Field(
        default=1024,
        description="Carts (and wishlists) kept in memory between requests",
    )
    owner_cache_ttl_seconds: float = Field(
        default=300.0,
        description="Seconds before a cached cart or wishlist is re-read from storage",
    )
    cart_ttl_days: int = Field(
        default=30,
        description="Days to keep an untouched cart or wishlist document",
    )

    # Money (all amounts in minor currency units)
    currency: str = Field(
        default="NGN",
        description="Store currency (ISO 4217)",
    )
    free_shipping_threshold: int = Field(
        default=5_000_000,
        description="Subtotal at or above which shipping is free (minor units)",
    )
    shipping_fee: int = Field(
        default=200_000,
        description="Flat shipping fee below the free shipping threshold (minor units)",
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Enable JSON structured logging",
    )
    enable_tracing: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing",
    )
    otlp_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP gRPC endpoint for traces",
    )
    enable_metrics: bool = Field(
        default=True,
        description="Enable Prometheus metrics",
    )
    service_name: str = Field(
        default="storefront-core",
        description="Service name for telemetry",
    )
    service_environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
