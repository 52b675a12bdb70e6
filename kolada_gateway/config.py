"""Configuration management for the Kolada gateway.

Settings are loaded from environment variables (prefix ``KOLADA_``) and an
optional ``.env`` file using pydantic-settings. Out-of-range values fail
fast at startup.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables.

    Upstream API:
    - KOLADA_API_BASE_URL: Root of the Kolada v3 API
    - KOLADA_RATE_LIMIT: Requests per second allowed by the API (default: 5)
    - KOLADA_TIMEOUT: Per-request timeout in seconds (default: 30)
    - KOLADA_MAX_BATCH_SIZE: Max identifiers per request (default: 25)

    Cache TTLs are in seconds.
    """

    api_base_url: str = Field(default="https://api.kolada.se/v3")

    # Rate limiting
    rate_limit: float = Field(default=5.0, gt=0, le=50, description="Requests per second")
    max_concurrent_requests: int | None = Field(
        default=1,
        ge=1,
        description="Cap on in-flight requests; None only spaces request starts",
    )

    # Requests
    timeout: float = Field(default=30.0, gt=0, le=300)
    max_retries: int = Field(default=3, ge=0, le=10)
    retry_delay_base: float = Field(default=1.0, ge=0, le=60)
    max_batch_size: int = Field(default=25, ge=1, le=100)

    # Caching
    cache_ttl: float = Field(default=86400.0, gt=0, description="Catalog data (24h)")
    kpi_ttl: float = Field(default=3600.0, gt=0, description="Single KPI lookups (1h)")
    data_ttl: float = Field(default=300.0, gt=0, description="KPI values (5min)")
    cache_cleanup_interval: float = Field(default=3600.0, gt=0)

    # Logging
    log_mode: str = Field(default="development")

    model_config = SettingsConfigDict(
        env_prefix="KOLADA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def min_request_interval(self) -> float:
        """Seconds between request starts (5 req/s -> 0.2s)."""
        return 1.0 / self.rate_limit


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance with validated configuration

    Raises:
        ValidationError: If a setting is out of range
    """
    return Settings()
