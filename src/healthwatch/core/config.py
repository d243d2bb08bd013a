"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="healthwatch", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")

    # Health checks
    health_check_timeout_seconds: float = Field(
        default=2.0, gt=0, description="Per-check timeout in seconds"
    )
    health_max_concurrency: int | None = Field(
        default=None, ge=1, description="Max probes running at once (None = unbounded)"
    )
    health_cache_ttl_seconds: float = Field(
        default=0.0, ge=0, description="Seconds a report is reused (0 = disabled)"
    )
    health_process_check: bool = Field(
        default=True, description="Register the process liveness check"
    )
    health_system_checks: bool = Field(
        default=True, description="Register memory and disk readiness checks"
    )
    health_memory_threshold_percent: float = Field(
        default=90.0, gt=0, le=100, description="Memory usage that marks readiness DOWN"
    )
    health_disk_threshold_percent: float = Field(
        default=95.0, gt=0, le=100, description="Disk usage that marks readiness DOWN"
    )
    health_disk_path: str = Field(default="/", description="Path checked for disk usage")
    health_dependency_urls: dict[str, str] = Field(
        default_factory=dict,
        description="Readiness HTTP dependencies, check name -> URL",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
