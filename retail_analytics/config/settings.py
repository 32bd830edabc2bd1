"""
Retail Sales Analytics Engine
Centralized Configuration Management

Pydantic settings with environment variable support. Every threshold used
by the anomaly rules lives here so a deployment can tune them without a
code change.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Record store connection"""

    model_config = SettingsConfigDict(env_prefix="RETAIL_DB_")

    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL (overrides host/port)")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="salon", description="Database name")
    user: str = Field(default="analytics", description="Database user")
    password: SecretStr = Field(default="change-me", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")

    @property
    def async_url(self) -> str:
        """Async database URL, asyncpg unless overridden"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.name}"


class AnalyticsSettings(BaseSettings):
    """Aggregation and anomaly rule configuration"""

    model_config = SettingsConfigDict(env_prefix="RETAIL_")

    page_size: int = Field(default=1000, gt=0, description="Rows per paginated fetch")
    header_chunk_size: int = Field(default=200, gt=0, description="Sale-header ids per lookup query")
    fetch_timeout_seconds: Optional[float] = Field(default=None, description="Whole-report timeout")

    product_types: List[str] = Field(default=["product", "retail"], description="Item types counted as retail")
    service_types: List[str] = Field(default=["service"], description="Item types counted as services")

    # Declining sales, percent change vs prior period
    declining_warning_pct: float = Field(default=-20.0)
    declining_danger_pct: float = Field(default=-50.0)

    # Heavy discounting, percent of pre-discount value
    discount_warning_pct: float = Field(default=15.0)
    discount_danger_pct: float = Field(default=30.0)

    # Slow movers
    slow_mover_max_units: int = Field(default=3)
    slow_mover_danger_units: int = Field(default=1)
    slow_mover_min_span_days: int = Field(default=14)


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="console", alias="LOG_FORMAT", description="Log format: json or console")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="retail-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
