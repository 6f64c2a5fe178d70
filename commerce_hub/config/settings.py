"""
Commerce Hub
Centralized Configuration Management

Configuration is read once from the environment (and an optional `.env`
file) using pydantic settings, split into one section per subsystem.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Commerce store (catalog, users, reviews, orders) configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="commerce", description="Database name")
    user: str = Field(default="user", description="Database user")
    password: SecretStr = Field(default="password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL (overrides host/port)")
    create_tables: bool = Field(default=False, description="Create missing tables on startup")

    @property
    def async_url(self) -> str:
        """Async database URL, asyncpg unless `url` says otherwise"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class AnalyticsDatabaseSettings(DatabaseSettings):
    """Analytics store (views, actions, goals) configuration"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_POSTGRES_")

    db: str = Field(default="analytics", description="Database name")


class RedisSettings(BaseSettings):
    """Redis configuration, used by the redis broadcast backend"""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[SecretStr] = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    socket_timeout: int = Field(default=5, description="Socket timeout in seconds")
    url: Optional[str] = Field(default=None, description="Redis URL (overrides host/port)")

    def get_url(self) -> str:
        """Redis connection URL - uses REDIS_URL if set, otherwise builds from host/port"""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class BroadcastSettings(BaseSettings):
    """Live catalog broadcast configuration"""

    model_config = SettingsConfigDict(env_prefix="BROADCAST_")

    backend: str = Field(default="memory", description="Transport: memory or redis")
    channel: str = Field(default="catalog-mutations", description="Redis pub/sub channel")
    subscriber_queue_size: int = Field(default=100, ge=1, description="Pending events kept per subscriber")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        allowed = ["memory", "redis"]
        if v.lower() not in allowed:
            raise ValueError(f"Broadcast backend must be one of: {allowed}")
        return v.lower()


class CommerceSettings(BaseSettings):
    """Commerce behaviour switches"""

    model_config = SettingsConfigDict(env_prefix="COMMERCE_")

    serialize_score_recompute: bool = Field(
        default=False,
        description="Serialize average score recomputation per product (in-process)",
    )


class SecuritySettings(BaseSettings):
    """HTTP security configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or console")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE", description="Log file path")


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
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="commerce-hub", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    analytics_database: AnalyticsDatabaseSettings = Field(default_factory=AnalyticsDatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    broadcast: BroadcastSettings = Field(default_factory=BroadcastSettings)
    commerce: CommerceSettings = Field(default_factory=CommerceSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
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
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
