"""Application settings and configuration.

This module defines all configuration options for the Koradi Board service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Koradi Board", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Listener
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Shared secret guarding the /admin routes
    admin_api_key: str | None = Field(default=None, alias="ADMIN_API_KEY")

    # Expiry sweep cadence
    sweep_interval_seconds: float = Field(default=60.0, gt=0, alias="SWEEP_INTERVAL_SECONDS")

    # Rate limiting per client address
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit: str = Field(default="48/minute", alias="RATE_LIMIT")

    security_headers_enabled: bool = Field(default=True, alias="SECURITY_HEADERS_ENABLED")

    # Token registry backend: "memory" or "redis"
    token_backend: str = Field(default="memory", alias="TOKEN_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Message store snapshots
    backup_enabled: bool = Field(default=False, alias="BACKUP_ENABLED")
    # Snapshot target: "local" directory or "s3" bucket
    backup_storage: str = Field(default="local", alias="BACKUP_STORAGE")
    backup_dir: str = Field(default="./backups", alias="BACKUP_DIR")
    backup_prefix: str = Field(default="message-backups", alias="BACKUP_PREFIX")
    backup_retention_days: int = Field(default=30, alias="BACKUP_RETENTION_DAYS")
    backup_interval_hours: float = Field(default=24.0, gt=0, alias="BACKUP_INTERVAL_HOURS")
    backup_compression_level: int = Field(
        default=6,
        ge=0,
        le=9,
        alias="BACKUP_COMPRESSION_LEVEL",
    )
    aws_backup_bucket: str | None = Field(default=None, alias="AWS_BACKUP_BUCKET")
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def backup_interval_seconds(self) -> float:
        """Return the backup cadence in seconds."""
        return self.backup_interval_hours * 3600

    @property
    def admin_enabled(self) -> bool:
        """Return True when an admin API key has been configured."""
        return bool(self.admin_api_key)


settings = Settings()
