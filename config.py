"""Configuration management for ephemera."""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    """Application configuration."""

    # Database settings
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL; SQLite at db_path is used when unset"
    )

    db_path: str = Field(
        default="./ephemera.db",
        description="SQLite database file"
    )

    db_max_connections: int = Field(
        default=25,
        ge=1,
        description="Maximum number of open database connections"
    )

    db_max_idle_conns: int = Field(
        default=5,
        ge=0,
        description="Connections kept open while idle"
    )

    db_connection_timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="Connect and command timeout in seconds"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8080,
        description="Port to listen on"
    )

    workers: int = Field(
        default=1,
        ge=1,
        description="Number of uvicorn worker processes. Each worker owns its own pool, counter updater and sweeper."
    )

    environment: str = Field(
        default="development",
        description="Deployment environment name"
    )

    base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL for generating short URLs"
    )

    allowed_origins: str = Field(
        default="*",
        description="Comma-separated CORS origins, or '*'"
    )

    # Storage settings
    upload_dir: str = Field(
        default="uploads",
        description="Directory holding uploaded files"
    )

    max_file_size_mb: int = Field(
        default=50,
        ge=1,
        description="Largest accepted upload in megabytes"
    )

    expiration_days: int = Field(
        default=7,
        ge=1,
        description="Retention window of uploaded content in days"
    )

    # Security settings
    admin_secret: str = Field(
        default="",
        description="Shared secret for admin endpoints; empty disables them"
    )

    rate_limit_per_sec: float = Field(
        default=10,
        gt=0,
        description="Sustained request rate across all clients"
    )

    rate_limit_burst: int = Field(
        default=10,
        ge=1,
        description="Requests allowed in a burst"
    )

    # Lifecycle settings
    sweep_interval_seconds: int = Field(
        default=3600,
        ge=1,
        description="Interval between expiry sweeps"
    )

    counter_queue_size: int = Field(
        default=1000,
        ge=1,
        description="Pending counter updates before new ones are dropped"
    )

    counter_workers: int = Field(
        default=2,
        ge=1,
        description="Worker tasks applying counter updates"
    )

    max_collision_retries: int = Field(
        default=5,
        ge=1,
        description="Maximum retries when generating ids and short codes"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @property
    def max_file_size(self) -> int:
        """Upload limit in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def cors_origins(self) -> List[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def safe_dump(self) -> dict:
        """Settings for logging, with secrets masked."""
        data = self.model_dump()
        if data.get("admin_secret"):
            data["admin_secret"] = "***"
        if data.get("database_url"):
            data["database_url"] = "***"
        return data


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
