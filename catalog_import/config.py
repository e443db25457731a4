"""Configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
import os
import structlog


class ImportSettings(BaseSettings):
    """Bulk import pipeline tuning loaded from environment variables.

    All settings prefixed with IMPORT_ (e.g., IMPORT_WRITE_BATCH_SIZE=500)
    """

    # Category resolution
    category_batch_size: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Category triples resolved concurrently per batch"
    )

    # Existing-record fetch
    fetch_batch_size: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Product names per lookup query"
    )
    max_concurrent_fetches: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Lookup queries in flight at once"
    )

    # Reconciliation
    reconcile_workers: int = Field(
        default=0,
        ge=0,
        le=256,
        description="Reconciliation shards (0 = number of CPUs)"
    )

    # Batch writer
    write_batch_size: int = Field(
        default=250,
        ge=1,
        le=2000,
        description="Records per create/update batch"
    )
    max_concurrent_writes: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Write batches in flight at once"
    )
    id_collision_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Times a create batch redraws ids already taken in storage"
    )

    # CSV reading
    csv_chunk_size: int = Field(
        default=5000,
        ge=1,
        description="Rows read from the file per chunk"
    )
    csv_encoding: str = Field(
        default="utf-8",
        description="File encoding (latin-1 is tried on decode failure)"
    )
    csv_delimiter: str = Field(
        default=",",
        min_length=1,
        max_length=5,
        description="Field delimiter"
    )

    model_config = SettingsConfigDict(
        env_prefix="IMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def shard_count(self) -> int:
        """Return the effective number of reconciliation shards."""
        if self.reconcile_workers:
            return self.reconcile_workers
        return os.cpu_count() or 1


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str

    # Redis Configuration
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_url: Optional[str] = None

    # Queue Configuration
    queue_name: str = "catalog-import-queue"

    # Worker Configuration
    max_workers: int = 2
    job_timeout: int = 1800
    log_level: str = "INFO"
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        """Initialize settings and build derived values."""
        super().__init__(**kwargs)
        # Build Redis URL if not provided
        if not self.redis_url:
            auth = f":{self.redis_password}@" if self.redis_password else ""
            self.redis_url = f"redis://{auth}{self.redis_host}:{self.redis_port}/0"


# Global settings instances
settings = Settings()
import_settings = ImportSettings()


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog for JSON logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Initialize logging on module import (after settings are loaded)
configure_logging(settings.log_level)
