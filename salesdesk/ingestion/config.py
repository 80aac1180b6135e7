import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("salesdesk.ingestion.config")


class IngestionSettings(BaseSettings):
    """CSV lead import limits, read from INGESTION_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="INGESTION_",
        env_file=".env",
        extra="ignore",
    )

    # Upload cap in megabytes
    max_csv_size_mb: int = Field(default=5, gt=0)
    # Leads inserted per commit
    batch_size: int = Field(default=50, gt=0)

    @property
    def max_bytes(self) -> int:
        return self.max_csv_size_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    loaded = IngestionSettings()
    logger.info(
        "CSV import limits: %s MB per file, %s leads per batch",
        loaded.max_csv_size_mb,
        loaded.batch_size,
    )
    return loaded


ingestion_settings = get_ingestion_settings()
