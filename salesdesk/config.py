from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./data/salesdesk.db"


class Settings(BaseSettings):
    """
    Central configuration for the SalesDesk CRM backend.

    - Reads from .env (local) and process environment.
    - Missing DATABASE_URL falls back to a local SQLite file so the app
      still starts on a fresh checkout.
    - Ignores extra env vars so adding new ones doesn't break startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Core app
    # -------------------------------------------------------------------------
    app_name: str = Field(default="SalesDesk CRM", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    environment: str = Field(default="local", alias="ENVIRONMENT")

    cors_origins_raw: Optional[str] = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        alias="CORS_ORIGINS",
    )

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    database_url_raw: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @property
    def database_url(self) -> str:
        if not self.database_url_raw or not self.database_url_raw.strip():
            return DEFAULT_DATABASE_URL
        return self.database_url_raw.strip()

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url_raw and self.database_url_raw.strip())

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------
    #   ADMIN_EMAILS=owner@example.com,cfo@example.com
    admin_emails_raw: Optional[str] = Field(default=None, alias="ADMIN_EMAILS")

    @property
    def admin_emails(self) -> list[str]:
        """Lower-cased admin allowlist. Safe if env is missing or empty."""
        if not self.admin_emails_raw:
            return []
        return [
            email.strip().lower()
            for email in self.admin_emails_raw.split(",")
            if email.strip()
        ]

    @property
    def cors_origins(self) -> list[str]:
        if not self.cors_origins_raw:
            return []
        return [o.strip() for o in self.cors_origins_raw.split(",") if o.strip()]

    # -------------------------------------------------------------------------
    # Lead timers + polling
    # -------------------------------------------------------------------------
    lead_sla_days: int = Field(default=3, alias="LEAD_SLA_DAYS")
    severe_overdue_days: int = Field(default=14, alias="SEVERE_OVERDUE_DAYS")
    lead_timer_interval_seconds: float = Field(
        default=60.0,
        alias="LEAD_TIMER_INTERVAL_SECONDS",
    )
    monitoring_interval_seconds: float = Field(
        default=5.0,
        alias="MONITORING_INTERVAL_SECONDS",
    )
    enable_refresh_loops: bool = Field(default=True, alias="ENABLE_REFRESH_LOOPS")

    # -------------------------------------------------------------------------
    # CSV import
    # -------------------------------------------------------------------------
    import_default_industry: str = Field(
        default="HENKILÖSTÖVUOKRAUS",
        alias="IMPORT_DEFAULT_INDUSTRY",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    @field_validator(
        "lead_sla_days",
        "severe_overdue_days",
        "lead_timer_interval_seconds",
        "monitoring_interval_seconds",
    )
    @classmethod
    def _positive(cls, v):
        if v <= 0:
            raise ValueError("timer settings must be > 0")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader so config is evaluated once per process.
    """
    settings = Settings()
    if not settings.database_configured:
        logger.warning(
            "DATABASE_URL is not set; falling back to %s",
            DEFAULT_DATABASE_URL,
        )
    if not settings.admin_emails:
        logger.warning(
            "ADMIN_EMAILS is empty; every new actor will resolve to the salesman role."
        )
    logger.info(
        "Settings loaded (env=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )
    return settings


# Singleton used everywhere else
settings: Settings = get_settings()
