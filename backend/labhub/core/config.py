# backend/labhub/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Set

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


PROD_SITE_MODES: Set[str] = {"prod", "production", "beta", "live"}


def _classify_environment(raw_site_mode: str | None) -> str:
    """Map SITE_MODE onto the coarse environment name used across the app."""

    normalized = (raw_site_mode or "").strip().lower()
    if normalized in PROD_SITE_MODES:
        return "production"
    if normalized == "test":
        return "test"
    return "development"


class Settings(BaseSettings):
    app_name: str = Field(default=BRAND_NAME, description="Display name for the API")

    # Environment (derived from SITE_MODE)
    environment: str = _classify_environment(os.getenv("SITE_MODE", "local"))

    database_url: str = Field(
        default="sqlite:///./labhub.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL for the bookings database",
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements (debug only)")
    db_pool_size: int = Field(default=10, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)

    # Lab booking engine
    lab_lock_backend: Literal["local", "redis"] = Field(
        default="local",
        alias="LAB_LOCK_BACKEND",
        description="Named lock backend for per-space/per-user critical sections",
    )
    lab_lock_timeout_s: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for a named lock before giving up",
    )
    lab_lock_ttl_s: int = Field(
        default=30,
        ge=1,
        description="Expiry for redis-held locks so a crashed worker cannot wedge a space",
    )
    lab_check_in_early_minutes: int = Field(
        default=15,
        ge=0,
        description="How long before starts_at an owner may check in",
    )

    # Cache / lock store
    redis_url: str = "redis://localhost:6379"

    # Observability
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    prometheus_enabled: bool = Field(default=True, alias="PROMETHEUS_ENABLED")

    # Legacy flag, set to True when running tests
    is_testing: bool = False

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level


settings = Settings()
logger.info(
    "[CONFIG] Lab booking configuration: environment=%s lock_backend=%s",
    settings.environment,
    settings.lab_lock_backend,
)
