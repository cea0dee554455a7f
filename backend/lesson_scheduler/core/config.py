# backend/lesson_scheduler/core/config.py
from functools import lru_cache
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)

StoreBackend = Literal["memory", "database"]


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and backend/.env."""

    environment: str = "development"
    log_level: str = "INFO"

    # Persistence
    store_backend: StoreBackend = Field(
        default="memory",
        description="Which booking store to use: in-process memory or SQL database",
    )
    database_url: str = "sqlite:///./lesson_scheduler.db"
    data_file: Optional[str] = Field(
        default=None,
        description="Optional JSON file the memory store persists to after each commit",
    )

    # Booking rules
    max_recurring_count: int = 52
    default_duration_minutes: int = 30
    default_timezone: str = "America/New_York"
    booking_lock_timeout_s: float = 10.0

    # Email
    resend_api_key: Optional[SecretStr] = None
    email_from: str = "Lessons <bookings@example.com>"
    public_base_url: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("store_backend", mode="before")
    @classmethod
    def normalize_store_backend(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("max_recurring_count", "default_duration_minutes")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("booking_lock_timeout_s")
    @classmethod
    def validate_lock_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("booking_lock_timeout_s must be positive")
        return v

    @property
    def email_enabled(self) -> bool:
        return bool(self.resend_api_key and self.resend_api_key.get_secret_value())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
