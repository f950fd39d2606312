# salon_scheduler/config.py

"""Application settings and configuration"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Basic app settings
    APP_NAME: str = Field(default="Salon Scheduler")
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Database settings
    DATABASE_URL: str = Field(default="sqlite:///./salon.db")

    # JWT session tokens
    SECRET_KEY: str = Field(default="change-me-later")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)

    # Shared secret for the public booking API (x-api-key header)
    PUBLIC_API_KEY: Optional[str] = Field(default=None)

    # Scheduling
    TIMEZONE: str = Field(default="America/Sao_Paulo")
    SLOT_STEP_MINUTES: int = Field(default=30, gt=0)
    SAME_DAY_LEAD_MINUTES: int = Field(default=120, ge=0)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
