"""Application settings, read from ``ORDERFLOW_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["text", "json"] = "text"
    DATA_DIR: Path = Path("data")
    ORDER_NUMBER_PREFIX: str = "OF"

    # Shipping carrier (empty URL disables carrier calls)
    CARRIER_BASE_URL: str = ""
    CARRIER_USERNAME: str = ""
    CARRIER_PASSWORD: str = ""
    CARRIER_TOKEN: str = ""
    CARRIER_TIMEOUT_SECONDS: float = 10.0
    CARRIER_SERVICE_CODE: str = "LCOD"
    CARRIER_WEBHOOK_TOKEN: str = ""

    # Pickup details sent with new shipments
    STORE_NAME: str = ""
    STORE_PHONE: str = ""
    STORE_ADDRESS: str = ""
    STORE_WARD_CODE: str = ""
    STORE_DISTRICT_CODE: str = ""
    STORE_PROVINCE_CODE: str = ""

    model_config = SettingsConfigDict(
        env_prefix="ORDERFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("CARRIER_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("CARRIER_TIMEOUT_SECONDS")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("carrier timeout must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
