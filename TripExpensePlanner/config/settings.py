"""
Settings Module

Central configuration for the trip expense planner, loaded from environment
variables (prefix TRIP_) or a local .env file.

Settings:
    - reference_currency: currency all balances are normalized to
    - foreign_currency: the one currency converted at a fixed rate
    - exchange_rate: foreign -> reference multiplier
    - firebase_credentials_path: service account JSON for Firestore
    - log_level / log_json: structlog output
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRIP_",
        env_file=".env",
        extra="ignore"
    )

    reference_currency: str = Field(
        default="TWD",
        description="Currency all balances are settled in"
    )
    foreign_currency: str = Field(
        default="JPY",
        description="Currency converted into the reference currency"
    )
    exchange_rate: float = Field(
        default=0.215,
        gt=0,
        description="Fixed foreign -> reference conversion rate"
    )

    firebase_credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Firebase service account credentials JSON"
    )

    log_level: str = Field(default="INFO")
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output"
    )

    @field_validator("reference_currency", "foreign_currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        """Normalize currency codes to upper case (jpy -> JPY)."""
        return v.strip().upper()

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        """Normalize the log level name for the logging module."""
        return v.strip().upper()


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
