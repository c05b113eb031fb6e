"""
Configuration Management for PowerBill

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, grouped by the component that
reads it. Every value has a working default so the app starts with no
environment at all.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POWERBILL_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".powerbill",
        description="Directory holding the persisted data document"
    )
    storage_key: str = Field(
        default="powerbill_manager_data_v1",
        min_length=1,
        description="Key the whole data document is stored under"
    )
    backup_prefix: str = Field(
        default="powerbill_backup",
        min_length=1,
        description="Filename prefix for exported backups"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        """Allow '~' in the configured directory."""
        return v.expanduser()


class BillingSettings(BaseSettings):
    """Bill snapshot generation and sharing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POWERBILL_BILLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    due_in_days: int = Field(
        default=14,
        ge=0,
        le=90,
        description="Days between billing date and due date"
    )
    simulated_latency_seconds: float = Field(
        default=1.5,
        ge=0.0,
        le=30.0,
        description="Artificial delay of the simulated bill service"
    )
    portal_url: str = Field(
        default="https://tgsouthernpower.org/billinginfo",
        description="Official bill lookup page; the account number is appended as ukscno"
    )
    share_country_code: str = Field(
        default="91",
        pattern=r"^\d{1,4}$",
        description="Country calling code used for WhatsApp share links"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="POWERBILL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )
    default_label_prefix: str = Field(
        default="UKSC",
        description="Prefix of the label given to newly added meters"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def billing(self) -> BillingSettings:
        return BillingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
