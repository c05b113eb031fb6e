"""Configuration package."""

from powerbill.config.settings import (
    AppSettings,
    BillingSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "BillingSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
