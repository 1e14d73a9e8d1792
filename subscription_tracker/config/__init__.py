"""Configuration package."""

from subscription_tracker.config.settings import (
    AppSettings,
    CloudinarySettings,
    CropperSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CloudinarySettings",
    "CropperSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
