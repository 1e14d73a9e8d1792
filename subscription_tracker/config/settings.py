"""
Configuration Management for Subscription Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CloudinarySettings(BaseSettings):
    """Cloudinary image storage configuration (avatars and custom icons)."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDINARY_",
        extra="ignore"
    )

    cloud_name: str = Field(
        ...,
        description="Cloudinary cloud name"
    )
    api_key: str = Field(
        ...,
        description="Cloudinary API key"
    )
    api_secret: str = Field(
        ...,
        description="Cloudinary API secret"
    )
    root_folder: str = Field(
        default="subscription_tracker",
        description="Folder all uploads are placed under"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    subscriptions_sheet_name: str = Field(
        default="Subscriptions",
        description="Name of the sheet for subscriptions"
    )
    profiles_sheet_name: str = Field(
        default="Profiles",
        description="Name of the sheet for user profiles"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class CropperSettings(BaseSettings):
    """
    Circular avatar cropper configuration.

    The defaults are the reference values; every client of the cropper
    must agree on them for crops to be reproducible.
    """

    model_config = SettingsConfigDict(
        env_prefix="CROPPER_",
        extra="ignore"
    )

    canvas_size: int = Field(
        default=300,
        gt=0,
        description="Side length of the square preview surface, px"
    )
    crop_diameter: int = Field(
        default=250,
        gt=0,
        description="Diameter of the crop circle and side of the exported square, px"
    )
    zoom_min: float = Field(
        default=0.5,
        gt=0.0,
        description="Nominal lower end of the zoom slider"
    )
    zoom_max: float = Field(
        default=3.0,
        gt=0.0,
        description="Upper bound for the zoom scale"
    )
    zoom_step: float = Field(
        default=0.1,
        gt=0.0,
        description="Zoom slider step"
    )
    export_quality: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Compression quality of the exported crop (0-1)"
    )
    export_format: str = Field(
        default="JPEG",
        description="Pillow format name of the exported crop"
    )
    background_color: str = Field(
        default="#f3f4f6",
        description="Fill color behind the image"
    )
    overlay_opacity: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Opacity of the dimming overlay outside the crop circle"
    )
    border_color: str = Field(
        default="#ffffff",
        description="Color of the crop circle outline"
    )
    border_width: int = Field(
        default=2,
        ge=0,
        description="Width of the crop circle outline, px"
    )

    @model_validator(mode='after')
    def validate_geometry(self) -> 'CropperSettings':
        """The crop circle must leave a dimmed border inside the canvas."""
        if self.crop_diameter >= self.canvas_size:
            raise ValueError("crop_diameter must be smaller than canvas_size")
        if self.zoom_min > self.zoom_max:
            raise ValueError("zoom_min cannot be greater than zoom_max")
        return self

    @property
    def export_quality_percent(self) -> int:
        """Quality on Pillow's 0-100 scale."""
        return int(round(self.export_quality * 100))


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    image_fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout when fetching a remote image for cropping"
    )

    # Subscription defaults
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency used for new profiles"
    )
    upcoming_window_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="How many days ahead the dashboard lists renewals"
    )
    max_subscription_cost: float = Field(
        default=10000.0,
        description="Costs above this are flagged for review (sanity check)"
    )

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def cloudinary(self) -> CloudinarySettings:
        return CloudinarySettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def cropper(self) -> CropperSettings:
        return CropperSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("cloudinary", "google_sheets", "cropper", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
