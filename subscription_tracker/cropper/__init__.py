"""Circular avatar cropper package."""

from subscription_tracker.cropper.engine import CircularCropEngine
from subscription_tracker.cropper.errors import (
    CropperError,
    ExportError,
    ImageLoadError,
    NotLoadedError,
)
from subscription_tracker.cropper.source import ImageSourceProvider
from subscription_tracker.cropper.state import CropResult, SourceImage, ViewState
from subscription_tracker.cropper.surface import RasterSurface

__all__ = [
    "CircularCropEngine",
    "CropResult",
    "CropperError",
    "ExportError",
    "ImageLoadError",
    "ImageSourceProvider",
    "NotLoadedError",
    "RasterSurface",
    "SourceImage",
    "ViewState",
]
