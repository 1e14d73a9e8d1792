"""
Cropper session state.

SourceImage and CropResult are immutable; ViewState is the only thing
mutated by zoom and drag gestures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import Optional

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from subscription_tracker.cropper.errors import ImageLoadError
from subscription_tracker.cropper.geometry import Point


@dataclass(frozen=True)
class SourceImage:
    """A decoded image owned by one cropping session."""
    pixels: Image.Image
    natural_width: int
    natural_height: int
    label: str = ""

    @classmethod
    def from_image(cls, image: Optional[Image.Image], label: str = "") -> "SourceImage":
        if image is None:
            raise ImageLoadError("No pixel data supplied")
        width, height = image.size
        if width <= 0 or height <= 0:
            raise ImageLoadError(f"Image has no area ({width}x{height})")
        return cls(
            pixels=image,
            natural_width=width,
            natural_height=height,
            label=label,
        )


@dataclass
class ViewState:
    """Pan and zoom for the loaded image."""
    scale: float
    offset: Point = (0.0, 0.0)
    is_dragging: bool = False
    drag_anchor: Optional[Point] = field(default=None)

    @classmethod
    def fitted(cls, min_scale: float) -> "ViewState":
        return cls(scale=min_scale)


class CropResult(BaseModel):
    """An encoded square crop, ready for upload."""
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(
        ...,
        min_length=1,
        repr=False,
    )
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    format: str = Field(
        default="JPEG",
        description="Pillow format name"
    )
    mime_type: str = "image/jpeg"
    quality: int = Field(
        default=90,
        ge=0,
        le=100,
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return "jpg" if self.format.upper() == "JPEG" else self.format.lower()

    def open(self) -> Image.Image:
        """Decode the blob back into a Pillow image."""
        return Image.open(BytesIO(self.data))
