"""
Pillow-backed raster surface.

Provides just the 2D operations the cropper needs, named after the
canvas compositing modes they reproduce:

- ``fill`` / ``draw_image``      source-over
- ``keep_inside_circle``         destination-in with a circular mask
- ``overlay_outside_circle``     a dimming layer whose circle was erased
                                 (destination-out) before source-over
- ``stroke_circle``              outline along the circle boundary
"""

from io import BytesIO
from typing import Optional

from PIL import Image, ImageChops, ImageColor, ImageDraw

from subscription_tracker.cropper.errors import ExportError
from subscription_tracker.cropper.geometry import Box

TRANSPARENT = (0, 0, 0, 0)


class RasterSurface:
    """A square RGBA (or RGB) drawing surface."""

    def __init__(
        self,
        size: int,
        mode: str = "RGBA",
        background: Optional[str] = None,
    ):
        if size <= 0:
            raise ValueError("Surface size must be positive")
        self._size = size
        self._mode = mode
        self._background = background
        self._image = self._blank()

    def _blank(self) -> Image.Image:
        if self._background is not None:
            return Image.new(self._mode, (self._size, self._size), self._background)
        return Image.new(self._mode, (self._size, self._size), TRANSPARENT if self._mode == "RGBA" else 0)

    @property
    def size(self) -> int:
        return self._size

    @property
    def center(self) -> float:
        return self._size / 2

    def _circle_mask(self, cx: float, cy: float, radius: float) -> Image.Image:
        mask = Image.new("L", (self._size, self._size), 0)
        ImageDraw.Draw(mask).ellipse(
            (cx - radius, cy - radius, cx + radius, cy + radius),
            fill=255,
        )
        return mask

    def clear(self) -> None:
        self._image = self._blank()

    def fill(self, color: str) -> None:
        layer = Image.new("RGBA", (self._size, self._size), color)
        self._composite(layer)

    def draw_image(
        self,
        image: Image.Image,
        x: float,
        y: float,
        scale: float,
    ) -> None:
        """
        Draw ``image`` with its top-left corner at (x, y), scaled by ``scale``.

        Uses an inverse affine transform so only the visible part of the
        image is resampled, whatever the zoom level.
        """
        source = image if image.mode == "RGBA" else image.convert("RGBA")
        inverse = 1.0 / scale
        layer = source.transform(
            (self._size, self._size),
            Image.Transform.AFFINE,
            (inverse, 0.0, -x * inverse, 0.0, inverse, -y * inverse),
            resample=Image.Resampling.BILINEAR,
            fillcolor=TRANSPARENT,
        )
        self._composite(layer)

    def paste_region(self, image: Image.Image, source_box: Box, dest: Box) -> None:
        """Resample ``source_box`` of ``image`` into the ``dest`` (x, y, w, h) box."""
        dx, dy, dw, dh = dest
        width, height = int(round(dw)), int(round(dh))
        if width <= 0 or height <= 0:
            return
        region = image.resize(
            (width, height),
            Image.Resampling.LANCZOS,
            box=source_box,
        )
        position = (int(round(dx)), int(round(dy)))
        if region.mode == "RGBA":
            self._image.paste(region, position, region)
        else:
            self._image.paste(region.convert(self._image.mode), position)

    def keep_inside_circle(self, cx: float, cy: float, radius: float) -> None:
        mask = self._circle_mask(cx, cy, radius)
        rgba = self._as_rgba()
        rgba.putalpha(ImageChops.multiply(rgba.getchannel("A"), mask))
        self._image = rgba

    def overlay_outside_circle(
        self,
        color: str,
        opacity: float,
        cx: float,
        cy: float,
        radius: float,
    ) -> None:
        r, g, b = ImageColor.getrgb(color)[:3]
        overlay = Image.new(
            "RGBA",
            (self._size, self._size),
            (r, g, b, int(round(255 * opacity))),
        )
        hole = ImageChops.invert(self._circle_mask(cx, cy, radius))
        overlay.putalpha(ImageChops.multiply(overlay.getchannel("A"), hole))
        self._composite(overlay)

    def stroke_circle(
        self,
        cx: float,
        cy: float,
        radius: float,
        color: str,
        width: int,
    ) -> None:
        if width <= 0:
            return
        # Pillow draws outlines inward from the box; widen it so the stroke
        # straddles the circle boundary
        half = width / 2
        ImageDraw.Draw(self._image).ellipse(
            (cx - radius - half, cy - radius - half, cx + radius + half, cy + radius + half),
            outline=color,
            width=width,
        )

    def _as_rgba(self) -> Image.Image:
        return self._image if self._image.mode == "RGBA" else self._image.convert("RGBA")

    def _composite(self, layer: Image.Image) -> None:
        if self._image.mode == "RGBA":
            self._image.alpha_composite(layer)
        else:
            self._image.paste(layer, (0, 0), layer)

    def snapshot(self) -> Image.Image:
        """Copy of the current pixels."""
        return self._image.copy()

    def export(self, image_format: str = "JPEG", quality: int = 90) -> bytes:
        """
        Encode the surface as a compressed blob.

        Raises:
            ExportError: if the encoder fails or produces no data
        """
        image = self._image
        if image_format.upper() in ("JPEG", "JPG") and image.mode != "RGB":
            image = image.convert("RGB")

        buffer = BytesIO()
        try:
            image.save(buffer, format=image_format, quality=quality)
        except (OSError, ValueError, KeyError) as e:
            raise ExportError(f"Failed to encode crop as {image_format}: {e}") from e

        data = buffer.getvalue()
        if not data:
            raise ExportError(f"Encoder returned no data for {image_format}")
        return data
