"""
Coordinate math for the circular cropper.

Two spaces are involved:
- canvas space: the preview surface, origin top-left, side ``canvas_size``
- source space: pixels of the original image

The view transform maps source to canvas as
``canvas = image_origin + source * scale``, where the image origin keeps
the scaled image centered on the canvas and then shifted by ``offset``.

All functions here are pure so they can be tested without Pillow.
"""

import math
from dataclasses import dataclass

Point = tuple[float, float]
Box = tuple[float, float, float, float]


def fit_scale(width: int, height: int, crop_diameter: float) -> float:
    """Smallest scale at which the image fully covers the crop circle."""
    if width <= 0 or height <= 0:
        raise ValueError("Image dimensions must be positive")
    return max(crop_diameter / width, crop_diameter / height)


def scale_bounds(min_scale: float, zoom_max: float) -> tuple[float, float]:
    """
    Allowed scale range.

    The lower bound is the fit scale, so the crop circle is always covered.
    The upper bound is ``zoom_max`` unless the fit scale is already above it
    (tiny images), in which case the range collapses to the fit scale.
    """
    return min_scale, max(zoom_max, min_scale)


def clamp(value: float, lower: float, upper: float) -> float:
    # NaN compares false against everything; treat it as the lower bound
    if math.isnan(value):
        return lower
    return max(lower, min(upper, value))


def image_origin(
    canvas_size: float,
    width: int,
    height: int,
    scale: float,
    offset: Point,
) -> Point:
    """Top-left corner of the scaled image in canvas space."""
    center = canvas_size / 2
    return (
        center - (width * scale) / 2 + offset[0],
        center - (height * scale) / 2 + offset[1],
    )


def drag_anchor(pointer: Point, offset: Point) -> Point:
    return (pointer[0] - offset[0], pointer[1] - offset[1])


def drag_offset(pointer: Point, anchor: Point) -> Point:
    return (pointer[0] - anchor[0], pointer[1] - anchor[1])


@dataclass(frozen=True)
class CropRegion:
    """
    Where to read from the source and where to write in the output square.

    Boxes are (x, y, width, height). Either box may be empty when the
    image has been dragged away from the crop square; the output is then
    left as background.
    """
    source: Box
    dest: Box
    output_size: int

    @property
    def is_empty(self) -> bool:
        sx, sy, sw, sh = self.source
        dx, dy, dw, dh = self.dest
        return (
            sw <= 0
            or sh <= 0
            or dw <= 0
            or dh <= 0
            or dx >= self.output_size
            or dy >= self.output_size
        )

    @property
    def source_box(self) -> Box:
        """Source rectangle as (left, top, right, bottom)."""
        sx, sy, sw, sh = self.source
        return (sx, sy, sx + sw, sy + sh)


def crop_region(
    canvas_size: float,
    crop_diameter: int,
    width: int,
    height: int,
    scale: float,
    offset: Point,
) -> CropRegion:
    """
    Map the crop square (centered on the canvas) back into source space.

    The requested source rectangle is clamped to the image bounds and the
    destination placement shrinks accordingly, so a partially covered crop
    square keeps the background in the uncovered part.
    """
    image_x, image_y = image_origin(canvas_size, width, height, scale, offset)
    center = canvas_size / 2

    start_x = (center - crop_diameter / 2 - image_x) / scale
    start_y = (center - crop_diameter / 2 - image_y) / scale
    size = crop_diameter / scale

    src_x = max(0.0, start_x)
    src_y = max(0.0, start_y)
    src_w = min(width - src_x, size)
    src_h = min(height - src_y, size)

    dst_x = max(0.0, -start_x * scale)
    dst_y = max(0.0, -start_y * scale)
    dst_w = min(float(crop_diameter), (width - src_x) * scale)
    dst_h = min(float(crop_diameter), (height - src_y) * scale)

    return CropRegion(
        source=(src_x, src_y, src_w, src_h),
        dest=(dst_x, dst_y, dst_w, dst_h),
        output_size=crop_diameter,
    )
