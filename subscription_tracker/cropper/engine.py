"""
Circular Crop Engine

Keeps the pan/zoom view of one source image, renders the live preview
and exports the crop square.

Flow:
1. load() (or begin_load()/complete_load() when decoding happens elsewhere)
2. set_scale() and begin_drag()/continue_drag()/end_drag() move the view
3. every change re-renders the preview and notifies redraw listeners
4. crop() encodes the crop square for the upload sink

The engine does no I/O and never leaves its view state half-updated:
failed loads and failed exports keep the previous state.
"""

from typing import Callable, Optional

import structlog
from PIL import Image

from subscription_tracker.config import CropperSettings, get_settings
from subscription_tracker.cropper.errors import (
    ExportError,
    ImageLoadError,
    NotLoadedError,
)
from subscription_tracker.cropper.geometry import (
    Point,
    clamp,
    crop_region,
    drag_anchor,
    drag_offset,
    fit_scale,
    image_origin,
    scale_bounds,
)
from subscription_tracker.cropper.state import CropResult, SourceImage, ViewState
from subscription_tracker.cropper.surface import RasterSurface

RedrawListener = Callable[[Image.Image], None]

_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


class CircularCropEngine:
    """
    Pan/zoom/crop-to-circle for avatar images.

    Usage:
        engine = CircularCropEngine()
        engine.load(provider.from_bytes(data))
        engine.set_scale(1.2)
        engine.begin_drag(150, 150)
        engine.continue_drag(170, 140)
        engine.end_drag()
        result = engine.crop()
    """

    def __init__(self, settings: Optional[CropperSettings] = None):
        self._settings = settings or get_settings().cropper
        self._surface = RasterSurface(self._settings.canvas_size)
        self._source: Optional[SourceImage] = None
        self._view: Optional[ViewState] = None
        self._min_scale: Optional[float] = None
        self._generation = 0
        self._listeners: list[RedrawListener] = []
        self._logger = structlog.get_logger()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def settings(self) -> CropperSettings:
        return self._settings

    @property
    def is_loaded(self) -> bool:
        return self._source is not None

    @property
    def source(self) -> Optional[SourceImage]:
        return self._source

    @property
    def view(self) -> Optional[ViewState]:
        """Current view, or None before the first successful load."""
        return self._view

    @property
    def min_scale(self) -> Optional[float]:
        return self._min_scale

    @property
    def scale_bounds(self) -> Optional[tuple[float, float]]:
        if self._min_scale is None:
            return None
        return scale_bounds(self._min_scale, self._settings.zoom_max)

    def slider_range(self) -> tuple[float, float, float]:
        """
        (min, max, step) for a zoom slider.

        The nominal range comes from settings, widened when the fit scale
        falls outside it. Slider values below the fit scale are clamped up
        by set_scale().
        """
        s = self._settings
        bounds = self.scale_bounds
        if bounds is None:
            return s.zoom_min, s.zoom_max, s.zoom_step
        lower, upper = bounds
        return min(s.zoom_min, lower), upper, s.zoom_step

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, image: Optional[SourceImage]) -> None:
        """
        Replace the source image and fit it to the crop circle.

        Raises:
            ImageLoadError: the image has no pixels or zero area; the
                previous image and view are kept
        """
        self._validate(image)
        self._generation += 1
        self._apply(image)

    def begin_load(self) -> int:
        """Start an asynchronous load; returns the session token."""
        self._generation += 1
        return self._generation

    def complete_load(self, token: int, image: Optional[SourceImage]) -> bool:
        """
        Apply a finished load if its session is still current.

        Returns False for stale tokens (the session was closed or a newer
        load started); the image is then discarded.

        Raises:
            ImageLoadError: the image is unusable (current token only)
        """
        if token != self._generation:
            self._logger.debug(
                "stale_load_discarded",
                token=token,
                generation=self._generation,
            )
            return False
        self._validate(image)
        self._apply(image)
        return True

    def fail_load(self, token: int, error: Exception) -> None:
        """Record a failed decode. The engine state is left as it was."""
        self._logger.warning(
            "image_load_failed",
            token=token,
            stale=token != self._generation,
            error=str(error),
        )

    def close(self) -> None:
        """End the session; pending loads become stale."""
        self._generation += 1
        self._source = None
        self._view = None
        self._min_scale = None

    def _validate(self, image: Optional[SourceImage]) -> None:
        if image is None or image.pixels is None:
            raise ImageLoadError("No image supplied")
        if image.natural_width <= 0 or image.natural_height <= 0:
            raise ImageLoadError(
                f"Image has no area ({image.natural_width}x{image.natural_height})"
            )

    def _apply(self, image: SourceImage) -> None:
        min_scale = fit_scale(
            image.natural_width,
            image.natural_height,
            self._settings.crop_diameter,
        )
        self._source = image
        self._min_scale = min_scale
        self._view = ViewState.fitted(min_scale)
        self._logger.info(
            "crop_image_loaded",
            label=image.label,
            width=image.natural_width,
            height=image.natural_height,
            min_scale=round(min_scale, 4),
        )
        self._redraw()

    # -------------------------------------------------------------------------
    # Zoom and drag
    # -------------------------------------------------------------------------

    def set_scale(self, value: float) -> Optional[float]:
        """Clamp ``value`` into the scale bounds and apply it."""
        if self._view is None:
            return None
        lower, upper = self.scale_bounds
        self._view.scale = clamp(float(value), lower, upper)
        self._redraw()
        return self._view.scale

    def begin_drag(self, x: float, y: float) -> None:
        view = self._view
        if view is None or view.is_dragging:
            return
        view.drag_anchor = drag_anchor((x, y), view.offset)
        view.is_dragging = True

    def continue_drag(self, x: float, y: float) -> None:
        view = self._view
        if view is None or not view.is_dragging:
            return
        view.offset = drag_offset((x, y), view.drag_anchor)
        self._redraw()

    def end_drag(self) -> None:
        view = self._view
        if view is None:
            return
        view.is_dragging = False
        view.drag_anchor = None

    def drag_to(self, start: Point, end: Point) -> None:
        """Run a complete drag gesture from ``start`` to ``end``."""
        self.begin_drag(*start)
        self.continue_drag(*end)
        self.end_drag()

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def add_redraw_listener(self, listener: RedrawListener) -> Callable[[], None]:
        """Register a callback for every rendered preview; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def render_preview(self) -> Image.Image:
        """Draw the preview and return a copy of it (RGBA, canvas_size square)."""
        s = self._settings
        surface = self._surface
        center = surface.center
        radius = s.crop_diameter / 2

        surface.clear()
        surface.fill(s.background_color)

        if self._source is not None and self._view is not None:
            x, y = image_origin(
                s.canvas_size,
                self._source.natural_width,
                self._source.natural_height,
                self._view.scale,
                self._view.offset,
            )
            surface.draw_image(self._source.pixels, x, y, self._view.scale)

        surface.keep_inside_circle(center, center, radius)
        surface.overlay_outside_circle("#000000", s.overlay_opacity, center, center, radius)
        surface.stroke_circle(center, center, radius, s.border_color, s.border_width)

        return surface.snapshot()

    def _redraw(self) -> None:
        preview = self.render_preview()
        for listener in list(self._listeners):
            listener(preview)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def crop(self) -> CropResult:
        """
        Export the crop square under the circle.

        The output is always crop_diameter square. Parts of the square not
        covered by the image keep the background color. No circular mask
        is applied.

        Raises:
            NotLoadedError: no image loaded
            ExportError: encoding failed; safe to retry
        """
        if self._source is None or self._view is None:
            raise NotLoadedError("Load an image before cropping")

        s = self._settings
        source = self._source
        region = crop_region(
            s.canvas_size,
            s.crop_diameter,
            source.natural_width,
            source.natural_height,
            self._view.scale,
            self._view.offset,
        )

        output = RasterSurface(
            s.crop_diameter,
            mode="RGB",
            background=s.background_color,
        )
        if not region.is_empty:
            try:
                output.paste_region(source.pixels, region.source_box, region.dest)
            except (OSError, ValueError) as e:
                raise ExportError(f"Failed to draw crop region: {e}") from e

        image_format = s.export_format.upper()
        quality = s.export_quality_percent
        data = output.export(image_format, quality)

        result = CropResult(
            data=data,
            width=s.crop_diameter,
            height=s.crop_diameter,
            format=image_format,
            mime_type=_MIME_TYPES.get(image_format, f"image/{image_format.lower()}"),
            quality=quality,
        )
        self._logger.info(
            "crop_exported",
            scale=round(self._view.scale, 4),
            offset=list(self._view.offset),
            empty_region=region.is_empty,
            size_bytes=result.size_bytes,
        )
        return result
