"""
Image Source Provider

Turns user-supplied bytes, files or URLs into a SourceImage the engine
can load. All decoding failures surface as ImageLoadError so callers
only need to handle one exception type.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import requests
import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

from subscription_tracker.config import AppSettings, get_settings
from subscription_tracker.cropper.errors import ImageLoadError
from subscription_tracker.cropper.state import SourceImage


class ImageSourceProvider:
    """Decodes images for the circular cropper."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app
        self._logger = structlog.get_logger()

    def from_bytes(self, data: bytes, label: str = "upload") -> SourceImage:
        """
        Decode raw image bytes.

        EXIF orientation is applied so phone photos are upright, and the
        pixels are converted to RGB (or RGBA when the image has alpha).

        Raises:
            ImageLoadError: empty, oversized or undecodable data
        """
        if not data:
            raise ImageLoadError("No image data received")

        limit = self._settings.max_upload_size_bytes
        if len(data) > limit:
            raise ImageLoadError(
                f"Image is too large ({len(data) / (1024 * 1024):.1f} MB, "
                f"maximum {self._settings.max_upload_size_mb} MB)"
            )

        try:
            image = Image.open(BytesIO(data))
            image.load()
            image = ImageOps.exif_transpose(image)
        except UnidentifiedImageError as e:
            raise ImageLoadError(f"Not a recognised image: {label}") from e
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageLoadError(f"Could not decode {label}: {e}") from e

        has_alpha = image.mode in ("RGBA", "LA") or (
            image.mode == "P" and "transparency" in image.info
        )
        image = image.convert("RGBA" if has_alpha else "RGB")

        source = SourceImage.from_image(image, label=label)
        self._logger.debug(
            "image_decoded",
            label=label,
            width=source.natural_width,
            height=source.natural_height,
            mode=image.mode,
        )
        return source

    def from_path(self, path: Union[str, Path]) -> SourceImage:
        file_path = Path(path)
        if not file_path.is_file():
            raise ImageLoadError(f"File not found: {file_path}")
        try:
            data = file_path.read_bytes()
        except OSError as e:
            raise ImageLoadError(f"Could not read {file_path}: {e}") from e
        return self.from_bytes(data, label=file_path.name)

    def from_url(self, url: str) -> SourceImage:
        """
        Fetch and decode a remote image (e.g. an existing avatar).

        Raises:
            ImageLoadError: network failure, non-200 response or bad image
        """
        try:
            response = requests.get(
                url,
                timeout=self._settings.image_fetch_timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            raise ImageLoadError(f"Timed out fetching {url}") from e
        except requests.exceptions.RequestException as e:
            raise ImageLoadError(f"Could not fetch {url}: {e}") from e

        if response.status_code != 200:
            raise ImageLoadError(
                f"Fetching {url} returned HTTP {response.status_code}"
            )

        label = url.rsplit("/", 1)[-1] or url
        return self.from_bytes(response.content, label=label)
