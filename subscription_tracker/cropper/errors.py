"""Exceptions raised by the circular cropper."""


class CropperError(Exception):
    """Base exception for cropper errors."""
    pass


class ImageLoadError(CropperError):
    """Image could not be decoded or has zero width/height."""
    pass


class NotLoadedError(CropperError):
    """A crop was requested before any image was loaded."""
    pass


class ExportError(CropperError):
    """The crop surface could not be encoded. Retrying is safe."""
    pass
