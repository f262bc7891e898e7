"""
Error types raised while turning an image reference into inline data.
"""


class ImageInlineError(Exception):
    """Base class for per-reference failures."""


class NotFound(ImageInlineError):
    """A local image file is missing or unreadable."""


class FetchError(ImageInlineError):
    """A remote image could not be downloaded (network error or non-2xx status)."""


class UnsupportedFormat(ImageInlineError):
    """The bytes are neither SVG markup nor decodable by any raster codec."""


class EncodeError(ImageInlineError):
    """Re-encoding a decoded (and possibly resized) image failed."""
