"""
Image processing utilities for MarkdownImageInliner.
"""

import io
import logging
import mimetypes
import os
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from markdown_image_inliner.exceptions import EncodeError, UnsupportedFormat
from markdown_image_inliner.resize_policy import DEFAULT_MAX_DIMENSION, resize

SVG_MIME_TYPE = "image/svg+xml"
DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_JPEG_QUALITY = 85

# Decoders are tried in this order; PPM is the fallback bitmap codec.
RASTER_CODECS = ("PNG", "JPEG", "GIF", "PPM")

# Formats embedded as-is when no resampling is needed.
PASSTHROUGH_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
}

EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".svg": SVG_MIME_TYPE,
    ".ico": "image/x-icon",
}

SVG_MARKER = b"<svg"
SVG_ROOT_TAG = re.compile(r'<svg\b[^>]*>', re.IGNORECASE)
SVG_SIZE_ATTRIBUTE = r'(\s{name}\s*=\s*)(["\'])[^"\']*\2'


@dataclass
class ProcessedImage:
    """Final bytes for one image plus what was done to produce them."""
    data: bytes
    mime_type: str
    source_format: str
    width: int = 0
    height: int = 0
    resampled: bool = False


class ImageProcessor:
    """Handles image classification, resizing and re-encoding."""

    def __init__(self, max_dimension: int = DEFAULT_MAX_DIMENSION, jpeg_quality: int = DEFAULT_JPEG_QUALITY):
        """
        Initialize the ImageProcessor.

        Args:
            max_dimension: Larger-side cap applied when no size is requested
            jpeg_quality: JPEG quality (1-95) used for re-encoded images
        """
        self.logger = logging.getLogger(__name__)
        self.max_dimension = max_dimension
        self.jpeg_quality = jpeg_quality

        if self.jpeg_quality < 1 or self.jpeg_quality > 95:
            self.logger.warning(f"Invalid JPEG quality {jpeg_quality}. Using default ({DEFAULT_JPEG_QUALITY}).")
            self.jpeg_quality = DEFAULT_JPEG_QUALITY

        mimetypes.init()

    def process(self, data: bytes, requested_width: int = 0, requested_height: int = 0) -> ProcessedImage:
        """
        Turn raw image bytes into embeddable bytes.

        Args:
            data: The original image data
            requested_width: Requested width, 0 for unspecified
            requested_height: Requested height, 0 for unspecified

        Returns:
            ProcessedImage: The bytes to embed and their MIME type

        Raises:
            UnsupportedFormat: If the data is neither SVG nor a known raster format
            EncodeError: If re-encoding fails
        """
        if self.is_svg(data):
            return ProcessedImage(
                data=self.patch_svg_dimensions(data, requested_width, requested_height),
                mime_type=SVG_MIME_TYPE,
                source_format="SVG",
                width=requested_width,
                height=requested_height,
            )
        return self.process_raster(data, requested_width, requested_height)

    @staticmethod
    def is_svg(data: bytes) -> bool:
        """Check if the data is SVG markup (case-insensitive <svg marker)."""
        return SVG_MARKER in data.lower()

    @staticmethod
    def patch_svg_dimensions(data: bytes, width: int = 0, height: int = 0) -> bytes:
        """
        Rewrite the root element's width/height attributes.

        Only attributes that already exist and whose requested value is
        nonzero are replaced; nothing is inserted.

        Args:
            data: The SVG markup
            width: New width, 0 to leave untouched
            height: New height, 0 to leave untouched

        Returns:
            bytes: The (possibly) patched markup
        """
        if not width and not height:
            return data

        text = data.decode("utf-8", errors="surrogateescape")
        root = SVG_ROOT_TAG.search(text)
        if not root:
            return data

        tag = root.group(0)
        for name, value in (("width", width), ("height", height)):
            if value:
                pattern = re.compile(SVG_SIZE_ATTRIBUTE.format(name=name), re.IGNORECASE)
                tag = pattern.sub(lambda m, v=value: f'{m.group(1)}"{v}"', tag, count=1)

        text = text[:root.start()] + tag + text[root.end():]
        return text.encode("utf-8", errors="surrogateescape")

    @staticmethod
    def decode_raster(data: bytes) -> Tuple[Image.Image, str]:
        """
        Decode raster data with the first codec that accepts it.

        Returns:
            Tuple[Image.Image, str]: The decoded image and the codec name

        Raises:
            UnsupportedFormat: If no codec can decode the data
        """
        for codec in RASTER_CODECS:
            try:
                img = Image.open(io.BytesIO(data), formats=[codec])
                img.load()
            except Image.DecompressionBombError as e:
                raise UnsupportedFormat(f"{codec} image too large to decode: {e}") from e
            except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
                continue
            return img, codec
        raise UnsupportedFormat("data is not SVG and no raster codec could decode it")

    def process_raster(self, data: bytes, requested_width: int = 0, requested_height: int = 0) -> ProcessedImage:
        img, codec = self.decode_raster(data)
        source_width, source_height = img.size
        target = resize(source_width, source_height, requested_width, requested_height, self.max_dimension)

        if not target.resample and codec in PASSTHROUGH_FORMATS:
            self.logger.debug(f"{codec} image {source_width}x{source_height}: no resize needed, embedding original bytes")
            return ProcessedImage(data, PASSTHROUGH_FORMATS[codec], codec, source_width, source_height)

        if target.resample:
            self.logger.debug(f"Resizing image from {source_width}x{source_height} to {target.width}x{target.height}")
            try:
                img = self._prepare_for_resample(img).resize((target.width, target.height), Image.BILINEAR)
            except (OSError, ValueError, MemoryError) as e:
                raise EncodeError(f"failed to resize {codec} image: {e}") from e

        output_data, mime_type = self.encode(img, codec)
        return ProcessedImage(output_data, mime_type, codec, target.width, target.height, target.resample)

    @staticmethod
    def _prepare_for_resample(img: Image.Image) -> Image.Image:
        # Palette and bilevel images would silently fall back to nearest-neighbour
        if img.mode in ("RGB", "RGBA", "L", "LA"):
            return img
        if img.mode == "PA" or (img.mode == "P" and "transparency" in img.info):
            return img.convert("RGBA")
        return img.convert("RGB")

    def encode(self, img: Image.Image, codec: str) -> Tuple[bytes, str]:
        """
        Encode an image with the encoder selected by its source codec.

        PNG stays PNG, GIF stays GIF, everything else becomes JPEG.

        Raises:
            EncodeError: If the encoder fails
        """
        output_buffer = io.BytesIO()
        try:
            if codec == "PNG":
                img.save(output_buffer, format="PNG", optimize=True)
                mime_type = "image/png"
            elif codec == "GIF":
                img.save(output_buffer, format="GIF")
                mime_type = "image/gif"
            else:
                self._flatten_for_jpeg(img).save(output_buffer, format="JPEG", quality=self.jpeg_quality, optimize=True)
                mime_type = "image/jpeg"
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"failed to encode {codec} image: {e}") from e
        return output_buffer.getvalue(), mime_type

    @staticmethod
    def _flatten_for_jpeg(img: Image.Image) -> Image.Image:
        # Convert transparent background to white
        if img.mode in ("RGBA", "LA") or (img.mode in ("P", "PA") and "transparency" in img.info):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background
        if img.mode not in ("RGB", "L"):
            return img.convert("RGB")
        return img

    @staticmethod
    def get_mime_type(locator: str, content_type: Optional[str] = None) -> str:
        """
        Best-effort MIME type for an image, before its bytes are inspected.

        Args:
            locator: Path or URL of the image
            content_type: Declared Content-Type header, if any

        Returns:
            str: The declared type (parameters stripped), else the extension
                 guess, else image/jpeg
        """
        if content_type:
            declared = content_type.split(";")[0].strip().lower()
            if declared:
                return declared

        path = locator.split("?", 1)[0].split("#", 1)[0]
        _, ext = os.path.splitext(path)
        ext = ext.lower()
        if ext in EXTENSION_MIME_TYPES:
            return EXTENSION_MIME_TYPES[ext]

        mime_type, _ = mimetypes.guess_type(path)
        if mime_type and mime_type.startswith("image/"):
            return mime_type

        return DEFAULT_MIME_TYPE
