"""
Turns one image reference into inline base64 data.
"""

import base64
import logging
import os
import urllib.parse
from dataclasses import dataclass
from typing import Optional, Union

from markdown_image_inliner.exceptions import ImageInlineError, NotFound
from markdown_image_inliner.http_client import HttpClient, create_http_client
from markdown_image_inliner.image_processor import ImageProcessor
from markdown_image_inliner.image_reference import ImageReference
from markdown_image_inliner.utils import format_file_size


@dataclass(frozen=True)
class MaterializedImage:
    """Inline payload for one reference."""
    payload_base64: str
    media_type: str
    source_size: int = 0

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.payload_base64}"


@dataclass(frozen=True)
class MaterializationFailure:
    """Why one reference could not be materialized."""
    reference: ImageReference
    error: ImageInlineError

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


MaterializeResult = Union[MaterializedImage, MaterializationFailure]


def read_local_file(path: str) -> bytes:
    """
    Read an image file from disk.

    Raises:
        NotFound: If the file is missing or unreadable
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise NotFound(f"cannot read {path}: {e}") from e


def resolve_file_path(locator: str, base_path: str) -> str:
    """
    Resolve a relative locator against the base directory.

    Tries the locator as written first, then its percent-decoded form.

    Returns:
        str: The resolved path (the first candidate if none exists)
    """
    candidates = [locator]
    decoded = urllib.parse.unquote(locator)
    if decoded != locator:
        candidates.append(decoded)

    paths = [os.path.join(base_path, candidate) if base_path else candidate for candidate in candidates]
    for path in paths:
        if os.path.isfile(path):
            return path
    return paths[0]


class Materializer:
    """Obtains, classifies, resizes and encodes referenced images."""

    def __init__(
        self,
        base_path: str = "",
        http_client: Optional[HttpClient] = None,
        image_processor: Optional[ImageProcessor] = None,
    ):
        """
        Initialize the Materializer.

        Args:
            base_path: Directory relative locators are resolved against
            http_client: HTTP client for remote images
            image_processor: Image processor for resizing and re-encoding
        """
        self.logger = logging.getLogger(__name__)
        self.base_path = base_path
        self.http_client = http_client or create_http_client()
        self.image_processor = image_processor or ImageProcessor()

    def materialize(self, reference: ImageReference) -> MaterializedImage:
        """
        Materialize a single reference.

        Raises:
            NotFound, FetchError, UnsupportedFormat, EncodeError
        """
        locator = reference.locator

        if reference.is_remote:
            resource = self.http_client.fetch(locator)
            data = resource.content
            declared_type = ImageProcessor.get_mime_type(locator, resource.content_type)
        else:
            data = read_local_file(resolve_file_path(locator, self.base_path))
            declared_type = None

        processed = self.image_processor.process(data, reference.requested_width, reference.requested_height)

        if declared_type and declared_type != processed.mime_type:
            self.logger.debug(f"{locator}: declared {declared_type}, content is {processed.mime_type}")

        self.logger.info(
            f"Embedding [{locator}]({processed.mime_type}): "
            f"{format_file_size(len(data))} -> {format_file_size(len(processed.data))}"
        )

        return MaterializedImage(
            payload_base64=base64.b64encode(processed.data).decode("ascii"),
            media_type=processed.mime_type,
            source_size=len(data),
        )

    def try_materialize(self, reference: ImageReference) -> MaterializeResult:
        """Materialize a reference, returning a failure value instead of raising."""
        try:
            return self.materialize(reference)
        except ImageInlineError as e:
            self.logger.warning(f"Could not embed image {reference.locator}: {e}")
            return MaterializationFailure(reference, e)
