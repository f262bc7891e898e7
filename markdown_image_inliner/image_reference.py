"""
Image reference record shared by the scanner, materializer and splicer.
"""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse


class SourceKind(Enum):
    """Surface syntax an image reference was written in."""
    MARKDOWN = "markdown"
    HTML = "html"


@dataclass(frozen=True)
class ImageReference:
    """Represents one image mention found in a document."""
    raw_span: str           # Exact original text, kept for failure fallback
    alt_text: str           # Alt text for the image
    locator: str            # Relative path or absolute URL
    start: int              # Start offset in the original document
    end: int                # End offset (exclusive)
    requested_width: int = 0   # 0 means unspecified
    requested_height: int = 0  # 0 means unspecified
    source_kind: SourceKind = SourceKind.MARKDOWN

    @property
    def is_remote(self) -> bool:
        return is_url(self.locator)

    def overlaps(self, start: int, end: int) -> bool:
        """Check whether [start, end) intersects this reference's span."""
        return start < self.end and self.start < end


def is_url(locator: str) -> bool:
    """
    Check if a locator is an absolute URL of the form scheme://host.
    
    Args:
        locator: The path or URL to test
        
    Returns:
        bool: True if the locator has both a scheme and a network location
    """
    try:
        parsed = urlparse(locator)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc) and "://" in locator
