"""
MarkdownImageInliner - embeds images referenced by markdown documents as base64 data URLs.
"""

__version__ = "1.0.0"

from markdown_image_inliner.exceptions import (
    EncodeError,
    FetchError,
    ImageInlineError,
    NotFound,
    UnsupportedFormat,
)
from markdown_image_inliner.image_reference import ImageReference, SourceKind
from markdown_image_inliner.markdown_processor import MarkdownProcessor, ProcessingStats, process_markdown
from markdown_image_inliner.materializer import MaterializationFailure, MaterializedImage, Materializer
from markdown_image_inliner.reference_scanner import scan
from markdown_image_inliner.resize_policy import ResizeTarget, resize
from markdown_image_inliner.splicer import SpliceResult, splice
