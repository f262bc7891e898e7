"""
Markdown processing module for MarkdownImageInliner.

Ties the scanner, materializer and splicer together and keeps statistics.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from markdown_image_inliner.http_client import HttpClient
from markdown_image_inliner.image_processor import ImageProcessor
from markdown_image_inliner.materializer import Materializer, MaterializeResult
from markdown_image_inliner.reference_scanner import scan
from markdown_image_inliner.splicer import splice
from markdown_image_inliner.utils import format_file_size


@dataclass
class ProcessingStats:
    """Statistics for one processed document."""
    references_found: int = 0
    images_embedded: int = 0
    total_image_size: int = 0
    total_payload_size: int = 0
    input_size: int = 0
    output_size: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)  # (locator, reason)

    @property
    def images_failed(self) -> int:
        return len(self.failures)


class MarkdownProcessor:
    """Processes markdown and embeds images."""

    def __init__(self, materializer: Materializer, max_workers: int = 1):
        """
        Initialize the MarkdownProcessor.

        Args:
            materializer: Turns references into inline data
            max_workers: Parallel materialization threads (1 = sequential)
        """
        self.logger = logging.getLogger(__name__)
        self.materializer = materializer
        self.max_workers = max(1, max_workers)
        self.stats = ProcessingStats()

    def process(self, markdown: str) -> str:
        """
        Process markdown and embed images.

        Args:
            markdown: The input markdown text

        Returns:
            str: The processed markdown with embedded images
        """
        self.stats = ProcessingStats(input_size=len(markdown))

        references = scan(markdown)
        self.stats.references_found = len(references)
        self.logger.info(f"Found {len(references)} image references")

        if self.max_workers > 1 and len(references) > 1:
            # Results are applied in document order regardless of completion order
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results: List[MaterializeResult] = list(
                    executor.map(self.materializer.try_materialize, references)
                )
            by_start = {ref.start: result for ref, result in zip(references, results)}
            outcome = splice(markdown, references, lambda ref: by_start[ref.start])
        else:
            outcome = splice(markdown, references, self.materializer.try_materialize)

        for image in outcome.embedded:
            self.stats.total_image_size += image.source_size
            self.stats.total_payload_size += len(image.payload_base64)
        self.stats.images_embedded = len(outcome.embedded)
        self.stats.failures = [(f.reference.locator, f.reason) for f in outcome.failures]
        self.stats.output_size = len(outcome.text)

        self._log_processing_results()
        return outcome.text

    def _log_processing_results(self) -> None:
        stats = self.stats
        if stats.references_found == 0:
            self.logger.info("No images found.")
            return

        self.logger.info(
            f"{stats.images_embedded} of {stats.references_found} images embedded: "
            f"{format_file_size(stats.total_image_size)} -> {format_file_size(stats.total_payload_size)} (base64)"
        )
        self.logger.debug(
            f"Sizes: Original md = {format_file_size(stats.input_size)}, "
            f"Final md = {format_file_size(stats.output_size)}"
        )
        for locator, reason in stats.failures:
            self.logger.info(f"  not embedded: {locator} ({reason})")


def process_markdown(
    markdown: str,
    base_path: str = "",
    http_client: Optional[HttpClient] = None,
    image_processor: Optional[ImageProcessor] = None,
    max_workers: int = 1,
) -> Tuple[str, ProcessingStats]:
    """
    Embed every image referenced by a document.

    Args:
        markdown: The markdown content to process
        base_path: Directory relative image paths are resolved against
        http_client: HTTP client for remote images (requests-based by default)
        image_processor: Image processor (default resize/quality settings if None)
        max_workers: Parallel materialization threads

    Returns:
        A tuple containing the processed markdown and its statistics.
    """
    materializer = Materializer(base_path, http_client, image_processor)
    processor = MarkdownProcessor(materializer, max_workers)
    output = processor.process(markdown)
    return output, processor.stats
