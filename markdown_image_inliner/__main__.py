"""
Main entry point for MarkdownImageInliner.
"""

import os
import sys
from typing import List, Optional

from markdown_image_inliner.cli_parser import CommandLineParser
from markdown_image_inliner.http_client import create_http_client
from markdown_image_inliner.image_processor import ImageProcessor
from markdown_image_inliner.logger_setup import LoggerSetup
from markdown_image_inliner.markdown_processor import MarkdownProcessor
from markdown_image_inliner.materializer import Materializer
from markdown_image_inliner.utils import format_file_size, read_text_file, write_text_file


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the application.

    Args:
        args: Command line arguments (uses sys.argv[1:] if None)

    Returns:
        int: Exit code
    """
    if args is None:
        args = sys.argv[1:]

    options = CommandLineParser.parse(args)

    logger = LoggerSetup.initialize_logger(options.debug, options.verbose, options.quiet, options.log_file)
    logger.debug(f"Using base path: {options.base_path}")

    try:
        input_markdown = read_text_file(options.input_file)
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    materializer = Materializer(
        options.base_path,
        create_http_client(options.timeout),
        ImageProcessor(options.max_dimension, options.jpeg_quality),
    )
    processor = MarkdownProcessor(materializer, options.jobs)

    logger.info(f"--- Processing file: {options.input_file} ---")
    output_markdown = processor.process(input_markdown)

    try:
        write_text_file(output_markdown, options.output_file)
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    stats = processor.stats
    if not options.quiet:
        print(
            f"{os.path.basename(options.input_file)} -> {os.path.basename(options.output_file)}: "
            f"{stats.images_embedded} embedded, {stats.images_failed} skipped, "
            f"{format_file_size(stats.input_size)} -> {format_file_size(stats.output_size)}",
            file=sys.stderr,
        )

    if stats.failures:
        logger.info("The following images were referenced but not embedded (check paths/URLs):")
        for locator, reason in stats.failures:
            logger.info(f"  {locator}: {reason}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
