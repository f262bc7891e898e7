"""
Command line argument parser for MarkdownImageInliner.
"""

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional

from markdown_image_inliner.http_client import DEFAULT_TIMEOUT
from markdown_image_inliner.image_processor import DEFAULT_JPEG_QUALITY
from markdown_image_inliner.resize_policy import DEFAULT_MAX_DIMENSION
from markdown_image_inliner.utils import default_output_path


@dataclass
class CommandLineOptions:
    """Holds the parsed command line options."""
    input_file: str = ""
    output_file: str = ""
    base_path: str = ""
    debug: bool = False
    verbose: bool = False
    quiet: bool = False
    log_file: Optional[str] = None
    max_dimension: int = DEFAULT_MAX_DIMENSION  # Cap for images with no requested size
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    timeout: float = DEFAULT_TIMEOUT  # HTTP timeout in seconds
    jobs: int = 1  # Parallel materialization workers


class CommandLineParser:
    """Parses command line arguments."""

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="markdown-image-inliner",
            description="Embed images referenced by a markdown file as base64 data URLs.",
        )

        parser.add_argument(
            "input_file",
            help="Markdown file to process"
        )
        parser.add_argument(
            "--output-file", "-o", type=str,
            help="Write output to FILE (default: <input>_embedded.md)"
        )
        parser.add_argument(
            "--path", "-p", type=str, default="",
            help="Base path for resolving relative image paths (default: input file's directory)"
        )
        parser.add_argument(
            "--max-dimension", "-M", type=int, default=DEFAULT_MAX_DIMENSION,
            help=f"Scale images with no requested size so the larger side is at most N pixels "
                 f"(default: {DEFAULT_MAX_DIMENSION}, 0 disables)"
        )
        parser.add_argument(
            "--quality", "-q", type=int, default=DEFAULT_JPEG_QUALITY, choices=range(1, 96), metavar="1-95",
            help=f"JPEG quality for re-encoded images (default: {DEFAULT_JPEG_QUALITY})"
        )
        parser.add_argument(
            "--timeout", "-t", type=float, default=DEFAULT_TIMEOUT,
            help=f"HTTP timeout in seconds for remote images (default: {DEFAULT_TIMEOUT})"
        )
        parser.add_argument(
            "--jobs", "-j", type=int, default=1,
            help="Number of images to fetch/convert in parallel (default: 1)"
        )
        parser.add_argument(
            "--log-file", "-l", type=str,
            help="Also write log output to FILE"
        )

        verbosity_group = parser.add_mutually_exclusive_group()
        verbosity_group.add_argument(
            "--quiet", "-Q", action="store_true",
            help="Only show errors on stderr"
        )
        verbosity_group.add_argument(
            "--verbose", "-v", action="store_true",
            help="Show per-image processing info on stderr"
        )
        verbosity_group.add_argument(
            "--debug", "-d", action="store_true",
            help="Show debug messages on stderr"
        )
        return parser

    @classmethod
    def parse(cls, args: List[str]) -> CommandLineOptions:
        """
        Parse command line arguments.

        Args:
            args: Command line arguments

        Returns:
            CommandLineOptions: The parsed options
        """
        parser = cls.build_parser()
        parsed_args = parser.parse_args(args)

        if parsed_args.max_dimension < 0:
            parser.error("--max-dimension must not be negative")
        if parsed_args.jobs < 1:
            parser.error("--jobs must be at least 1")
        if parsed_args.timeout <= 0:
            parser.error("--timeout must be positive")

        base_path = parsed_args.path
        if base_path:
            base_path = os.path.abspath(base_path)
        else:
            base_path = os.path.dirname(os.path.abspath(parsed_args.input_file))

        return CommandLineOptions(
            input_file=parsed_args.input_file,
            output_file=parsed_args.output_file or default_output_path(parsed_args.input_file),
            base_path=base_path,
            debug=parsed_args.debug,
            verbose=parsed_args.verbose,
            quiet=parsed_args.quiet,
            log_file=parsed_args.log_file,
            max_dimension=parsed_args.max_dimension,
            jpeg_quality=parsed_args.quality,
            timeout=parsed_args.timeout,
            jobs=parsed_args.jobs,
        )
