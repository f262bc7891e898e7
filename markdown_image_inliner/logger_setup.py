"""
Logging setup module for MarkdownImageInliner.
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "markdown_image_inliner"


class LoggerSetup:
    """Sets up and configures the package logger for the application."""

    @classmethod
    def initialize_logger(
        cls,
        debug: bool = False,
        verbose: bool = False,
        quiet: bool = False,
        log_file: Optional[str] = None,
    ) -> logging.Logger:
        """
        Initialize and configure the package logger.

        Args:
            debug: Enable debug logging level
            verbose: Enable verbose (info) logging level
            quiet: Only show errors on the console
            log_file: Also write log output to this file
        """
        if debug:
            console_level = logging.DEBUG
        elif verbose:
            console_level = logging.INFO
        elif quiet:
            console_level = logging.ERROR
        else:
            console_level = logging.WARNING

        logger = logging.getLogger(PACKAGE_LOGGER)
        # Handlers filter individually
        logger.setLevel(logging.DEBUG)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        console_handler.setLevel(console_level)
        logger.addHandler(console_handler)

        if log_file:
            try:
                file_handler = logging.FileHandler(log_file, 'w', encoding='utf-8')
            except OSError as e:
                logger.error(f"Failed to create log file '{log_file}': {e}")
            else:
                file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)-8s: %(message)s'))
                # Log file always gets at least verbose output
                file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
                logger.addHandler(file_handler)

        logger.propagate = False
        return logger

