"""
Utility functions for MarkdownImageInliner.
"""

import os

OUTPUT_SUFFIX = "_embedded"


def format_file_size(size_bytes: float, decimals: int = 1) -> str:
    """
    Format a file size in human-readable form.

    Args:
        size_bytes: The size in bytes
        decimals: Number of decimal places to display

    Returns:
        str: The formatted file size
    """
    units = ["B", "KB", "MB", "GB", "TB"]

    if size_bytes == 0:
        return "0 B"

    unit_index = 0
    while abs(size_bytes) >= 1024 and unit_index < len(units) - 1:
        size_bytes /= 1024.0
        unit_index += 1

    return f"{size_bytes:.{decimals}f} {units[unit_index]}"


def default_output_path(input_path: str) -> str:
    """
    Output file name for an input file: notes.md -> notes_embedded.md.
    """
    root, _ = os.path.splitext(input_path)
    return f"{root}{OUTPUT_SUFFIX}.md"


def read_text_file(file_path: str) -> str:
    """
    Read a UTF-8 text file.

    Raises:
        RuntimeError: If the file cannot be read
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise RuntimeError(f"Error reading input file: {e}") from e


def write_text_file(content: str, file_path: str) -> None:
    """
    Write content to a UTF-8 text file.

    Raises:
        RuntimeError: If the file cannot be written
    """
    try:
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)
    except OSError as e:
        raise RuntimeError(f"Error writing output file: {e}") from e
