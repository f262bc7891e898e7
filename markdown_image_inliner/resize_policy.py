"""
Maps source dimensions and requested dimensions to target dimensions.
"""

from typing import NamedTuple

# Larger side cap applied when no size is requested.
DEFAULT_MAX_DIMENSION = 200


class ResizeTarget(NamedTuple):
    width: int
    height: int
    resample: bool


def resize(
    source_width: int,
    source_height: int,
    requested_width: int = 0,
    requested_height: int = 0,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
) -> ResizeTarget:
    """
    Compute the target size for an image.

    - Nothing requested: shrink proportionally so the larger side equals
      max_dimension, but only if it currently exceeds it.
    - One side requested: derive the other from the source aspect ratio
      (integer truncation).
    - Both requested: use them exactly.

    Args:
        source_width: Width of the decoded image
        source_height: Height of the decoded image
        requested_width: Requested width, 0 for unspecified
        requested_height: Requested height, 0 for unspecified
        max_dimension: Default cap for the larger side

    Returns:
        ResizeTarget: Target width/height and whether resampling is needed
    """
    if source_width <= 0 or source_height <= 0:
        return ResizeTarget(source_width, source_height, False)

    if requested_width > 0 and requested_height > 0:
        width, height = requested_width, requested_height
    elif requested_width > 0:
        width = requested_width
        height = requested_width * source_height // source_width
    elif requested_height > 0:
        height = requested_height
        width = requested_height * source_width // source_height
    elif max_dimension > 0 and max(source_width, source_height) > max_dimension:
        if source_width >= source_height:
            width = max_dimension
            height = max_dimension * source_height // source_width
        else:
            height = max_dimension
            width = max_dimension * source_width // source_height
    else:
        return ResizeTarget(source_width, source_height, False)

    # Very thin images can truncate to zero on the derived side
    width = max(width, 1)
    height = max(height, 1)

    return ResizeTarget(width, height, (width, height) != (source_width, source_height))
