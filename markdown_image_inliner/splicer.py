"""
Rewrites a document by replacing image reference spans.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from markdown_image_inliner.exceptions import ImageInlineError
from markdown_image_inliner.image_reference import ImageReference, SourceKind
from markdown_image_inliner.materializer import (
    MaterializationFailure,
    MaterializedImage,
    MaterializeResult,
)

logger = logging.getLogger(__name__)

LINE_BREAKS = re.compile(r"\s*[\r\n]+\s*")


@dataclass
class SpliceResult:
    text: str
    embedded: List[MaterializedImage] = field(default_factory=list)
    failures: List[MaterializationFailure] = field(default_factory=list)


def escape_alt_text(alt_text: str) -> str:
    """Make HTML alt text safe inside markdown image brackets."""
    alt_text = LINE_BREAKS.sub(" ", alt_text)
    return alt_text.replace("[", r"\[").replace("]", r"\]")


def render_inline_image(reference: ImageReference, image: MaterializedImage) -> str:
    """Markdown form for a materialized image; HTML tags are normalized to it too."""
    alt_text = reference.alt_text
    if reference.source_kind is SourceKind.HTML:
        alt_text = escape_alt_text(alt_text)
    return f"![{alt_text}]({image.data_url})"


def splice(
    document: str,
    references: Sequence[ImageReference],
    materialize: Callable[[ImageReference], MaterializeResult],
) -> SpliceResult:
    """
    Replace each reference span with its materialized form.

    A single forward pass over the unmodified document: text between
    references is copied verbatim, each reference is replaced by its inline
    image or kept as written on failure.

    Args:
        document: The original document text
        references: Non-overlapping references ordered by start offset
        materialize: Called once per reference, in document order

    Returns:
        SpliceResult: The rewritten text plus per-reference outcomes
    """
    result = SpliceResult(text="")
    parts: List[str] = []
    cursor = 0

    for reference in references:
        if reference.start < cursor:
            raise ValueError(f"reference at {reference.start} overlaps previous span ending at {cursor}")

        parts.append(document[cursor:reference.start])

        try:
            outcome = materialize(reference)
        except ImageInlineError as e:
            outcome = MaterializationFailure(reference, e)

        if isinstance(outcome, MaterializedImage):
            parts.append(render_inline_image(reference, outcome))
            result.embedded.append(outcome)
        else:
            logger.debug(f"Keeping original text for {reference.locator}")
            parts.append(reference.raw_span)
            result.failures.append(outcome)

        cursor = reference.end

    parts.append(document[cursor:])
    result.text = "".join(parts)
    return result
