"""
Locates image references in a document.

Recognizes three markdown forms and the HTML ``img`` element:

  - Size-qualified markdown:  ![alt](path){: width=W height=H}
  - Dimension-suffix markdown: ![alt](path =WxH)
  - Bare markdown:            ![alt](path)
  - HTML:                     <img src="path" alt="alt" width="W" height="H">

Grammars are tried in priority order and every accepted match claims its
span; a later candidate that overlaps a claimed span is dropped. This is
what keeps the bare markdown pattern from re-registering the path part of
a size-qualified image, and a sized ``img`` tag from being counted twice.
"""

import logging
import re
from typing import Callable, List, NamedTuple, Optional

from markdown_image_inliner.image_reference import ImageReference, SourceKind

logger = logging.getLogger(__name__)

QUALIFIER_OPENER = "{:"

_SIZE_ATTR = r'(?:width|height)\s*=\s*["\']?\d+["\']?'

# ![alt](path){: width=W height=H}, either attribute optional, any order
QUALIFIED_PATTERN = re.compile(
    r'!\[(?P<alt>[^\]]*)\]\((?P<locator>[^)\n]+)\)'
    r'\s*\{:(?P<attrs>\s*(?:' + _SIZE_ATTR + r'\s*)*)\}'
)

# ![alt](path =WxH), either number optional
DIMENSION_SUFFIX_PATTERN = re.compile(
    r'!\[(?P<alt>[^\]]*)\]\((?P<locator>[^)\n=]+?)\s*=\s*(?P<width>\d*)x(?P<height>\d*)\s*\)'
)

# ![alt](path). Does not cross line boundaries.
BARE_PATTERN = re.compile(r'!\[(?P<alt>[^\]]*)\]\((?P<locator>[^)\n]+)\)')

SIZED_IMG_TAG_PATTERN = re.compile(
    r'<img\b(?=[^>]*\b(?:width|height)\s*=)[^>]*>', re.IGNORECASE
)
IMG_TAG_PATTERN = re.compile(r'<img\b[^>]*>', re.IGNORECASE)

ATTRIBUTE_PATTERN = re.compile(
    r'([a-zA-Z_:][-a-zA-Z0-9_:.]*)\s*=\s*'
    r'(?:"(?P<dq>[^"]*)"|\'(?P<sq>[^\']*)\'|(?P<bare>[^\s"\'=<>`]+))'
)
SIZE_VALUE_PATTERN = re.compile(r'(width|height)\s*=\s*["\']?(\d+)')
TITLE_PATTERN = re.compile(r'^(?P<locator>\S+)\s+(?:"[^"]*"|\'[^\']*\')$')
LEADING_DIGITS = re.compile(r'\s*(\d+)')


class Grammar(NamedTuple):
    """One surface syntax, in the order it claims spans."""
    name: str
    pattern: "re.Pattern[str]"
    build: Callable[[str, "re.Match[str]"], Optional[ImageReference]]


def parse_dimension(value: Optional[str]) -> int:
    """
    Parse a width/height capture into an integer.

    Missing groups, empty strings and non-numeric values all parse to 0
    (unspecified). Leading digits are honored, so "120px" gives 120.
    """
    if not value:
        return 0
    match = LEADING_DIGITS.match(value)
    return int(match.group(1)) if match else 0


def clean_locator(locator: str) -> str:
    """Strip whitespace and an optional markdown title from a locator."""
    locator = locator.strip()
    match = TITLE_PATTERN.match(locator)
    if match:
        locator = match.group("locator")
    if locator.startswith("<") and locator.endswith(">"):
        locator = locator[1:-1].strip()
    return locator


def is_inline_data(locator: str) -> bool:
    """Check if a locator already carries its data inline."""
    return locator[:5].lower() == "data:"


def _accept_locator(locator: str) -> bool:
    if not locator:
        return False
    if is_inline_data(locator):
        logger.debug("Skipping already inline image")
        return False
    return True


def _build_qualified(document: str, match: "re.Match[str]") -> Optional[ImageReference]:
    locator = clean_locator(match.group("locator"))
    if not _accept_locator(locator):
        return None
    sizes = {name.lower(): int(value) for name, value in SIZE_VALUE_PATTERN.findall(match.group("attrs"))}
    return ImageReference(
        raw_span=match.group(0),
        alt_text=match.group("alt"),
        locator=locator,
        start=match.start(),
        end=match.end(),
        requested_width=sizes.get("width", 0),
        requested_height=sizes.get("height", 0),
        source_kind=SourceKind.MARKDOWN,
    )


def _build_dimension_suffix(document: str, match: "re.Match[str]") -> Optional[ImageReference]:
    locator = clean_locator(match.group("locator"))
    if not _accept_locator(locator):
        return None
    return ImageReference(
        raw_span=match.group(0),
        alt_text=match.group("alt"),
        locator=locator,
        start=match.start(),
        end=match.end(),
        requested_width=parse_dimension(match.group("width")),
        requested_height=parse_dimension(match.group("height")),
        source_kind=SourceKind.MARKDOWN,
    )


def _build_bare(document: str, match: "re.Match[str]") -> Optional[ImageReference]:
    # A qualifier right after the match means this is really the path part
    # of a size-qualified image.
    if document[match.end():].lstrip().startswith(QUALIFIER_OPENER):
        return None
    locator = clean_locator(match.group("locator"))
    if not _accept_locator(locator):
        return None
    return ImageReference(
        raw_span=match.group(0),
        alt_text=match.group("alt"),
        locator=locator,
        start=match.start(),
        end=match.end(),
        source_kind=SourceKind.MARKDOWN,
    )


def parse_tag_attributes(tag: str) -> dict:
    """Parse the attributes of an HTML start tag into a lowercase-keyed dict."""
    attributes = {}
    for match in ATTRIBUTE_PATTERN.finditer(tag):
        name = match.group(1).lower()
        if name in attributes:
            continue
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare")
        attributes[name] = value
    return attributes


def _build_html(document: str, match: "re.Match[str]") -> Optional[ImageReference]:
    attributes = parse_tag_attributes(match.group(0))
    locator = clean_locator(attributes.get("src") or "")
    if not _accept_locator(locator):
        return None
    return ImageReference(
        raw_span=match.group(0),
        alt_text=attributes.get("alt") or "",
        locator=locator,
        start=match.start(),
        end=match.end(),
        requested_width=parse_dimension(attributes.get("width")),
        requested_height=parse_dimension(attributes.get("height")),
        source_kind=SourceKind.HTML,
    )


# Priority order: more specific grammars claim spans first.
GRAMMARS = (
    Grammar("markdown-qualified", QUALIFIED_PATTERN, _build_qualified),
    Grammar("markdown-dimension-suffix", DIMENSION_SUFFIX_PATTERN, _build_dimension_suffix),
    Grammar("markdown-bare", BARE_PATTERN, _build_bare),
    Grammar("html-sized", SIZED_IMG_TAG_PATTERN, _build_html),
    Grammar("html", IMG_TAG_PATTERN, _build_html),
)


def scan(document: str) -> List[ImageReference]:
    """
    Find all image references in a document.

    Args:
        document: The markdown/HTML text

    Returns:
        List[ImageReference]: Non-overlapping references ordered by start offset
    """
    claimed: List[ImageReference] = []

    for grammar in GRAMMARS:
        for match in grammar.pattern.finditer(document):
            reference = grammar.build(document, match)
            if reference is None:
                continue
            if any(other.overlaps(reference.start, reference.end) for other in claimed):
                logger.debug(
                    f"Dropping {grammar.name} match at {reference.start}-{reference.end}: span already claimed"
                )
                continue
            claimed.append(reference)

    claimed.sort(key=lambda ref: ref.start)
    logger.debug(f"Found {len(claimed)} image references")
    return claimed
