"""
Marker extraction from the upstream lightning page

The page positions one element per strike over an 800x600 image, e.g.

    <span class="ap lgt lgt-3" data-top="212.5" data-left="431"></span>

Positions come from the ``data-top``/``data-left`` attributes and the age from
the ``lgt-<n>`` class token. The page layout is not under our control, so
elements that do not carry usable positions are dropped instead of failing the
whole batch.
"""

import logging
import math
import re
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Set, Union

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from .config import AGE_SETTINGS, SOURCE
from .exceptions import ParseError
from .models import RawMarker

logger = logging.getLogger(__name__)

# Leading number of a string, the way browsers read "12.5px"
_NUMBER_RE = re.compile(r'^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


class ElementHandle(Protocol):
    def attribute(self, name: str) -> Optional[str]:
        ...

    def class_tokens(self) -> Set[str]:
        ...


class DocumentQuery(Protocol):
    def find_by_class(self, selector: str) -> Sequence[ElementHandle]:
        ...


class SoupElement:
    """ElementHandle over a BeautifulSoup tag"""

    def __init__(self, tag: Tag):
        self.tag = tag

    def attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if isinstance(value, list):
            return ' '.join(value)
        return value

    def class_tokens(self) -> Set[str]:
        return set(self.tag.get('class') or [])


class SoupDocument:
    """DocumentQuery over a BeautifulSoup tree"""

    def __init__(self, html: Union[str, bytes], parser: str = 'html.parser'):
        if html is None:
            raise ParseError("No document to parse")
        if isinstance(html, bytes):
            try:
                html = html.decode('utf-8')
            except UnicodeDecodeError as e:
                raise ParseError(f"Document is not valid UTF-8: {e}") from e
        if not isinstance(html, str):
            raise ParseError(f"Unsupported document type: {type(html).__name__}")

        try:
            self.soup = BeautifulSoup(html, parser)
        except ParserRejectedMarkup as e:
            raise ParseError(f"Parser rejected document: {e}") from e

    def find_by_class(self, selector: str) -> List[SoupElement]:
        return [SoupElement(tag) for tag in self.soup.select(selector)]


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse the leading number of an attribute value; None unless finite"""
    if value is None:
        return None
    match = _NUMBER_RE.match(value)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_age_bucket(tokens: Set[str], prefix: str = AGE_SETTINGS['class_prefix']) -> int:
    """Age bucket from the leading digits of an ``lgt-<n>`` class token, 0 when absent"""
    pattern = re.compile(rf'^{re.escape(prefix)}(\d+)')
    # Sorted so that a (malformed) element with two age tokens is read deterministically
    for token in sorted(tokens):
        match = pattern.match(token)
        if match:
            return int(match.group(1))
    return 0


class MarkerExtractor:
    """Turns an upstream HTML document into RawMarker records"""

    def __init__(
        self,
        settings: Optional[Dict] = None,
        query_factory: Callable[[Union[str, bytes]], DocumentQuery] = SoupDocument
    ):
        source = (settings or {}).get('source', SOURCE)
        age = (settings or {}).get('age', AGE_SETTINGS)
        self.selector = source['marker_selector']
        self.top_attribute = source['top_attribute']
        self.left_attribute = source['left_attribute']
        self.age_prefix = age['class_prefix']
        self.max_bucket = age['max_bucket']
        self.query_factory = query_factory

    def extract(self, html: Union[str, bytes]) -> List[RawMarker]:
        """
        Extract markers in document order

        Args:
            html: Page markup

        Returns:
            One RawMarker per element with finite top/left attributes

        Raises:
            ParseError: if the document cannot be parsed at all
        """
        document = self.query_factory(html)
        elements = document.find_by_class(self.selector)

        markers = []
        skipped = 0
        for element in elements:
            pixel_y = parse_number(element.attribute(self.top_attribute))
            pixel_x = parse_number(element.attribute(self.left_attribute))
            if pixel_x is None or pixel_y is None:
                skipped += 1
                continue
            age_bucket = parse_age_bucket(element.class_tokens(), self.age_prefix)
            markers.append(RawMarker(pixel_x=pixel_x, pixel_y=pixel_y, age_bucket=age_bucket))

        if skipped:
            logger.debug(f"Skipped {skipped} marker elements without usable positions")

        stale = sum(1 for m in markers if m.age_bucket > self.max_bucket)
        if stale:
            logger.warning(
                f"{stale} markers have an age bucket above {self.max_bucket}; "
                f"the source age convention may have changed"
            )

        logger.info(f"Found {len(elements)} lightning elements, {len(markers)} with positions")
        return markers


def extract_markers(html: Union[str, bytes], settings: Optional[Dict] = None) -> List[RawMarker]:
    """Extract markers with the default BeautifulSoup document"""
    return MarkerExtractor(settings).extract(html)
