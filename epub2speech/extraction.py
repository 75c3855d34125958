"""
Range extraction over the XHTML pages of a book.

Pages are walked token by token with a SAX parser. Text is collected between
a start anchor and an optional stop anchor, skipping anything nested inside
media-bearing elements.
"""

import logging
from collections.abc import Hashable, Sequence
from html.entities import name2codepoint
from typing import Optional, Protocol, Union
from xml.sax import SAXException
from xml.sax.handler import ContentHandler

from defusedxml import DefusedXmlException
from defusedxml import sax as defused_sax

from .anchors import filter_toc_range, parse_anchor_id
from .exceptions import PageContentUnavailable, ParseFailure
from .models import (
    AnchorReference,
    ContentEntry,
    ExtractionRange,
    OpenElement,
    PageExtractionResult,
)

logger = logging.getLogger(__name__)

EXCLUDED_TAGS = frozenset(
    {
        "img",
        "media",
        "script",
        "video",
        "audio",
        "object",
        "embed",
        "iframe",
        "source",
        "track",
        "svg",
    }
)


def _local_name(tag_name: str) -> str:
    return tag_name.rsplit(":", 1)[-1].lower()


def is_collectable(stack: Sequence[OpenElement]) -> bool:
    """Return False if any open element is one whose text must be dropped."""
    return not any(_local_name(el.tag_name) in EXCLUDED_TAGS for el in stack)


class PageArchive(Protocol):
    """What the range extractor needs from a book container."""

    def resolve_page(self, document_path: str) -> Hashable: ...

    def get_page_markup(self, page: Hashable) -> bytes: ...


class _StopBoundaryReached(Exception):
    """Raised from inside the SAX callbacks to end the walk at the stop tag."""


class PageExtractionPass(ContentHandler):
    """
    SAX handler collecting the text of one page.

    Adjacent character callbacks are joined into a single text node before
    being emitted, so each emitted line corresponds to one text node of the
    markup rather than to one parser buffer.
    """

    def __init__(
        self,
        page_path: str,
        extraction_range: ExtractionRange,
        collecting: bool,
        stack: list[OpenElement],
    ):
        super().__init__()
        self.page_path = page_path
        self.start = extraction_range.start
        self.stop = extraction_range.stop
        self.collecting = collecting
        self.stack = stack
        self.chunks: list[str] = []
        self._pending: list[str] = []

    def _matches(self, anchor: Optional[AnchorReference], element_id: str) -> bool:
        return (
            anchor is not None
            and anchor.fragment is not None
            and anchor.fragment == element_id
            and anchor.document_path == self.page_path
        )

    def _flush_text(self) -> None:
        if not self._pending:
            return
        text = "".join(self._pending)
        self._pending = []
        if self.collecting and text.strip() and is_collectable(self.stack):
            self.chunks.append(text + "\n")

    def startElement(self, name, attrs):  # noqa: N802
        self._flush_text()
        element_id = attrs.get("id")
        if element_id is not None and self._matches(self.start, element_id):
            logger.debug(f"Start anchor '{self.start}' reached")
            self.collecting = True
        elif element_id is not None and self._matches(self.stop, element_id):
            logger.debug(f"Stop anchor '{self.stop}' reached")
            raise _StopBoundaryReached()
        else:
            self.stack.append(OpenElement(name, dict(attrs.items())))

    def endElement(self, name):  # noqa: N802
        self._flush_text()
        for idx, element in enumerate(self.stack):
            if element.tag_name == name:
                del self.stack[idx]
                break

    def characters(self, content):
        self._pending.append(content)

    def skippedEntity(self, name):  # noqa: N802
        # Named XHTML entities are left unresolved when the DTD is not loaded
        codepoint = name2codepoint.get(name)
        if codepoint is None:
            logger.debug(f"Unknown entity '&{name};' dropped in {self.page_path}")
            return
        self._pending.append(chr(codepoint))

    def endDocument(self):  # noqa: N802
        self._flush_text()

    @property
    def text(self) -> str:
        return "".join(self.chunks)


def extract_page(
    markup: Union[bytes, str],
    page_path: str,
    extraction_range: ExtractionRange,
    collecting: bool,
    stack: list[OpenElement],
) -> PageExtractionResult:
    """
    Walk one page's markup and collect its text.

    Args:
        markup: Raw page markup. Text is encoded as UTF-8 before parsing.
        page_path: Document path of this page
        extraction_range: Start and stop anchors of the current extraction
        collecting: Whether text is being collected when the page begins
        stack: Open-element stack, modified in place

    Returns:
        PageExtractionResult with the page text, the collecting state to carry
        into the next page, and whether the stop anchor was reached.

    Raises:
        ParseFailure: If the markup is not a valid token stream
    """
    if isinstance(markup, str):
        markup = markup.encode("utf-8")

    handler = PageExtractionPass(page_path, extraction_range, collecting, stack)
    try:
        # XHTML 1.1 pages declare an external DTD; the reader never fetches it
        defused_sax.parseString(markup, handler, forbid_external=False)
    except _StopBoundaryReached:
        return PageExtractionResult(handler.text, handler.collecting, True)
    except (SAXException, DefusedXmlException) as e:
        raise ParseFailure(page_path, str(e)) from e

    return PageExtractionResult(handler.text, handler.collecting, False)


class ChapterRangeExtractor:
    """
    Extract the text between two table-of-contents entries.

    Pages are visited in table-of-contents order. A page referenced by several
    entries is only walked once, and the walk ends as soon as the stop anchor
    is met.
    """

    def __init__(self, archive: PageArchive):
        self.archive = archive

    def extract(
        self,
        toc: Sequence[ContentEntry],
        from_id: str,
        to_id: Optional[str] = None,
    ) -> str:
        """
        Extract text from ``from_id`` up to, but not including, ``to_id``.

        Args:
            toc: Table of contents sorted by reading order
            from_id: Id of the first entry, "path[#fragment]"
            to_id: Id of the entry to stop at, or None to read to the end

        Returns:
            The collected text, one line per text node. Empty when ``from_id``
            matches no entry.

        Raises:
            MalformedIdentifier: If an id cannot be parsed
            PageResolutionFailure: If an entry's page is missing
            PageContentUnavailable: If a page has no markup
            ParseFailure: If a page's markup cannot be parsed
        """
        extraction_range = ExtractionRange(
            start=parse_anchor_id(from_id),
            stop=parse_anchor_id(to_id) if to_id is not None else None,
        )
        entries = filter_toc_range(toc, extraction_range.start.document_path, to_id)

        collecting = extraction_range.start.fragment is None
        stack: list[OpenElement] = []
        visited: set[Hashable] = set()
        output: list[str] = []

        for entry in entries:
            page_path = entry.document_path
            page = self.archive.resolve_page(page_path)
            if page in visited:
                logger.debug(f"Page '{page_path}' already scanned, skipping")
                continue
            visited.add(page)

            markup = self.archive.get_page_markup(page)
            if not markup:
                raise PageContentUnavailable(page_path)

            result = extract_page(
                markup, page_path, extraction_range, collecting, stack
            )
            output.append(result.text)
            collecting = result.collecting
            if result.stop_reached:
                logger.info(f"Stopped at '{to_id}' after {len(visited)} page(s)")
                return "".join(output)

        logger.info(f"Extracted {len(visited)} page(s) from '{from_id}'")
        return "".join(output)
