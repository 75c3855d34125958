"""
EPUB container access: table of contents, pages, metadata and cover.
"""

import logging
import posixpath
import re
import urllib.parse
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import ebooklib  # type: ignore[import-untyped]
from bs4 import BeautifulSoup  # type: ignore[import-untyped]
from ebooklib import epub

from .exceptions import PageContentUnavailable, PageResolutionFailure
from .extraction import ChapterRangeExtractor
from .models import ContentEntry, Cover, Metadata

logger = logging.getLogger(__name__)


class EPUBParser:
    """
    Read-only view over an EPUB archive.

    Exposes the ordered table of contents, resolves document paths to pages
    and serves raw page markup to a ChapterRangeExtractor.

    A parser keeps ebooklib state and is meant to serve one extraction call at
    a time. Open one parser per thread when extracting concurrently.
    """

    def __init__(self, filepath: str):
        """
        Initialize parser with EPUB file.

        Args:
            filepath: Path to the EPUB file

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file is not a valid EPUB
        """
        self.filepath = Path(filepath)
        if not self.filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        self.book: Any = None
        self._toc: Optional[list[ContentEntry]] = None
        self._metadata: Optional[Metadata] = None

        self._load_epub()

    def _load_epub(self) -> None:
        """Load and parse the EPUB file."""
        try:
            self.book = epub.read_epub(str(self.filepath))
            logger.info(f"Loaded EPUB: {self.filepath.name}")
        except Exception as e:
            raise ValueError(f"Failed to read EPUB file: {e}") from e

    # Metadata and cover

    def _dc_values(self, name: str) -> list[str]:
        """Return the non-empty values of a Dublin Core element."""
        try:
            items = self.book.get_metadata("DC", name) or []
        except Exception as e:
            logger.warning(f"Error reading dc:{name}: {e}")
            return []
        values = [str(item[0]).strip() for item in items if item and item[0]]
        return [value for value in values if value]

    def _dc_first(self, name: str) -> Optional[str]:
        values = self._dc_values(name)
        return values[0] if values else None

    def get_metadata(self) -> Metadata:
        """
        Collect the Dublin Core metadata of the book.

        ``creator`` and ``contributor`` may repeat; every other element keeps
        its first value. The year is the first four-digit run of ``date``,
        or the raw date when it has none.
        """
        if self._metadata is None:
            date = self._dc_first("date")
            year_match = re.search(r"\d{4}", date) if date else None
            self._metadata = Metadata(
                title=self._dc_first("title"),
                authors=self._dc_values("creator"),
                description=self._dc_first("description"),
                publisher=self._dc_first("publisher"),
                publication_year=year_match.group(0) if year_match else date,
                identifier=self._dc_first("identifier"),
                language=self._dc_first("language"),
                contributors=self._dc_values("contributor"),
                rights=self._dc_first("rights"),
                coverage=self._dc_first("coverage"),
            )
        return self._metadata

    def get_cover(self) -> Optional[Cover]:
        """
        Find the embedded cover image.

        Looks at ITEM_COVER images first, then at the OPF ``<meta name="cover">``
        reference, then at any image whose id or file name mentions "cover".

        Returns:
            Cover with mime type and bytes, or None if the book has none
        """
        for item in self.book.get_items_of_type(ebooklib.ITEM_COVER):
            if _is_image(item):
                return _to_cover(item)

        try:
            cover_meta = self.book.get_metadata("OPF", "cover")
        except Exception as e:
            logger.warning(f"Error reading cover metadata: {e}")
            cover_meta = []
        for _, attrs in cover_meta or []:
            cover_id = (attrs or {}).get("content")
            item = self.book.get_item_with_id(cover_id) if cover_id else None
            if item is not None and _is_image(item):
                return _to_cover(item)

        for item in self.book.get_items_of_type(ebooklib.ITEM_IMAGE):
            item_id = (item.get_id() or "").lower()
            if "cover" in item_id or "cover" in item.get_name().lower():
                return _to_cover(item)

        logger.info(f"No cover image found in {self.filepath.name}")
        return None

    # Table of contents

    def get_table_of_contents(self) -> list[ContentEntry]:
        """
        Return the table of contents sorted by reading order.

        NCX navigation is preferred because it carries explicit play order;
        NAV HTML entries are ordered by their position in the document.

        Returns:
            List of ContentEntry objects. Empty if the book has no navigation.
        """
        if self._toc is not None:
            return self._toc

        nav_item, nav_type = self._find_navigation()
        if nav_item is None:
            logger.warning("No navigation document (NAV HTML or NCX) found")
            self._toc = []
            return self._toc

        content = nav_item.get_content().decode("utf-8", errors="ignore")
        base_dir = posixpath.dirname(nav_item.get_name())
        if nav_type == "ncx":
            entries = self._parse_ncx(content, base_dir)
        else:
            entries = self._parse_nav_html(content, base_dir)

        seen: set[str] = set()
        unique: list[ContentEntry] = []
        for entry in entries:
            if entry.id in seen:
                logger.debug(f"Duplicate TOC entry '{entry.id}' ignored")
                continue
            seen.add(entry.id)
            unique.append(entry)

        # sorted() is stable, so entries sharing an order keep document order
        self._toc = sorted(unique, key=lambda e: e.order)
        logger.info(
            f"Found {len(self._toc)} TOC entries in {nav_item.get_name()} ({nav_type})"
        )
        return self._toc

    def _find_navigation(self) -> tuple[Any, Optional[str]]:
        """Locate the navigation document and report its kind."""
        nav_items = list(self.book.get_items_of_type(ebooklib.ITEM_NAVIGATION))

        ncx_item = next(
            (item for item in nav_items if item.get_name().lower().endswith(".ncx")),
            None,
        )
        if ncx_item is None:
            ncx_constant = getattr(epub, "ITEM_NCX", None)
            if ncx_constant is not None:
                ncx_item = next(iter(self.book.get_items_of_type(ncx_constant)), None)
        if ncx_item is not None:
            logger.debug(f"Found NCX: {ncx_item.get_name()}")
            return ncx_item, "ncx"

        html_navs = [
            item
            for item in nav_items
            if item.get_name().lower().endswith((".xhtml", ".html"))
        ]
        html_navs += [
            item
            for item in self.book.get_items_of_type(ebooklib.ITEM_DOCUMENT)
            if isinstance(item, epub.EpubNav)
        ]
        preferred_nav = next(
            (item for item in html_navs if "nav" in item.get_name().lower()),
            None,
        )
        if preferred_nav is not None or html_navs:
            nav_item = preferred_nav or html_navs[0]
            logger.debug(f"Found NAV HTML: {nav_item.get_name()}")
            return nav_item, "html"

        for item in self.book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
            try:
                html_content = item.get_content().decode("utf-8", errors="ignore")
            except (AttributeError, UnicodeDecodeError):
                continue
            if "<nav" in html_content and 'epub:type="toc"' in html_content:
                soup = BeautifulSoup(html_content, "html.parser")
                if soup.find("nav", attrs={"epub:type": "toc"}):
                    logger.debug(f"Found NAV HTML in: {item.get_name()}")
                    return item, "html"

        return None, None

    def _parse_ncx(self, content: str, base_dir: str) -> list[ContentEntry]:
        """Flatten NCX navPoints in document order."""
        soup = BeautifulSoup(content, "xml")
        nav_map = soup.find("navMap")
        if nav_map is None:
            logger.warning("Could not find <navMap> in NCX")
            return []

        entries: list[ContentEntry] = []
        for position, nav_point in enumerate(nav_map.find_all("navPoint")):
            nav_content = nav_point.find("content", recursive=False)
            src = nav_content.get("src") if nav_content else None
            if not src:
                logger.warning("NCX navPoint without 'src' skipped")
                continue

            nav_label = nav_point.find("navLabel", recursive=False)
            label_text = nav_label.find("text") if nav_label else None
            label = (
                label_text.get_text(strip=True) if label_text else "Untitled Section"
            )

            play_order = nav_point.get("playOrder")
            try:
                order = int(play_order) if play_order is not None else position
            except ValueError:
                logger.warning(f"Invalid playOrder '{play_order}' for '{src}'")
                order = position

            entries.append(
                ContentEntry(id=_resolve_src(base_dir, src), order=order, label=label)
            )
        return entries

    def _parse_nav_html(self, content: str, base_dir: str) -> list[ContentEntry]:
        """Read the links of an EPUB3 navigation document in document order."""
        soup = BeautifulSoup(content, "html.parser")
        toc_nav = soup.find("nav", attrs={"epub:type": "toc"})
        if toc_nav is None:
            toc_nav = next(
                (nav for nav in soup.find_all("nav") if nav.find("ol")), None
            )
        if toc_nav is None:
            logger.warning("Could not find TOC structure in NAV HTML")
            return []

        entries: list[ContentEntry] = []
        for link in toc_nav.find_all("a", href=True):
            label = link.get_text(strip=True) or "Untitled Section"
            entries.append(
                ContentEntry(
                    id=_resolve_src(base_dir, link["href"]),
                    order=len(entries),
                    label=label,
                )
            )
        return entries

    # Pages

    def resolve_page(self, document_path: str) -> Any:
        """
        Find the manifest item for a document path.

        Args:
            document_path: Path relative to the package document

        Returns:
            The ebooklib item for the page

        Raises:
            PageResolutionFailure: If no manifest item matches
        """
        candidates = [document_path, urllib.parse.unquote(document_path)]
        for candidate in candidates:
            item = self.book.get_item_with_href(candidate)
            if item is not None:
                return item

        base_name = posixpath.basename(urllib.parse.unquote(document_path)).lower()
        for item in self.book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
            name = urllib.parse.unquote(item.get_name())
            if posixpath.basename(name).lower() == base_name:
                logger.debug(f"Resolved '{document_path}' to '{item.get_name()}'")
                return item

        raise PageResolutionFailure(document_path)

    def get_page_markup(self, page: Any) -> bytes:
        """
        Return the page markup exactly as stored in the archive.

        Raises:
            PageContentUnavailable: If the page is empty
        """
        content = getattr(page, "content", None)
        if isinstance(content, str):
            content = content.encode("utf-8")
        if not content:
            raise PageContentUnavailable(page.get_name())
        return content

    def extract(
        self,
        from_id: str,
        to_id: Optional[str] = None,
        toc: Optional[Sequence[ContentEntry]] = None,
    ) -> str:
        """
        Extract the text from ``from_id`` up to ``to_id``.

        Args:
            from_id: TOC id to start at, "path[#fragment]"
            to_id: TOC id to stop before, or None to read to the end
            toc: Entries to use instead of the book's own table of contents

        Returns:
            Extracted text, one line per text node
        """
        entries = toc if toc is not None else self.get_table_of_contents()
        return ChapterRangeExtractor(self).extract(entries, from_id, to_id)


def _resolve_src(base_dir: str, src: str) -> str:
    """Make a navigation href relative to the package document."""
    path, sep, fragment = src.partition("#")
    path = urllib.parse.unquote(path)
    if base_dir and path:
        path = posixpath.normpath(posixpath.join(base_dir, path))
    return f"{path}#{fragment}" if sep and fragment else path


def _is_image(item: Any) -> bool:
    return (getattr(item, "media_type", "") or "").startswith("image/")


def _to_cover(item: Any) -> Cover:
    return Cover(mime=item.media_type, data=item.get_content())
