"""Shared fixtures: EPUB files written with ebooklib."""

from pathlib import Path

import pytest
from ebooklib import epub  # type: ignore[import-untyped]

COVER_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fixture-cover"

# Entries 13-15 live on one page and are addressed by fragment.
SHARED_PAGE = "part3.xhtml"


def _chapter_html(number: int) -> str:
    return f"""<html><body>
<h2>Chapter{number} opening</h2>
<p>Body text unique to chapter{number}.</p>
</body></html>"""


SHARED_PAGE_HTML = """<html><body>
<p>Preamble of part three.</p>
<h2 id="sec13">Thirteen Marbles</h2>
<p>Marbles rolled across the floor.</p>
<script>var hidden = "script text";</script>
<p>Thirteen ends here.</p>
<h2 id="sec14">Fourteen Lanterns</h2>
<p>Lanterns glowed in the harbor.</p>
<h2 id="sec15">Fifteen Quokkas</h2>
<p>Quokkas smiled at the tourists.</p>
</body></html>"""

# EPUB 2 content document: XML declaration, XHTML 1.1 DOCTYPE, named entities.
EPUB2_PAGE_XHTML = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN"
  "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>Chapter 16</title></head>
<body>
<h2>Chapter16 opening</h2>
<p>Body text unique to chapter16.</p>
<p>Harbor&mdash;lights&nbsp;dim.</p>
</body>
</html>"""

LAST_PAGE_HTML = """<html><body>
<h2>Zephyr winds</h2>
<p>The final chapter begins with a breeze.</p>
<svg><text>Vector caption</text></svg>
<p>The book closes quietly.</p>
</body></html>"""


def build_epub(path: Path) -> Path:
    """Write a book whose table of contents has 19 entries."""
    book = epub.EpubBook()
    book.set_identifier("epub2speech-fixture")
    book.set_title("Nineteen Entries")
    book.set_language("en")
    book.add_author("Ada Author")
    book.add_author("Bob Writer")
    book.add_metadata("DC", "publisher", "Fixture Press")
    book.add_metadata("DC", "description", "A book built for tests.")
    book.add_metadata("DC", "date", "2021-05-04")
    book.set_cover("cover.jpg", COVER_BYTES)

    toc = []
    spine: list = ["nav"]

    def add_page(file_name: str, content: str) -> None:
        page = epub.EpubHtml(
            uid=file_name.replace(".", "_"), file_name=file_name, content=content
        )
        book.add_item(page)
        spine.append(page)

    for number in range(1, 13):
        file_name = f"ch{number:02d}.xhtml"
        add_page(file_name, _chapter_html(number))
        toc.append(epub.Link(file_name, f"Chapter {number}", f"toc{number:02d}"))

    add_page(SHARED_PAGE, SHARED_PAGE_HTML)
    for number, label in (
        (13, "Thirteen Marbles"),
        (14, "Fourteen Lanterns"),
        (15, "Fifteen Quokkas"),
    ):
        toc.append(epub.Link(f"{SHARED_PAGE}#sec{number}", label, f"toc{number}"))

    # ebooklib would re-serialize an EpubHtml, so the EPUB 2 page is stored raw
    epub2_page = epub.EpubItem(
        uid="ch16_xhtml",
        file_name="ch16.xhtml",
        media_type="application/xhtml+xml",
        content=EPUB2_PAGE_XHTML.encode("utf-8"),
    )
    book.add_item(epub2_page)
    spine.append(epub2_page)
    toc.append(epub.Link("ch16.xhtml", "Chapter 16", "toc16"))

    for number in range(17, 19):
        file_name = f"ch{number:02d}.xhtml"
        add_page(file_name, _chapter_html(number))
        toc.append(epub.Link(file_name, f"Chapter {number}", f"toc{number}"))

    add_page("ch19.xhtml", LAST_PAGE_HTML)
    toc.append(epub.Link("ch19.xhtml", "Chapter 19", "toc19"))

    book.toc = toc
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = spine

    epub.write_epub(str(path), book, {"play_order": {"enabled": True, "start_from": 1}})
    return path


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """EPUB with 19 TOC entries, a cover and Dublin Core metadata."""
    return build_epub(tmp_path / "nineteen.epub")
