"""
epub2speech - Extract EPUB chapter ranges as plain text for narration.

Reads the table of contents of an EPUB, pulls the text between two of its
entries with markup and media elements removed, and hands it to a
text-to-speech provider. Usable both as a CLI tool and as a library.
"""

from importlib.metadata import PackageNotFoundError, version

from .anchors import filter_toc_range, parse_anchor_id
from .exceptions import (
    ExtractionError,
    MalformedIdentifier,
    PageContentUnavailable,
    PageResolutionFailure,
    ParseFailure,
)
from .extraction import ChapterRangeExtractor, extract_page
from .models import AnchorReference, ContentEntry, Cover, Metadata
from .parser import EPUBParser

__all__ = [
    "EPUBParser",
    "ChapterRangeExtractor",
    "extract_page",
    "parse_anchor_id",
    "filter_toc_range",
    "AnchorReference",
    "ContentEntry",
    "Cover",
    "Metadata",
    "ExtractionError",
    "MalformedIdentifier",
    "PageResolutionFailure",
    "PageContentUnavailable",
    "ParseFailure",
]

try:
    __version__ = version("epub2speech")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"
