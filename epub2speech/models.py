"""Data models for table-of-contents entries, anchors and book metadata."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ContentEntry:
    """
    One navigable point of a table of contents.

    Attributes:
        id: Document path with an optional "#fragment" suffix
        order: Reading sequence (NCX playOrder or navigation position)
        label: Display name of the entry
    """

    id: str
    order: int
    label: str

    @property
    def document_path(self) -> str:
        """Path component of the id, without any fragment."""
        return self.id.split("#", 1)[0]


@dataclass(frozen=True)
class AnchorReference:
    """A document path plus an optional in-document element id."""

    document_path: str
    fragment: Optional[str] = None

    def __str__(self) -> str:
        if self.fragment is None:
            return self.document_path
        return f"{self.document_path}#{self.fragment}"


@dataclass
class OpenElement:
    """An element whose start tag has been seen but not its end tag."""

    tag_name: str
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractionRange:
    """Start and optional stop anchors of one extraction call."""

    start: AnchorReference
    stop: Optional[AnchorReference] = None


@dataclass
class PageExtractionResult:
    """Outcome of walking a single page."""

    text: str
    collecting: bool
    stop_reached: bool = False


@dataclass
class Metadata:
    """Dublin Core metadata of an EPUB."""

    title: Optional[str] = None
    authors: list[str] = field(default_factory=list)
    description: Optional[str] = None
    publisher: Optional[str] = None
    publication_year: Optional[str] = None
    identifier: Optional[str] = None
    language: Optional[str] = None
    contributors: list[str] = field(default_factory=list)
    rights: Optional[str] = None
    coverage: Optional[str] = None


@dataclass
class Cover:
    """Embedded cover image."""

    mime: str
    data: bytes
