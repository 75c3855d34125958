"""Plain-text input: paragraph splitting and extension dispatch."""

import logging
from pathlib import Path
from typing import Union

from .exceptions import UnsupportedFileType

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"


def split_paragraphs(data: bytes) -> list[str]:
    """
    Split raw text into paragraphs on blank lines.

    Invalid UTF-8 is replaced rather than rejected. Paragraphs are stripped
    and empty ones are dropped.
    """
    text = data.decode("utf-8", errors="replace")
    return [p.strip() for p in text.split(PARAGRAPH_SEPARATOR) if p.strip()]


def parse_file(path: Union[str, Path]) -> list[str]:
    """
    Read a supported text file as a list of paragraphs.

    Raises:
        UnsupportedFileType: If the file extension is not ".txt"
    """
    path = Path(path)
    if path.suffix.lower() != ".txt":
        raise UnsupportedFileType(f"extension is unsupported: {path.name}")

    paragraphs = split_paragraphs(path.read_bytes())
    logger.info(f"Read {len(paragraphs)} paragraph(s) from {path.name}")
    return paragraphs
