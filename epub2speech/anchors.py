"""
Content identifier parsing and table-of-contents range selection.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from .exceptions import MalformedIdentifier
from .models import AnchorReference, ContentEntry

logger = logging.getLogger(__name__)


def parse_anchor_id(raw_id: str) -> AnchorReference:
    """
    Split a content identifier like "text/ch01.xhtml#sec2" at the first '#'.

    Args:
        raw_id: Identifier in "path[#fragment]" form

    Returns:
        AnchorReference with the document path and the fragment, if any.
        An empty fragment ("ch01.xhtml#") is treated as no fragment.

    Raises:
        MalformedIdentifier: If the identifier or its path part is empty
    """
    if not raw_id:
        raise MalformedIdentifier("Content identifier is empty")

    path, _, fragment = raw_id.partition("#")
    if not path:
        raise MalformedIdentifier(f"Content identifier '{raw_id}' has no path")

    return AnchorReference(document_path=path, fragment=fragment or None)


def filter_toc_range(
    entries: Sequence[ContentEntry],
    from_path: str,
    to_id: Optional[str] = None,
) -> list[ContentEntry]:
    """
    Select the contiguous run of entries to scan for an extraction.

    The run starts at the first entry whose document path equals ``from_path``
    and ends just before the first later entry whose full id equals ``to_id``.
    The start test ignores fragments so that any entry of a multi-section page
    qualifies; the stop test compares full ids because a stop may point at a
    specific section.

    Args:
        entries: Entries sorted by reading order
        from_path: Document path of the start anchor
        to_id: Full id of the stop entry, or None to run to the end

    Returns:
        The selected entries. Empty if no entry matches ``from_path``.
    """
    start_idx = next(
        (i for i, entry in enumerate(entries) if entry.document_path == from_path),
        None,
    )
    if start_idx is None:
        logger.info(f"No TOC entry matches '{from_path}', nothing to extract")
        return []

    end_idx = len(entries)
    if to_id is not None:
        for i in range(start_idx + 1, len(entries)):
            if entries[i].id == to_id:
                end_idx = i
                break

    selected = list(entries[start_idx:end_idx])
    logger.debug(
        f"Selected {len(selected)} TOC entries from '{from_path}' to '{to_id or 'end'}'"
    )
    return selected
