"""Tests for plain-text paragraph splitting."""

from pathlib import Path

import pytest

from epub2speech.exceptions import UnsupportedFileType
from epub2speech.textfile import parse_file, split_paragraphs

SAMPLE = """
this is a test
paragraph 1
paragraph 1


paragraph 2
paragraph 2



paragraph 3
paragraph 3




paragraph 4
paragraph 4
"""


def test_split_paragraphs_drops_blank_paragraphs() -> None:
    paragraphs = split_paragraphs(SAMPLE.encode("utf-8"))

    assert len(paragraphs) == 4
    assert paragraphs[0] == "this is a test\nparagraph 1\nparagraph 1"
    assert paragraphs[-1] == "paragraph 4\nparagraph 4"


def test_split_paragraphs_replaces_invalid_utf8() -> None:
    paragraphs = split_paragraphs(b"caf\xe9\n\nok")
    assert paragraphs == ["caf\ufffd", "ok"]


def test_split_paragraphs_whitespace_only() -> None:
    assert split_paragraphs(b"  \n\n \t \n\n") == []


def test_parse_file_reads_txt(tmp_path: Path) -> None:
    path = tmp_path / "book.txt"
    path.write_text(SAMPLE, encoding="utf-8")
    assert len(parse_file(path)) == 4


def test_parse_file_rejects_other_extensions(tmp_path: Path) -> None:
    path = tmp_path / "book.pdf"
    path.write_bytes(b"%PDF")
    with pytest.raises(UnsupportedFileType):
        parse_file(path)
