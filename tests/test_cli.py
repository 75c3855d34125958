"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from epub2speech.cli import cli

from conftest import COVER_BYTES


def test_toc_lists_entries(sample_epub: Path) -> None:
    result = CliRunner().invoke(cli, ["toc", str(sample_epub)])

    assert result.exit_code == 0
    assert "Found 19 entries" in result.output
    assert "Fourteen Lanterns" in result.output


def test_extract_prints_range(sample_epub: Path) -> None:
    result = CliRunner().invoke(
        cli,
        [
            "extract",
            str(sample_epub),
            "--from",
            "part3.xhtml#sec13",
            "--to",
            "part3.xhtml#sec14",
        ],
    )

    assert result.exit_code == 0
    assert "Thirteen Marbles" in result.output
    assert "Lanterns glowed" not in result.output


def test_extract_writes_output_file(sample_epub: Path, tmp_path: Path) -> None:
    target = tmp_path / "out.txt"
    result = CliRunner().invoke(
        cli, ["extract", str(sample_epub), "--from", "ch19.xhtml", "-o", str(target)]
    )

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8").startswith("Zephyr")


def test_extract_malformed_id_fails(sample_epub: Path) -> None:
    result = CliRunner().invoke(cli, ["extract", str(sample_epub), "--from", "#x"])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_info_json(sample_epub: Path) -> None:
    result = CliRunner().invoke(cli, ["info", str(sample_epub), "-f", "json"])

    assert result.exit_code == 0
    data = json.loads(result.output[result.output.index("{") :])
    assert data["title"] == "Nineteen Entries"
    assert data["authors"] == ["Ada Author", "Bob Writer"]
    assert data["toc_entries"] == 19
    assert data["cover_mime"] == "image/jpeg"


def test_info_panel(sample_epub: Path) -> None:
    result = CliRunner().invoke(cli, ["info", str(sample_epub)])

    assert result.exit_code == 0
    assert "Fixture Press" in result.output


def test_cover_writes_image(sample_epub: Path, tmp_path: Path) -> None:
    target = tmp_path / "cover.jpg"
    result = CliRunner().invoke(cli, ["cover", str(sample_epub), "-o", str(target)])

    assert result.exit_code == 0
    assert target.read_bytes() == COVER_BYTES


def test_speak_without_key_fails(sample_epub: Path, tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli,
        [
            "speak",
            str(sample_epub),
            "--from",
            "ch19.xhtml",
            "-o",
            str(tmp_path / "audio"),
        ],
        env={"OPENAI_API_KEY": None},
    )

    assert result.exit_code == 1
    assert "API key" in result.output


def test_speak_epub_range(sample_epub: Path, tmp_path: Path) -> None:
    out_dir = tmp_path / "audio"
    with patch("epub2speech.cli.render_to_file") as render:
        result = CliRunner().invoke(
            cli,
            [
                "speak",
                str(sample_epub),
                "--from",
                "ch19.xhtml",
                "-o",
                str(out_dir),
                "--api-key",
                "sk-test",
                "--speed",
                "slow",
            ],
        )

    assert result.exit_code == 0
    client, text, path = render.call_args.args
    assert client.speed == 0.75
    assert text.startswith("Zephyr")
    assert path == out_dir / "part_0001.mp3"


def test_speak_txt_with_command_provider(tmp_path: Path) -> None:
    source = tmp_path / "story.txt"
    source.write_text("First paragraph.\n\nSecond paragraph.\n", encoding="utf-8")
    out_dir = tmp_path / "audio"

    with patch("epub2speech.cli.render_to_file") as render:
        result = CliRunner().invoke(
            cli,
            [
                "speak",
                str(source),
                "-o",
                str(out_dir),
                "--provider",
                "command",
                "--command",
                "tts-cli",
                "--max-chars",
                "20",
                "--extension",
                "wav",
            ],
        )

    assert result.exit_code == 0
    assert render.call_count == 2
    assert render.call_args_list[1].args[2] == out_dir / "part_0002.wav"


def test_speak_txt_keeps_paragraphs_apart(tmp_path: Path) -> None:
    source = tmp_path / "story.txt"
    source.write_text("One.\nStill one.\n\nTwo.\n", encoding="utf-8")

    with patch("epub2speech.cli.render_to_file") as render:
        result = CliRunner().invoke(
            cli,
            [
                "speak",
                str(source),
                "-o",
                str(tmp_path / "audio"),
                "--provider",
                "command",
                "--command",
                "tts-cli",
            ],
        )

    assert result.exit_code == 0
    texts = [call.args[1] for call in render.call_args_list]
    assert texts == ["One.\nStill one.", "Two."]


def test_speak_epub_requires_from(sample_epub: Path, tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli, ["speak", str(sample_epub), "-o", str(tmp_path / "audio")]
    )
    assert result.exit_code == 1
