"""
Command-line interface for epub2speech.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .models import ContentEntry
from .parser import EPUBParser
from .speech import (
    SpeechConfig,
    SpeechSpeed,
    build_speech_client,
    chunk_text,
    render_to_file,
)
from .textfile import parse_file

console = Console()


def display_toc_table(entries: list[ContentEntry]):
    """Display table-of-contents entries in a table format."""
    table = Table(
        title="📚 Table of Contents", show_header=True, header_style="bold magenta"
    )
    table.add_column("Order", justify="right", style="dim", width=6)
    table.add_column("ID", style="yellow")
    table.add_column("Label", style="cyan")

    for entry in entries:
        table.add_row(str(entry.order), entry.id, entry.label)

    console.print(table)


def load_parser(filepath: Path) -> EPUBParser:
    """Open an EPUB behind a spinner."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Loading {filepath.name}...", total=None)
        return EPUBParser(str(filepath))


@click.group()
@click.version_option(version=__version__, prog_name="epub2speech")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """
    epub2speech - Extract EPUB chapter ranges as plain text for narration.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, path_type=Path))
def toc(filepath: Path):
    """List the table of contents of an EPUB file."""
    try:
        parser = load_parser(filepath)
        entries = parser.get_table_of_contents()

        if not entries:
            console.print("[yellow]No table of contents found in EPUB file.[/yellow]")
            return

        console.print(
            f"\n[bold]Found {len(entries)} entries in {filepath.name}[/bold]\n"
        )
        display_toc_table(entries)

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--from",
    "from_id",
    required=True,
    help="TOC id to start at (e.g. 'text/ch01.xhtml#sec2')",
)
@click.option("--to", "to_id", default=None, help="TOC id to stop before")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file path (default: stdout)",
)
def extract(
    filepath: Path, from_id: str, to_id: Optional[str], output: Optional[Path]
):
    """
    Extract the text between two table-of-contents entries.

    Use the ids shown by the 'toc' command. Without --to, extraction runs to
    the end of the book.
    """
    try:
        parser = load_parser(filepath)
        text = parser.extract(from_id, to_id)

        if not text:
            console.print(f"[yellow]Nothing to extract from '{from_id}'.[/yellow]")

        if output:
            output.write_text(text, encoding="utf-8")
            console.print(
                f"\n[green]✓[/green] Extracted {len(text):,} characters to {output}"
            )
        else:
            # Write to stdout (bypass rich console)
            print(text, end="")

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "-f",
    type=click.Choice(["panel", "table", "json"]),
    default="panel",
    help="Display format for metadata (default: panel)",
)
def info(filepath: Path, format: str):
    """Display metadata information about an EPUB file."""
    try:
        parser = load_parser(filepath)
        metadata = parser.get_metadata()
        entries = parser.get_table_of_contents()
        cover = parser.get_cover()

        fields = [
            ("Title", metadata.title),
            ("Authors", ", ".join(metadata.authors)),
            ("Contributors", ", ".join(metadata.contributors)),
            ("Publisher", metadata.publisher),
            ("Year", metadata.publication_year),
            ("Identifier", metadata.identifier),
            ("Language", metadata.language),
            ("Rights", metadata.rights),
            ("Coverage", metadata.coverage),
        ]
        if metadata.description:
            desc = (
                metadata.description[:200] + "..."
                if len(metadata.description) > 200
                else metadata.description
            )
            fields.append(("Description", desc))
        fields.append(("TOC Entries", str(len(entries))))
        fields.append(("Cover", cover.mime if cover else "none"))

        if format == "json":
            data = {
                "file": filepath.name,
                "title": metadata.title,
                "authors": metadata.authors,
                "contributors": metadata.contributors,
                "publisher": metadata.publisher,
                "publication_year": metadata.publication_year,
                "identifier": metadata.identifier,
                "language": metadata.language,
                "rights": metadata.rights,
                "coverage": metadata.coverage,
                "description": metadata.description,
                "toc_entries": len(entries),
                "cover_mime": cover.mime if cover else None,
            }
            print(json.dumps(data, indent=2, ensure_ascii=False))
        elif format == "table":
            table = Table(
                title=f"📖 {filepath.name}",
                show_header=True,
                header_style="bold magenta",
            )
            table.add_column("Field", style="cyan")
            table.add_column("Value", style="white")
            for name, value in fields:
                if value:
                    table.add_row(name, value)
            console.print(table)
        else:
            info_lines = [
                f"[bold]{name}:[/bold] {value}" for name, value in fields if value
            ]
            panel = Panel(
                "\n".join(info_lines), title=f"📖 {filepath.name}", border_style="cyan"
            )
            console.print(panel)

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    required=True,
    help="File to write the cover image to",
)
def cover(filepath: Path, output: Path):
    """Save the embedded cover image of an EPUB file."""
    try:
        parser = load_parser(filepath)
        book_cover = parser.get_cover()
        if book_cover is None:
            console.print("[yellow]No cover image found in EPUB file.[/yellow]")
            sys.exit(1)

        output.write_bytes(book_cover.data)
        console.print(
            f"[green]✓[/green] Wrote {book_cover.mime} cover "
            f"({len(book_cover.data):,} bytes) to {output}"
        )

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory for the rendered audio parts",
)
@click.option("--from", "from_id", default=None, help="TOC id to start at (EPUB)")
@click.option("--to", "to_id", default=None, help="TOC id to stop before (EPUB)")
@click.option(
    "--provider",
    "-p",
    type=click.Choice(["openai", "command"]),
    default="openai",
    help="Speech provider (default: openai)",
)
@click.option(
    "--api-key",
    envvar="OPENAI_API_KEY",
    default=None,
    help="API key for the openai provider (default: $OPENAI_API_KEY)",
)
@click.option("--voice", default="alloy", help="Voice name (openai)")
@click.option(
    "--speed",
    type=click.Choice([s.value for s in SpeechSpeed]),
    default=SpeechSpeed.NORMAL.value,
    help="Speech speed tier (openai)",
)
@click.option("--language", default=None, help="Language code (command)")
@click.option("--command", "command", default=None, help="Speech command (command)")
@click.option(
    "--max-chars",
    type=int,
    default=4096,
    help="Maximum characters per audio part (default: 4096)",
)
@click.option(
    "--extension",
    default="mp3",
    help="File extension of the audio parts (default: mp3)",
)
def speak(
    filepath: Path,
    output: Path,
    from_id: Optional[str],
    to_id: Optional[str],
    provider: str,
    api_key: Optional[str],
    voice: str,
    speed: str,
    language: Optional[str],
    command: Optional[str],
    max_chars: int,
    extension: str,
):
    """
    Narrate an EPUB chapter range or a .txt file into audio parts.
    """
    try:
        if filepath.suffix.lower() == ".epub":
            if not from_id:
                console.print("[red]Error: --from is required for EPUB input[/red]")
                sys.exit(1)
            text = load_parser(filepath).extract(from_id, to_id)
            chunks = chunk_text(text, max_chars=max_chars)
        else:
            # one audio part per paragraph, split further only when too long
            chunks = [
                chunk
                for paragraph in parse_file(filepath)
                for chunk in chunk_text(paragraph, max_chars=max_chars)
            ]

        if not chunks:
            console.print("[yellow]No text to narrate.[/yellow]")
            return

        client = build_speech_client(
            SpeechConfig(
                provider=provider,
                api_key=api_key,
                voice=voice,
                speed=SpeechSpeed(speed),
                language=language,
                command=command,
            )
        )

        output.mkdir(parents=True, exist_ok=True)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Rendering speech...", total=len(chunks))
            for idx, chunk in enumerate(chunks, 1):
                render_to_file(client, chunk, output / f"part_{idx:04d}.{extension}")
                progress.advance(task)

        console.print(
            f"\n[green]✓[/green] Rendered {len(chunks)} part(s) to {output}"
        )

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
