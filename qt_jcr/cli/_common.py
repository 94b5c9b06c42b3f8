"""Shared CLI helpers: content loading, Rich output."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

console = Console()


def resolve_content_file(content: Optional[str]) -> Path:
    """Resolve the JSON content file for the in-memory engine.

    Falls back to ``QT_JCR_CONTENT_FILE`` when no path is given.
    Raises click.BadParameter if neither names an existing file.
    """
    import click

    from ..config import get_settings

    if not content:
        settings = get_settings()
        if not settings.has_content_file:
            raise click.BadParameter(
                "No content file given and QT_JCR_CONTENT_FILE is not set.",
                param_hint="'--content'",
            )
        content = settings.content_file

    path = Path(content).expanduser()
    if not path.is_file():
        raise click.BadParameter(f"Content file not found: {content!r}", param_hint="'--content'")
    return path


def load_engine(content: Optional[str]):
    """Build an in-memory engine from a content file.

    Raises click.BadParameter if the file is missing or malformed.
    """
    import click

    from ..engine.memory import MemoryQueryEngine

    path = resolve_content_file(content)
    try:
        return MemoryQueryEngine.from_file(path)
    except ValueError as e:
        raise click.BadParameter(f"Invalid content file {str(path)!r}: {e}", param_hint="'--content'") from e


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print(f"\n[bold cyan]{text}[/bold cyan]")


def print_error(text: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(text)}")
