"""Rich display of fusion runs and audio canvas listings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scoresync.fragments import format_number

if TYPE_CHECKING:
    from scoresync.models import CanvasSummary, Segment
    from scoresync.pipeline import FusionResult


def seconds_label(seconds: float | None) -> str:
    """Render a time in seconds for display: ``"63.63s"``, ``"-"`` when unknown."""
    if seconds is None:
        return "-"
    return f"{format_number(round(seconds, 2))}s"


def display_run_summary(result: FusionResult, console: Console | None = None) -> None:
    """Print the counters of a run and the selected audio canvas.

    Args:
        result: Output of the pipeline.
        console: Optional Console for testing (defaults to a new one).
    """
    con = console or Console()
    canvas = result.canvas
    con.print(
        Panel(
            f"Canvas {canvas.index}: [bold]{canvas.canvas_id}[/bold]\n"
            f"Duration: {seconds_label(canvas.duration)}",
            title="Audio Timeline",
        )
    )

    stats = result.stats
    table = Table(title="Fusion Results")
    table.add_column("Stage", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Timed note ids", str(stats.temporal_ids))
    table.add_row("Notes placed on a page", f"[green]{stats.joined_ids}[/green]")
    table.add_row("Ids without timing", f"[yellow]{stats.abandoned_ids}[/yellow]")
    table.add_row("Unresolved image sources", f"[red]{stats.unresolved_sources}[/red]")
    table.add_row("Pages in image manifest", str(stats.pages_indexed))
    table.add_row("Page segments", str(stats.page_segments))
    table.add_row("Note segments", str(stats.note_segments))
    con.print(table)


def display_page_partition(segments: list[Segment], console: Console | None = None) -> None:
    """Print the reconciled page partition, one row per page."""
    con = console or Console()
    if not segments:
        con.print("[yellow]No page received a timed note.[/yellow]")
        return

    table = Table(title="Page Partition")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Page", overflow="fold")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    for index, segment in enumerate(segments):
        table.add_row(
            str(index), segment.key, seconds_label(segment.start), seconds_label(segment.end)
        )
    con.print(table)


def display_canvases(canvases: list[CanvasSummary], console: Console | None = None) -> None:
    """Print the canvases of an audio manifest with their audio flag."""
    con = console or Console()
    table = Table(title="Audio Manifest Canvases")
    table.add_column("Index", justify="right", style="bold")
    table.add_column("Label")
    table.add_column("Duration", justify="right")
    table.add_column("Audio", justify="center")
    for canvas in canvases:
        table.add_row(
            str(canvas.index),
            canvas.label,
            seconds_label(canvas.duration),
            "[green]yes[/green]" if canvas.has_audio else "[yellow]no audio[/yellow]",
        )
    con.print(table)
