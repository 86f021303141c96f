"""CLI entry point for scoresync.

Provides commands:
  - generate: Fuse the four sources into one combined manifest
  - canvases: List the canvases of an audio manifest
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scoresync.config import apply_remote_sources, load_fusion_config
from scoresync.fetch import FetchError, SourceFetcher
from scoresync.formatter import display_canvases, display_page_partition, display_run_summary
from scoresync.iiif import CanvasSelectionError, ManifestError, list_audio_canvases
from scoresync.join import CollectionError
from scoresync.pipeline import run_fusion, write_manifest

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="scoresync - Align score page images and note regions with an audio timeline",
    rich_markup_mode="rich",
)
console = Console()

_RUN_ERRORS = (FetchError, ManifestError, CanvasSelectionError, CollectionError)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def generate(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to scoresync config JSON"),
    ] = None,
    remote: Annotated[
        bool,
        typer.Option("--remote", help="Use the published URLs of the reference dataset"),
    ] = False,
    audio_manifest: Annotated[
        str | None,
        typer.Option("--audio-manifest", help="URL or path of the audio manifest"),
    ] = None,
    image_manifest: Annotated[
        str | None,
        typer.Option("--image-manifest", help="URL or path of the score image manifest"),
    ] = None,
    audio_annotations: Annotated[
        str | None,
        typer.Option("--audio-annotations", help="URL or path of the time-frame annotations"),
    ] = None,
    image_annotations: Annotated[
        str | None,
        typer.Option("--image-annotations", help="URL or path of the note-region annotations"),
    ] = None,
    canvas_index: Annotated[
        int | None,
        typer.Option("--canvas-index", "-i", help="Index of the audio canvas to use"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Where to write the combined manifest"),
    ] = None,
    stdout: Annotated[
        bool,
        typer.Option("--stdout", help="Print the manifest instead of writing a file"),
    ] = False,
    show_pages: Annotated[
        bool,
        typer.Option("--show-pages", help="Show the reconciled page partition"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every skipped record"),
    ] = False,
) -> None:
    """Fuse audio and score annotations into one combined IIIF manifest."""
    _configure_logging(verbose)

    config = load_fusion_config(config_path)
    if remote:
        apply_remote_sources(config)

    # CLI options override config
    overrides = {
        "audio_manifest": audio_manifest,
        "image_manifest": image_manifest,
        "audio_annotations": audio_annotations,
        "image_annotations": image_annotations,
        "canvas_index": canvas_index,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    if output is not None:
        config.output_path = str(output)

    try:
        result = asyncio.run(run_fusion(config))
    except _RUN_ERRORS as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if stdout:
        typer.echo(result.to_json())
        return

    path = write_manifest(result.manifest, Path(config.output_path))
    display_run_summary(result, console)
    if show_pages:
        display_page_partition(result.page_segments, console)
    console.print(f"\n[green]Wrote[/green] {path}")


@app.command()
def canvases(
    location: Annotated[str, typer.Argument(help="URL or path of the audio manifest")],
    timeout: Annotated[
        float,
        typer.Option("--timeout", help="Request timeout in seconds"),
    ] = 30.0,
) -> None:
    """List the canvases of an audio manifest and flag those without audio."""
    _configure_logging(False)
    fetcher = SourceFetcher(timeout=timeout)
    try:
        manifest = asyncio.run(fetcher.fetch_json(location))
        summaries = list_audio_canvases(manifest)
    except (FetchError, ManifestError) as e:
        console.print(f"[red]Failed to load audio canvases:[/red] {e}")
        raise typer.Exit(code=1)

    if not summaries:
        console.print("[yellow]Audio manifest has no canvases.[/yellow]")
        return
    display_canvases(summaries, console)
