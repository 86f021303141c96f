"""End-to-end fusion run.

Data flow::

    sources -> select audio canvas -> index pages -> join annotations
            -> reconcile pages, reconcile notes -> build manifest

The audio canvas is validated before any annotation work, so a bad
canvas index fails fast without producing anything.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from scoresync.assembler import ManifestOptions, build_manifest
from scoresync.fetch import SourceDocuments, SourceFetcher
from scoresync.iiif import PageIndex, select_audio_canvas
from scoresync.join import join_annotations
from scoresync.models import AudioCanvas, FusionConfig, FusionStats, NoteRecord, Segment
from scoresync.reconcile import reconcile_notes, reconcile_pages

logger = logging.getLogger(__name__)


@dataclass
class FusionResult:
    """The generated manifest plus the intermediate partitions."""

    manifest: dict[str, Any]
    canvas: AudioCanvas
    page_segments: list[Segment]
    note_segments: list[Segment]
    records: dict[str, NoteRecord] = field(repr=False)
    stats: FusionStats = field(default_factory=FusionStats)

    def to_json(self) -> str:
        return dump_manifest(self.manifest)


def options_from_config(config: FusionConfig) -> ManifestOptions:
    return ManifestOptions(
        manifest_id=config.manifest_id,
        manifest_label=config.manifest_label,
        canvas_label=config.canvas_label,
        annotation_base=config.annotation_base,
        audio_format=config.audio_format,
    )


def fuse(
    documents: SourceDocuments,
    canvas_index: int,
    options: ManifestOptions | None = None,
) -> FusionResult:
    """Run the synchronous part of the pipeline over loaded documents.

    Raises:
        ManifestError: If either manifest is structurally unusable.
        CanvasSelectionError: If *canvas_index* does not select an audio canvas.
        CollectionError: If an annotation collection has the wrong shape.
    """
    canvas = select_audio_canvas(documents.audio_manifest, canvas_index)
    pages = PageIndex.from_manifest(documents.image_manifest)

    joined = join_annotations(documents.audio_annotations, documents.image_annotations, pages)
    page_segments = reconcile_pages(joined.pages)
    note_segments = reconcile_notes(joined.records)

    manifest = build_manifest(
        canvas, page_segments, note_segments, joined.records, pages, options
    )
    stats = FusionStats(
        temporal_ids=len(joined.records),
        joined_ids=sum(1 for r in joined.records.values() if r.is_complete),
        abandoned_ids=len(joined.abandoned),
        unresolved_sources=len(joined.unresolved),
        pages_indexed=len(pages),
        page_segments=len(page_segments),
        note_segments=len(note_segments),
    )
    return FusionResult(
        manifest=manifest,
        canvas=canvas,
        page_segments=page_segments,
        note_segments=note_segments,
        records=joined.records,
        stats=stats,
    )


async def run_fusion(config: FusionConfig, fetcher: SourceFetcher | None = None) -> FusionResult:
    """Load the four sources of *config* concurrently, then fuse them.

    Raises:
        FetchError: If any source cannot be loaded.
        Plus everything :func:`fuse` raises.
    """
    fetcher = fetcher or SourceFetcher(
        timeout=config.timeout, headers=config.extra_headers, retries=config.retries
    )
    documents = await fetcher.load_all(config.sources())
    return fuse(documents, config.canvas_index, options_from_config(config))


def dump_manifest(manifest: dict[str, Any]) -> str:
    """Serialize deterministically: 2-space indent, insertion-ordered keys."""
    return json.dumps(manifest, indent=2, ensure_ascii=False)


def write_manifest(manifest: dict[str, Any], output_path: Path) -> Path:
    """Write the manifest as UTF-8 JSON, creating parent directories."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_manifest(manifest), encoding="utf-8")
    logger.info("Wrote combined manifest to %s", output_path)
    return output_path
