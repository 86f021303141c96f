"""Assemble the combined IIIF Presentation 3 manifest.

The output has a single canvas, the selected audio canvas, carrying:

- the audio annotation, declared as ``Sound``;
- one painting annotation per page segment, showing the page image over
  its reconciled time slot;
- one highlighting annotation page with a note annotation per note
  segment, targeting the note polygon during its reconciled time slot.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from scoresync.constants import (
    DEFAULT_ANNOTATION_BASE,
    DEFAULT_AUDIO_FORMAT,
    DEFAULT_CANVAS_LABEL,
    DEFAULT_MANIFEST_ID,
    DEFAULT_MANIFEST_LABEL,
    FRAGMENT_SELECTOR,
    MEDIA_FRAGMENTS_URI,
    SOUND_TYPE,
)
from scoresync.fragments import time_fragment
from scoresync.iiif import PageIndex
from scoresync.models import AudioCanvas, NoteRecord, PageResource, Segment


@dataclass
class ManifestOptions:
    """Identity of the generated manifest."""

    manifest_id: str = DEFAULT_MANIFEST_ID
    manifest_label: str = DEFAULT_MANIFEST_LABEL
    canvas_label: str = DEFAULT_CANVAS_LABEL
    annotation_base: str = DEFAULT_ANNOTATION_BASE
    audio_format: str = DEFAULT_AUDIO_FORMAT


def audio_annotation(canvas: AudioCanvas, audio_format: str = DEFAULT_AUDIO_FORMAT) -> dict[str, Any]:
    """Copy of the canvas's audio annotation with its body typed as sound."""
    annotation = copy.deepcopy(canvas.audio_annotation)
    bodies = annotation.get("body")
    for body in bodies if isinstance(bodies, list) else [bodies]:
        if isinstance(body, dict):
            body["format"] = audio_format
            body["type"] = SOUND_TYPE
    return annotation


def painting_annotation(
    index: int, segment: Segment, resource: PageResource, canvas_id: str, base: str
) -> dict[str, Any]:
    target = (
        f"{canvas_id}#xywh=0,0,{resource.width},{resource.height}"
        f"&{time_fragment(segment.start, segment.end)}"
    )
    return {
        "id": f"{base}/{index}",
        "type": "Annotation",
        "motivation": "painting",
        "body": [resource.to_presentation()],
        "target": target,
    }


def highlight_annotation(
    segment: Segment, record: NoteRecord, source: str, base: str
) -> dict[str, Any]:
    return {
        "id": f"{base}/{segment.key}",
        "type": "Annotation",
        "motivation": "highlighting",
        "target": {
            "type": "SpecificResource",
            "source": source,
            "selector": [
                record.svg_selector,
                {
                    "type": FRAGMENT_SELECTOR,
                    "conformsTo": MEDIA_FRAGMENTS_URI,
                    "value": time_fragment(segment.start, segment.end),
                },
            ],
        },
    }


def build_manifest(
    canvas: AudioCanvas,
    page_segments: list[Segment],
    note_segments: list[Segment],
    records: dict[str, NoteRecord],
    pages: PageIndex,
    options: ManifestOptions | None = None,
) -> dict[str, Any]:
    """Build the combined manifest document.

    Every page segment key must be a page of *pages* and every note
    segment key a complete record of *records*; both hold by construction
    when the segments come from :mod:`scoresync.reconcile`.

    Args:
        canvas: The selected audio canvas.
        page_segments: Partition over pages.
        note_segments: Partition over notes.
        records: Joined note records, keyed by note id.
        pages: Page index of the image manifest.
        options: Manifest identity; defaults apply when omitted.

    Returns:
        The manifest as a JSON-ready dict.
    """
    options = options or ManifestOptions()
    base = options.annotation_base
    resources = [pages.get(segment.key).resource for segment in page_segments]

    out_canvas: dict[str, Any] = {
        "id": canvas.canvas_id,
        "type": "Canvas",
        "label": {"en": [options.canvas_label]},
        "duration": canvas.duration,
    }
    if resources:
        out_canvas["width"] = max(r.width or 0 for r in resources)
        out_canvas["height"] = max(r.height or 0 for r in resources)

    out_canvas["items"] = [
        {
            "id": canvas.annotation_page_id,
            "type": "AnnotationPage",
            "items": [
                audio_annotation(canvas, options.audio_format),
                *(
                    painting_annotation(index, segment, resource, canvas.canvas_id, base)
                    for index, (segment, resource) in enumerate(zip(page_segments, resources))
                ),
            ],
        }
    ]
    out_canvas["annotations"] = [
        {
            "id": f"{base}/0",
            "type": "AnnotationPage",
            "items": [
                highlight_annotation(segment, records[segment.key], canvas.annotation_page_id, base)
                for segment in note_segments
            ],
        }
    ]

    return {
        "id": options.manifest_id,
        "type": "Manifest",
        "label": {"en": [options.manifest_label]},
        "items": [out_canvas],
    }

