"""Shared pytest fixtures for scoresync tests.

Provides a small but complete dataset: a Presentation 2 score manifest
with four pages (one without an image service), a Presentation 3 audio
manifest whose second canvas holds the recording, and the two note
annotation collections keyed by note id. See factories.py for the note
layout.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from factories import AUDIO, BOOK, note_region, time_frame, v2_canvas
from scoresync.fetch import SourceDocuments
from scoresync.iiif import PageIndex
from scoresync.models import FusionConfig


@pytest.fixture
def image_manifest() -> dict:
    return {
        "@id": f"{BOOK}/manifest.json",
        "@type": "sc:Manifest",
        "sequences": [
            {
                "canvases": [
                    v2_canvas(1, 1000, 1400),
                    v2_canvas(2, 1000, 1400),
                    v2_canvas(3, 1200, 1500),
                    v2_canvas(4, 1000, 1400, with_service=False),
                ]
            }
        ],
    }


@pytest.fixture
def audio_manifest() -> dict:
    return {
        "id": f"{AUDIO}/manifest.json",
        "type": "Manifest",
        "items": [
            {
                "id": f"{AUDIO}/canvas/1",
                "type": "Canvas",
                "label": {"fr": ["Pochette"]},
                "width": 600,
                "height": 600,
                "items": [
                    {
                        "id": f"{AUDIO}/page/1",
                        "type": "AnnotationPage",
                        "items": [
                            {
                                "id": f"{AUDIO}/anno/1",
                                "type": "Annotation",
                                "motivation": "painting",
                                "body": {"id": f"{AUDIO}/cover.jpg", "type": "Image", "format": "image/jpeg"},
                                "target": f"{AUDIO}/canvas/1",
                            }
                        ],
                    }
                ],
            },
            {
                "id": f"{AUDIO}/canvas/2",
                "type": "Canvas",
                "label": {"en": ["Face A"]},
                "duration": 242.62,
                "items": [
                    {
                        "id": f"{AUDIO}/page/2",
                        "type": "AnnotationPage",
                        "items": [
                            {
                                "id": f"{AUDIO}/anno/2",
                                "type": "Annotation",
                                "motivation": "painting",
                                "body": {
                                    "id": f"{AUDIO}/2.audio",
                                    "type": "Audio",
                                    "format": "audio/mp4",
                                    "duration": 242.62,
                                },
                                "target": f"{AUDIO}/canvas/2",
                            }
                        ],
                    }
                ],
            },
        ],
    }


@pytest.fixture
def audio_annotations() -> dict:
    return {
        "n1": time_frame("t=0.37,30"),
        "n2": [time_frame("t=10,20"), time_frame("t=30,63.1")],
        "n3": [time_frame("t=64.15,100")],
        "n4": time_frame("t=100,144.38"),
        "n5": time_frame("t=150,151"),
        "n7": time_frame("t=152,153", selector_type="TextQuoteSelector"),
        "n8": time_frame("t=,5"),
        "n9": time_frame("t=160,161"),
    }


@pytest.fixture
def image_annotations() -> dict:
    return {
        "n1": note_region(1, "n1"),
        "n2": [note_region(1, "n2", "((P50,60)(P50,80)(P70,80))")],
        "n3": note_region(2, "n3"),
        "n4": note_region(2, "n4"),
        "n6": note_region(3, "n6"),
        "n7": note_region(3, "n7"),
        "n8": note_region(3, "n8"),
        "n9": note_region(4, "n9"),
    }


@pytest.fixture
def pages(image_manifest: dict) -> PageIndex:
    return PageIndex.from_manifest(image_manifest)


@pytest.fixture
def documents(audio_manifest, image_manifest, audio_annotations, image_annotations) -> SourceDocuments:
    return SourceDocuments(
        audio_manifest=audio_manifest,
        image_manifest=image_manifest,
        audio_annotations=audio_annotations,
        image_annotations=image_annotations,
    )


@pytest.fixture
def source_dir(tmp_path: Path, documents: SourceDocuments) -> Path:
    """The four documents written as JSON files under tmp_path/data."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name in ("audio_manifest", "image_manifest", "audio_annotations", "image_annotations"):
        path = data_dir / f"{name.replace('_', '-')}.json"
        path.write_text(json.dumps(getattr(documents, name)), encoding="utf-8")
    return data_dir


@pytest.fixture
def local_config(source_dir: Path, tmp_path: Path) -> FusionConfig:
    """FusionConfig reading the files of ``source_dir`` and selecting the audio canvas."""
    return FusionConfig(
        audio_manifest=str(source_dir / "audio-manifest.json"),
        image_manifest=str(source_dir / "image-manifest.json"),
        audio_annotations=str(source_dir / "audio-annotations.json"),
        image_annotations=str(source_dir / "image-annotations.json"),
        canvas_index=1,
        output_path=str(tmp_path / "out" / "combined-manifest.json"),
    )
