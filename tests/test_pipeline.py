"""End-to-end tests: loaded documents in, combined manifest out."""

from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from factories import AUDIO, page_id
from scoresync.assembler import ManifestOptions
from scoresync.fetch import FetchError, SourceDocuments
from scoresync.fragments import time_fragment
from scoresync.iiif import CanvasSelectionError
from scoresync.models import FusionConfig
from scoresync.pipeline import dump_manifest, fuse, run_fusion, write_manifest


def _canvas(manifest: dict) -> dict:
    return manifest["items"][0]


class TestPartitions:
    def test_page_partition(self, documents):
        """Pages f1 and f2 meet halfway between 63.1 and 64.15."""
        result = fuse(documents, canvas_index=1)
        first, second = result.page_segments
        assert (first.key, second.key) == (page_id(1), page_id(2))
        assert first.start == 0.37
        assert first.end == pytest.approx(63.625)
        assert second.start == first.end
        assert second.end == 144.38

    def test_note_partition(self, documents):
        result = fuse(documents, canvas_index=1)
        assert [s.key for s in result.note_segments] == ["n1", "n2", "n3", "n4"]
        assert [s.end for s in result.note_segments][0] == 30.0
        assert result.note_segments[-1].end == 144.38

    def test_spatial_only_note_is_absent(self, documents):
        result = fuse(documents, canvas_index=1)
        keys = {s.key for s in result.note_segments}
        assert "n6" not in keys
        assert "n5" not in keys

    def test_stats(self, documents):
        stats = fuse(documents, canvas_index=1).stats
        assert stats.to_dict() == {
            "temporal_ids": 7,
            "joined_ids": 4,
            "abandoned_ids": 3,
            "unresolved_sources": 1,
            "pages_indexed": 3,
            "page_segments": 2,
            "note_segments": 4,
        }


class TestManifestDocument:
    def test_top_level(self, documents):
        manifest = fuse(documents, canvas_index=1).manifest
        assert manifest["id"] == "https://example.org"
        assert manifest["type"] == "Manifest"
        assert manifest["label"] == {"en": ["Combined manifest 1"]}
        assert len(manifest["items"]) == 1

    def test_canvas_takes_audio_duration_and_largest_page(self, documents):
        canvas = _canvas(fuse(documents, canvas_index=1).manifest)
        assert canvas["id"] == f"{AUDIO}/canvas/2"
        assert canvas["duration"] == 242.62
        assert (canvas["width"], canvas["height"]) == (1000, 1400)

    def test_audio_annotation_declared_as_sound(self, documents):
        canvas = _canvas(fuse(documents, canvas_index=1).manifest)
        audio = canvas["items"][0]["items"][0]
        assert audio["body"]["type"] == "Sound"
        assert audio["body"]["format"] == "audio/mpeg"
        assert audio["body"]["id"] == f"{AUDIO}/2.audio"

    def test_inputs_are_not_modified(self, documents):
        before = copy.deepcopy(documents)
        fuse(documents, canvas_index=1)
        assert documents == before

    def test_painting_annotations(self, documents):
        result = fuse(documents, canvas_index=1)
        page = _canvas(result.manifest)["items"][0]
        assert page["id"] == f"{AUDIO}/page/2"
        paintings = page["items"][1:]
        assert [p["id"] for p in paintings] == [
            "https://example/image-anno/0",
            "https://example/image-anno/1",
        ]
        first = result.page_segments[0]
        assert paintings[0]["motivation"] == "painting"
        assert paintings[0]["target"] == (
            f"{AUDIO}/canvas/2#xywh=0,0,1000,1400&{time_fragment(first.start, first.end)}"
        )
        assert paintings[0]["body"][0]["type"] == "Image"

    def test_highlight_annotations(self, documents):
        result = fuse(documents, canvas_index=1)
        annotation_page = _canvas(result.manifest)["annotations"][0]
        assert annotation_page["id"] == "https://example/image-anno/0"
        first = annotation_page["items"][0]
        assert first["id"] == "https://example/image-anno/n1"
        assert first["motivation"] == "highlighting"
        assert first["target"]["type"] == "SpecificResource"
        assert first["target"]["source"] == f"{AUDIO}/page/2"
        svg, timing = first["target"]["selector"]
        assert svg == result.records["n1"].svg_selector
        assert timing == {
            "type": "FragmentSelector",
            "conformsTo": "http://www.w3.org/TR/media-frags/",
            "value": "t=0.37,30",
        }

    def test_custom_identity(self, documents):
        options = ManifestOptions(
            manifest_id="https://iiif.example/combined",
            manifest_label="Saint-Saens",
            annotation_base="https://iiif.example/anno",
        )
        manifest = fuse(documents, canvas_index=1, options=options).manifest
        assert manifest["id"] == "https://iiif.example/combined"
        assert manifest["label"] == {"en": ["Saint-Saens"]}
        assert _canvas(manifest)["annotations"][0]["items"][0]["id"] == "https://iiif.example/anno/n1"

    def test_no_placed_notes(self, documents):
        """Without regions there is no page partition and no canvas size."""
        empty = SourceDocuments(
            audio_manifest=documents.audio_manifest,
            image_manifest=documents.image_manifest,
            audio_annotations=documents.audio_annotations,
            image_annotations={},
        )
        result = fuse(empty, canvas_index=1)
        canvas = _canvas(result.manifest)
        assert result.page_segments == []
        assert "width" not in canvas
        assert canvas["items"][0]["items"][1:] == []
        assert canvas["annotations"][0]["items"] == []


class TestFailFast:
    def test_canvas_without_audio(self, documents):
        with pytest.raises(CanvasSelectionError):
            fuse(documents, canvas_index=0)

    def test_canvas_index_out_of_range(self, documents):
        with pytest.raises(CanvasSelectionError, match="out of range"):
            fuse(documents, canvas_index=9)


class TestDeterminism:
    def test_byte_identical_output(self, documents):
        """Two runs over the same inputs serialize identically."""
        first = fuse(documents, canvas_index=1).to_json()
        second = fuse(copy.deepcopy(documents), canvas_index=1).to_json()
        assert first == second

    def test_dump_is_indented_json(self, documents):
        text = dump_manifest(fuse(documents, canvas_index=1).manifest)
        assert text.startswith('{\n  "id": "https://example.org"')
        assert json.loads(text)["type"] == "Manifest"


class TestRunFusion:
    async def test_run_from_local_files(self, local_config: FusionConfig):
        result = await run_fusion(local_config)
        assert len(result.page_segments) == 2
        assert len(result.note_segments) == 4

    async def test_missing_source_aborts(self, local_config: FusionConfig, tmp_path: Path):
        local_config.image_annotations = str(tmp_path / "missing.json")
        with pytest.raises(FetchError, match="missing.json"):
            await run_fusion(local_config)

    async def test_write_manifest(self, local_config: FusionConfig):
        result = await run_fusion(local_config)
        path = write_manifest(result.manifest, Path(local_config.output_path))
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == result.manifest
