"""Data models for the score/audio fusion pipeline."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from scoresync.constants import (
    DEFAULT_ANNOTATION_BASE,
    DEFAULT_AUDIO_FORMAT,
    DEFAULT_CANVAS_LABEL,
    DEFAULT_MANIFEST_ID,
    DEFAULT_MANIFEST_LABEL,
    DEFAULT_OUTPUT_PATH,
    LOCAL_SOURCES,
)


@dataclass(frozen=True, slots=True)
class TimeRange:
    """A span of the audio timeline in seconds, parsed from a ``t=`` fragment.

    Either bound may be NaN when the fragment omitted it; such a range
    carries no usable timing and ``is_valid`` is False.
    """

    start: float
    end: float

    @property
    def is_valid(self) -> bool:
        return not (math.isnan(self.start) or math.isnan(self.end))


@dataclass(slots=True)
class PageRange:
    """Running ``[min, max]`` of the note times placed on one page.

    Starts empty (``min=inf``, ``max=-inf``) and only ever widens.
    """

    min: float = math.inf
    max: float = -math.inf

    def widen(self, time_range: TimeRange) -> None:
        self.min = min(time_range.start, self.min)
        self.max = max(time_range.end, self.max)


@dataclass
class NoteRecord:
    """Everything known about one note id after both annotation passes."""

    note_id: str
    time_range: TimeRange | None = None
    image_source: str | None = None
    page_id: str | None = None
    polygon: list[list[float]] | None = None
    svg_selector: dict[str, str] | None = None
    page_range: PageRange | None = None  # shared with the accumulator, not a copy

    @property
    def has_timing(self) -> bool:
        return self.time_range is not None and self.time_range.is_valid

    @property
    def is_complete(self) -> bool:
        """True when the note can be highlighted: placed on a page and timed."""
        return self.svg_selector is not None and self.has_timing


@dataclass(frozen=True, slots=True)
class Triple:
    """Observed bounds of one partition candidate (a page or a note)."""

    key: str
    observed_min: float
    observed_max: float


@dataclass(frozen=True, slots=True)
class Segment:
    """One slot of a gap-free partition of the timeline."""

    key: str
    start: float
    end: float


@dataclass(slots=True)
class PageResource:
    """The rendered image that paints a page."""

    resource_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None
    service: list[dict[str, Any]] | None = None

    def to_presentation(self) -> dict[str, Any]:
        """Render as a Presentation 3 ``Image`` content resource."""
        body: dict[str, Any] = {"id": self.resource_id, "type": "Image"}
        if self.format:
            body["format"] = self.format
        if self.width is not None:
            body["width"] = self.width
        if self.height is not None:
            body["height"] = self.height
        if self.service:
            body["service"] = self.service
        return body


@dataclass(slots=True)
class Page:
    """A canvas of the image manifest resolved through its image service."""

    page_id: str
    service_id: str
    width: int
    height: int
    resource: PageResource


@dataclass(slots=True)
class CanvasSummary:
    """Listing entry for one canvas of an audio manifest."""

    index: int
    canvas_id: str
    label: str
    duration: float | None
    has_audio: bool


@dataclass
class AudioCanvas:
    """The audio manifest canvas selected as the output timeline."""

    index: int
    canvas_id: str
    duration: float | None
    annotation_page_id: str
    audio_annotation: dict[str, Any]


@dataclass
class FusionStats:
    """Counters collected during one pipeline run."""

    temporal_ids: int = 0
    joined_ids: int = 0
    abandoned_ids: int = 0
    unresolved_sources: int = 0
    pages_indexed: int = 0
    page_segments: int = 0
    note_segments: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class FusionConfig:
    """Inputs and output identity for one fusion run.

    The four source fields are locations: an ``http(s)://`` URL or a
    local file path.
    """

    audio_manifest: str = LOCAL_SOURCES["audio_manifest"]
    image_manifest: str = LOCAL_SOURCES["image_manifest"]
    audio_annotations: str = LOCAL_SOURCES["audio_annotations"]
    image_annotations: str = LOCAL_SOURCES["image_annotations"]
    canvas_index: int = 0
    output_path: str = DEFAULT_OUTPUT_PATH
    manifest_id: str = DEFAULT_MANIFEST_ID
    manifest_label: str = DEFAULT_MANIFEST_LABEL
    canvas_label: str = DEFAULT_CANVAS_LABEL
    annotation_base: str = DEFAULT_ANNOTATION_BASE
    audio_format: str = DEFAULT_AUDIO_FORMAT
    timeout: float = 30.0
    retries: int = 3
    extra_headers: dict[str, str] = field(default_factory=dict)

    def sources(self) -> dict[str, str]:
        """Source locations keyed by role, in fetch order."""
        return {
            "audio_manifest": self.audio_manifest,
            "image_manifest": self.image_manifest,
            "audio_annotations": self.audio_annotations,
            "image_annotations": self.image_annotations,
        }
