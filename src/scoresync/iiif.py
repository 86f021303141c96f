"""IIIF manifest access: image pages and audio canvases.

Image manifests are read in either Presentation 2 (``sequences`` /
``canvases`` / ``images``) or Presentation 3 (``items`` / painting
annotations) form. Pages are addressed by the id of their image service,
which is what the note-region annotations point at.

Usage::

    pages = PageIndex.from_manifest(image_manifest)
    page = pages.resolve("https://gallica.bnf.fr/iiif/ark:/12148/bpt6k11620688/f2")
    canvas = select_audio_canvas(audio_manifest, index=2)
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from scoresync.constants import SOUND_TYPE
from scoresync.models import AudioCanvas, CanvasSummary, Page, PageResource

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when a manifest lacks the structure needed to read it at all."""

    pass


class CanvasSelectionError(Exception):
    """Raised when the requested audio canvas is missing or carries no audio."""

    pass


def _id(obj: dict[str, Any]) -> str | None:
    return obj.get("id") or obj.get("@id")


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _v2_canvases(manifest: dict[str, Any]) -> Iterator[tuple[dict, dict | None]]:
    for sequence in manifest.get("sequences", [])[:1]:
        for canvas in sequence.get("canvases", []):
            image = _first(canvas.get("images") or [])
            resource = image.get("resource") if isinstance(image, dict) else None
            yield canvas, resource


def _v3_canvases(manifest: dict[str, Any]) -> Iterator[tuple[dict, dict | None]]:
    for canvas in manifest.get("items", []):
        resource = None
        for annotation_page in canvas.get("items", []):
            painting = [
                a for a in annotation_page.get("items", [])
                if a.get("motivation", "painting") == "painting"
            ]
            if painting:
                resource = _first(painting[0].get("body"))
                break
        yield canvas, resource


class PageIndex:
    """Ordered pages of an image manifest, resolvable by image-service id.

    Page resources are built once per index and reused for the lifetime
    of a run.
    """

    def __init__(self, pages: list[Page]) -> None:
        self._pages = pages
        self._by_service: dict[str, Page] = {}
        self._by_id: dict[str, Page] = {}
        for page in pages:
            self._by_service[page.service_id] = page
            self._by_id[page.page_id] = page

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> PageIndex:
        """Build the index from a Presentation 2 or 3 manifest.

        Canvases whose primary image has no image service are skipped.

        Raises:
            ManifestError: If the manifest has neither ``sequences`` nor ``items``.
        """
        if not isinstance(manifest, dict):
            raise ManifestError("Invalid image manifest: expected a JSON object")
        if isinstance(manifest.get("sequences"), list):
            canvases = _v2_canvases(manifest)
        elif isinstance(manifest.get("items"), list):
            canvases = _v3_canvases(manifest)
        else:
            raise ManifestError(
                f"Invalid image manifest {_id(manifest)!r}: no sequences or items found"
            )

        pages: list[Page] = []
        for canvas, resource in canvases:
            page = _build_page(canvas, resource)
            if page is not None:
                pages.append(page)
        logger.info("Indexed %d pages from image manifest %s", len(pages), _id(manifest))
        return cls(pages)

    def __len__(self) -> int:
        return len(self._pages)

    def resolve(self, service_id: str) -> Page | None:
        """Page painted by the image service *service_id*, if any."""
        return self._by_service.get(service_id)

    def get(self, page_id: str) -> Page | None:
        return self._by_id.get(page_id)


def _build_page(canvas: dict[str, Any], resource: dict[str, Any] | None) -> Page | None:
    page_id = _id(canvas)
    if not page_id or not isinstance(resource, dict):
        logger.debug("Canvas %s has no image resource; skipped", page_id)
        return None

    services = resource.get("service")
    if isinstance(services, dict):
        services = [services]
    service = _first(services or [])
    service_id = _id(service) if isinstance(service, dict) else None
    if not service_id:
        logger.debug("Canvas %s has no image service; skipped", page_id)
        return None

    width = canvas.get("width") or resource.get("width") or 0
    height = canvas.get("height") or resource.get("height") or 0
    image = PageResource(
        resource_id=_id(resource) or "",
        width=resource.get("width", width),
        height=resource.get("height", height),
        format=resource.get("format"),
        service=services,
    )
    return Page(page_id=page_id, service_id=service_id, width=width, height=height, resource=image)


def _bodies(annotation: dict[str, Any]) -> list[dict[str, Any]]:
    body = annotation.get("body")
    if isinstance(body, list):
        return [b for b in body if isinstance(b, dict)]
    return [body] if isinstance(body, dict) else []


def annotation_has_audio(annotation: dict[str, Any]) -> bool:
    return any(
        b.get("type") == SOUND_TYPE or "audio" in (b.get("format") or "")
        for b in _bodies(annotation)
    )


def canvas_has_audio(canvas: dict[str, Any]) -> bool:
    """True if any annotation on any page of *canvas* paints sound."""
    return any(
        annotation_has_audio(annotation)
        for annotation_page in canvas.get("items") or []
        for annotation in annotation_page.get("items") or []
    )


def canvas_label(canvas: dict[str, Any]) -> str:
    """Best display label: plain string, English, first language, or a placeholder."""
    label = canvas.get("label")
    if isinstance(label, str) and label:
        return label
    if isinstance(label, dict) and label:
        values = label.get("en") or next(iter(label.values()))
        if isinstance(values, list) and values:
            return str(values[0])
        if isinstance(values, str) and values:
            return values
    return "Unnamed Canvas"


def _audio_items(manifest: dict[str, Any]) -> list[dict[str, Any]]:
    items = manifest.get("items") if isinstance(manifest, dict) else None
    if not isinstance(items, list):
        raise ManifestError("Invalid audio manifest: no items array found")
    return items


def list_audio_canvases(manifest: dict[str, Any]) -> list[CanvasSummary]:
    """Summarise every canvas of an audio manifest.

    Raises:
        ManifestError: If the manifest has no ``items`` array.
    """
    return [
        CanvasSummary(
            index=index,
            canvas_id=_id(canvas) or "",
            label=canvas_label(canvas),
            duration=canvas.get("duration"),
            has_audio=canvas_has_audio(canvas),
        )
        for index, canvas in enumerate(_audio_items(manifest))
    ]


def select_audio_canvas(manifest: dict[str, Any], index: int) -> AudioCanvas:
    """Pick the canvas at *index* as the output timeline.

    The audio annotation is the first annotation with sound content on
    the first annotation page that has one. The timeline is identified by
    the canvas's first annotation page, whichever page holds the audio.

    Raises:
        ManifestError: If the manifest has no ``items`` array.
        CanvasSelectionError: If *index* is out of range or the canvas has no audio.
    """
    items = _audio_items(manifest)
    if index < 0 or index >= len(items):
        raise CanvasSelectionError(
            f"Selected canvas index {index} is out of range. "
            f"Audio manifest has {len(items)} canvases."
        )
    canvas = items[index]
    if not isinstance(canvas, dict):
        raise CanvasSelectionError(f"No canvas found at index {index}")

    annotation_pages = canvas.get("items") or []
    first_page = _first(annotation_pages)
    first_page_id = _id(first_page) if isinstance(first_page, dict) else None
    for annotation_page in annotation_pages:
        for annotation in annotation_page.get("items") or []:
            if annotation_has_audio(annotation):
                return AudioCanvas(
                    index=index,
                    canvas_id=_id(canvas) or "",
                    duration=canvas.get("duration"),
                    annotation_page_id=first_page_id or "",
                    audio_annotation=annotation,
                )

    raise CanvasSelectionError(
        f"Selected canvas at index {index} does not contain audio content. "
        "Please select a different canvas."
    )
