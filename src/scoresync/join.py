"""Join temporal and spatial note annotations on their shared note id.

The temporal collection (audio time-frames) is scanned first and creates
one NoteRecord per note id. The spatial collection (image note-regions) is
scanned second and only ever enriches records that already carry usable
timing; spatial-only ids never produce a record.

Both collections are consumed as an explicit ordered sequence of
``(note_id, entry)`` pairs, so "last write wins" among duplicate temporal
entries follows input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

from scoresync.accumulator import PageRangeAccumulator
from scoresync.fragments import parse_polygon_fragment, parse_time_fragment, svg_polygon_selector
from scoresync.iiif import PageIndex
from scoresync.models import NoteRecord
from scoresync.schemas import RawAnnotation, parse_annotation

logger = logging.getLogger(__name__)


class CollectionError(Exception):
    """Raised when an annotation collection is neither a mapping nor a list."""

    pass


@dataclass
class JoinResult:
    """Output of the two annotation passes."""

    records: dict[str, NoteRecord]
    pages: PageRangeAccumulator
    abandoned: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def iter_entries(collection: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(note_id, entry)`` pairs in input order.

    A mapping is read as ``note_id -> entry | [entry, ...]``. A list is read
    as bare entries keyed by their ``target.selector.value``; entries
    without one are dropped.

    Raises:
        CollectionError: If *collection* is neither a dict nor a list.
    """
    if isinstance(collection, dict):
        for note_id, entries in collection.items():
            for entry in entries if isinstance(entries, list) else [entries]:
                yield note_id, entry
    elif isinstance(collection, list):
        for entry in collection:
            annotation = parse_annotation(entry)
            note_id = annotation.target_value if annotation is not None else None
            if note_id is None:
                logger.debug("Dropping list entry without a target note id")
                continue
            yield note_id, entry
    else:
        raise CollectionError(
            f"Annotation collection must be a mapping or a list, got {type(collection).__name__}"
        )


def accepted_entries(collection: Any) -> Iterator[tuple[str, RawAnnotation]]:
    """Pairs whose entry has a body source and a FragmentSelector."""
    for note_id, entry in iter_entries(collection):
        annotation = parse_annotation(entry)
        if annotation is None or not annotation.is_fragment:
            logger.debug("Ignoring non-fragment entry for %s", note_id)
            continue
        yield note_id, annotation


def collect_temporal(
    collection: Any, records: dict[str, NoteRecord] | None = None
) -> dict[str, NoteRecord]:
    """First pass: store the parsed time range of every accepted entry."""
    if records is None:
        records = {}
    for note_id, annotation in accepted_entries(collection):
        record = records.setdefault(note_id, NoteRecord(note_id=note_id))
        record.time_range = parse_time_fragment(annotation.body.selector.value)
    return records


def attach_spatial(
    collection: Any,
    records: dict[str, NoteRecord],
    pages: PageIndex,
    accumulator: PageRangeAccumulator,
) -> tuple[list[str], list[str]]:
    """Second pass: place timed notes on their pages.

    The first accepted entry of an id that has no record, or a record
    without usable timing, abandons every remaining entry of that id.
    An entry whose image source does not resolve to a page is skipped on
    its own.

    Returns:
        Tuple of (abandoned note ids, unresolved image sources), in the
        order they were met.
    """
    abandoned: list[str] = []
    unresolved: list[str] = []
    skip: set[str] = set()
    for note_id, annotation in accepted_entries(collection):
        if note_id in skip:
            continue
        record = records.get(note_id)
        if record is None or not record.has_timing:
            logger.debug("No usable timing for %s; abandoning its regions", note_id)
            abandoned.append(note_id)
            skip.add(note_id)
            continue

        source = annotation.body.source
        page = pages.resolve(source)
        if page is None:
            logger.debug("Image source %s of %s does not resolve to a page", source, note_id)
            unresolved.append(source)
            continue

        record.image_source = source
        record.page_id = page.page_id
        record.polygon = parse_polygon_fragment(annotation.body.selector.value)
        record.page_range = accumulator.widen(page.page_id, record.time_range)
        record.svg_selector = svg_polygon_selector(page.width, page.height, record.polygon)
    return abandoned, unresolved


def join_annotations(temporal: Any, spatial: Any, pages: PageIndex) -> JoinResult:
    """Run both passes and return the records with their page accumulator."""
    records = collect_temporal(temporal)
    accumulator = PageRangeAccumulator()
    abandoned, unresolved = attach_spatial(spatial, records, pages, accumulator)
    logger.info(
        "Joined %d of %d timed notes onto %d pages (%d abandoned, %d unresolved)",
        sum(1 for r in records.values() if r.is_complete),
        len(records),
        len(accumulator),
        len(abandoned),
        len(unresolved),
    )
    return JoinResult(records=records, pages=accumulator, abandoned=abandoned, unresolved=unresolved)
