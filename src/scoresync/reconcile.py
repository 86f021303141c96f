"""Turn observed, possibly overlapping time ranges into a gap-free partition.

Given ``(key, observed_min, observed_max)`` triples, the partition is built
by sorting on ``observed_min`` and cutting between each pair of neighbours
at the midpoint of ``this.max`` and ``next.min``::

    A: 0.37 .. 63.1     B: 64.15 .. 144.38
    -> A: 0.37 .. 63.625, B: 63.625 .. 144.38

The first segment starts at the first observation and the last one ends
at the last observation. Each segment starts where the previous one
ended, so ``segments[i].end == segments[i + 1].start`` holds exactly.

Reversed input (``observed_min > observed_max``) is not rejected; it can
yield a locally inverted segment that is still contiguous with its
neighbours. Nested input does the same: a range lying inside an earlier,
longer one pulls the cut back, so segment starts are only non-decreasing
when both bounds increase together.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from scoresync.accumulator import PageRangeAccumulator
from scoresync.models import NoteRecord, Segment, Triple

logger = logging.getLogger(__name__)


def reconcile(
    triples: Iterable[Triple],
    include: Callable[[Triple], bool] | None = None,
) -> list[Segment]:
    """Partition the timeline covered by *triples*, one segment per triple.

    Args:
        triples: Observed bounds per key. Ties on ``observed_min`` keep
            their input order.
        include: Optional predicate; triples it rejects are removed before
            sorting.

    Returns:
        Segments sorted by start; empty when no triple survives.
    """
    entries = [t for t in triples if include is None or include(t)]
    entries.sort(key=lambda t: t.observed_min)
    if not entries:
        return []

    segments: list[Segment] = []
    start = entries[0].observed_min
    for current, following in zip(entries, entries[1:] + [None]):
        if following is not None:
            end = (current.observed_max + following.observed_min) / 2
        else:
            end = current.observed_max
        segments.append(Segment(current.key, start, end))
        start = end
    return segments


def reconcile_pages(accumulator: PageRangeAccumulator) -> list[Segment]:
    """Partition over every page that received at least one note."""
    segments = reconcile(accumulator.triples())
    logger.info("Reconciled %d page segments", len(segments))
    return segments


def reconcile_notes(records: dict[str, NoteRecord]) -> list[Segment]:
    """Partition over the notes that are both placed on a page and timed."""
    triples = [
        Triple(note_id, record.time_range.start, record.time_range.end)
        for note_id, record in records.items()
        if record.time_range is not None
    ]
    segments = reconcile(triples, include=lambda t: records[t.key].is_complete)
    logger.info("Reconciled %d note segments", len(segments))
    return segments
