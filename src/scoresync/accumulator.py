"""Per-page time ranges accumulated from the notes placed on each page."""

from __future__ import annotations

from scoresync.models import PageRange, TimeRange, Triple


class PageRangeAccumulator:
    """Tracks the observed ``[min, max]`` time of every page that holds a note.

    Pages appear in first-seen order. ``widen`` returns the live
    ``PageRange`` so a caller holding it sees later widening of the same
    page; after the scan completes that reference holds the final value.
    """

    def __init__(self) -> None:
        self._ranges: dict[str, PageRange] = {}

    def widen(self, page_id: str, time_range: TimeRange) -> PageRange:
        page_range = self._ranges.setdefault(page_id, PageRange())
        page_range.widen(time_range)
        return page_range

    def get(self, page_id: str) -> PageRange | None:
        return self._ranges.get(page_id)

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._ranges

    def __len__(self) -> int:
        return len(self._ranges)

    def triples(self) -> list[Triple]:
        """One triple per page with at least one placed note."""
        return [Triple(page_id, r.min, r.max) for page_id, r in self._ranges.items()]
