"""Parsers and renderers for the two fragment micro-formats.

Temporal fragments follow W3C Media Fragments (``t=12.5,18.0``, optionally
``&t=npt:12.5,18.0``). Spatial fragments are the polygon notation used by
the note-region annotations: ``((P1593,1999)(P1593,2030)(P1626,1999))``.

Neither parser raises. A fragment that does not fit the format degrades
to a default value and a warning is logged; callers decide what to do
with NaN bounds.
"""

from __future__ import annotations

import logging
import math
import re

from scoresync.constants import SVG_NAMESPACE, SVG_SELECTOR, TEMPORAL_FRAGMENT
from scoresync.models import TimeRange

logger = logging.getLogger(__name__)

_OUTER_PARENS = re.compile(r"^\(\(|\)\)$")
_POINT_BOUNDARY = re.compile(r"\)\(")
_DECIMAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def parse_time_fragment(fragment: str) -> TimeRange:
    """Decode a ``t=start[,end]`` media fragment.

    A missing bound becomes NaN. A string with no ``t=`` at all yields
    ``TimeRange(0, 0)``, which downstream code treats as a real interval
    at time zero.

    Args:
        fragment: Selector value such as ``"t=0,4.852608"``.

    Returns:
        TimeRange with the parsed bounds.
    """
    match = TEMPORAL_FRAGMENT.search(fragment)
    if match is None:
        logger.warning("Temporal fragment %r has no t= component; using 0,0", fragment)
        return TimeRange(0.0, 0.0)

    start = float(match.group(3)) if match.group(3) else math.nan
    end = float(match.group(6)) if match.group(6) else math.nan
    if math.isnan(start) or math.isnan(end):
        logger.warning("Temporal fragment %r is missing a bound", fragment)
    return TimeRange(start, end)


def _to_number(text: str) -> float:
    text = text.strip()
    if not text:
        return 0
    if not _DECIMAL.match(text):
        return math.nan
    value = float(text)
    return int(value) if value.is_integer() else value


def parse_polygon_fragment(fragment: str) -> list[list[float]]:
    """Decode a ``((P<x>,<y>)(P<x>,<y>)...)`` polygon into ``[x, y]`` pairs.

    No structural validation is performed: point count and closure are
    left to whoever renders the polygon. Unparsable coordinates are NaN.
    """
    points: list[list[float]] = []
    for segment in _POINT_BOUNDARY.split(_OUTER_PARENS.sub("", fragment)):
        points.append([_to_number(part) for part in segment.replace("P", "", 1).split(",")])

    if any(math.isnan(c) for point in points for c in point):
        logger.warning("Polygon fragment %r contains unparsable coordinates", fragment)
    return points


def format_number(value: float) -> str:
    """Render a number for a fragment string: ``4`` not ``4.0``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def time_fragment(start: float, end: float) -> str:
    """Inverse of :func:`parse_time_fragment` for a reconciled segment."""
    return f"t={format_number(start)},{format_number(end)}"


def svg_polygon_selector(
    width: int, height: int, points: list[list[float]], element: str = "polygon"
) -> dict[str, str]:
    """Wrap a polygon in an ``SvgSelector`` sized to its page."""
    coords = " ".join(",".join(format_number(c) for c in point) for point in points)
    value = (
        f'<svg xmlns="{SVG_NAMESPACE}" viewBox="0 0 {width} {height}" '
        f'width="{width}" height="{height}"><{element} points="{coords}" /></svg>'
    )
    return {"type": SVG_SELECTOR, "value": value}
