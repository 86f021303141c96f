"""Fuse audio time-frames and score note regions into one IIIF timeline."""

__version__ = "0.1.0"

from scoresync.models import FusionConfig, NoteRecord, Segment, TimeRange
from scoresync.reconcile import reconcile

__all__ = [
    "FusionConfig",
    "NoteRecord",
    "Segment",
    "TimeRange",
    "reconcile",
    "__version__",
]
