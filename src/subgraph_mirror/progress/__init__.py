"""
Progress tracking for the subgraph mirror.

Holds the last synchronized block height and a bounded history of advances.
Decides what to fetch next and reports staleness.
"""

from __future__ import annotations

__all__ = [
    "ProgressTracker",
    "is_valid_checkpoint",
    "AdvanceRecord",
    "TrackerSnapshot",
    "TrackerStatus",
    "MAX_CHECKPOINT",
    "MAX_HISTORY",
    "EXPORT_HISTORY",
    "TRACKER_MAX_AGE",
]

from .config import EXPORT_HISTORY, MAX_CHECKPOINT, MAX_HISTORY, TRACKER_MAX_AGE
from .snapshot import AdvanceRecord, TrackerSnapshot, TrackerStatus
from .tracker import ProgressTracker, is_valid_checkpoint
