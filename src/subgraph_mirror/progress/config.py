"""
Progress tracker configuration constants.

Bounds for checkpoint values, history retention, and health thresholds.
"""

from __future__ import annotations

from typing import Final

MAX_CHECKPOINT: Final[int] = 2**53 - 1
"""
Exclusive upper bound for checkpoints accepted by the tracker.

The subgraph reports block numbers as JSON numbers. Values beyond the
safe-integer ceiling of a double cannot round-trip through JSON exactly.
"""

MAX_HISTORY: Final[int] = 100
"""Number of advance records retained in the in-memory ring buffer."""

EXPORT_HISTORY: Final[int] = 20
"""Number of most recent advance records written to a persisted snapshot."""

FREQUENCY_WINDOW: Final[int] = 10
"""Number of most recent advances used to compute the advance frequency."""

TRACKER_MAX_AGE: Final[float] = 5 * 60.0
"""Seconds without an accepted advance before the tracker reports unhealthy."""
