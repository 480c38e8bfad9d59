"""
Sync driver configuration constants.

Cadence of incremental updates and the thresholds used by health reporting.
"""

from __future__ import annotations

from typing import Final

DEFAULT_UPDATE_INTERVAL: Final[float] = 30.0
"""Seconds between scheduled incremental syncs."""

DELAY_FACTOR: Final[int] = 3
"""Updates count as delayed after this many intervals without a success."""
