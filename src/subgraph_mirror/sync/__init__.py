"""
Sync driver for the subgraph mirror.

Runs the full load, then keeps the cache current with periodic incremental
syncs driven by the progress tracker's checkpoint.
"""

from __future__ import annotations

__all__ = [
    "SyncDriver",
    "SyncState",
    "SyncStats",
    "SyncStatus",
    "HealthReport",
    "DEFAULT_UPDATE_INTERVAL",
    "DELAY_FACTOR",
]

from .config import DEFAULT_UPDATE_INTERVAL, DELAY_FACTOR
from .service import HealthReport, SyncDriver, SyncStats, SyncStatus
from .states import SyncState
