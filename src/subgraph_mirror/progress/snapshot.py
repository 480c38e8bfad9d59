"""Value objects produced by the progress tracker."""

from __future__ import annotations

from subgraph_mirror.types import CamelModel, StrictBaseModel


class AdvanceRecord(StrictBaseModel):
    """One accepted checkpoint advance. Immutable once recorded."""

    observed_at: float
    """Unix timestamp when the advance was accepted."""

    from_checkpoint: int
    """Checkpoint before the advance."""

    to_checkpoint: int
    """Checkpoint after the advance."""

    delta: int
    """Blocks covered by the advance."""


class TrackerSnapshot(CamelModel):
    """Persistable tracker state."""

    checkpoint: int = 0
    """Checkpoint at export time."""

    last_updated: float | None = None
    """When the checkpoint was last set."""

    history: list[AdvanceRecord] = []
    """Most recent advances, oldest first."""


class TrackerStatus(CamelModel):
    """Tracker introspection for status endpoints."""

    checkpoint: int
    last_updated: float | None
    staleness: float | None
    total_advances: int
    average_advance: int
    advances_per_minute: int
