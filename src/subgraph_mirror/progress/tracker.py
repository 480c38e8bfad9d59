"""
Progress tracker for the subgraph mirror.

The Tracking Problem
--------------------
The mirror asks the subgraph for "everything that changed since block N".
Everything hinges on N being right:

- Too low: entities already absorbed arrive again (harmless, merge is idempotent)
- Too high: entities in the gap are never fetched (silent data loss)

The tracker owns N (the checkpoint) and nothing else. It lives apart from the
cache so that a corrupt cache and a corrupt checkpoint are independent
failures, and so staleness can be reported without touching entity data.

Invariants
----------
- Zero means uninitialized.
- Initialization is only possible from zero.
- After that, the checkpoint moves forward only. Equal values are no-ops,
  lower values are out-of-order remote data and are rejected.
- Only an explicit reset (full refresh) returns it to zero.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from time import time as wall_time
from typing import Any

from pydantic import ValidationError

from .config import EXPORT_HISTORY, FREQUENCY_WINDOW, MAX_CHECKPOINT, MAX_HISTORY, TRACKER_MAX_AGE
from .snapshot import AdvanceRecord, TrackerSnapshot, TrackerStatus

logger = logging.getLogger(__name__)


def is_valid_checkpoint(value: Any) -> bool:
    """
    Check whether a value can be stored as a checkpoint.

    Booleans are rejected even though they are ints in Python.
    """
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 < value < MAX_CHECKPOINT
    )


@dataclass(slots=True)
class ProgressTracker:
    """
    Tracks the last synchronized block height and a bounded history of advances.

    All time values are Unix timestamps in seconds.
    """

    time_fn: Callable[[], float] = wall_time
    """Time source function (injectable for testing)."""

    max_history: int = MAX_HISTORY
    """Capacity of the advance history ring buffer."""

    _checkpoint: int = field(default=0, init=False)
    """Current checkpoint. Zero until initialized."""

    _last_updated: float | None = field(default=None, init=False)
    """When the checkpoint was last set. None if never set."""

    _history: deque[AdvanceRecord] = field(init=False)
    """Accepted advances, oldest first. Oldest entries drop off when full."""

    def __post_init__(self) -> None:
        """Create the bounded history buffer."""
        self._history = deque(maxlen=self.max_history)

    def current(self) -> int:
        """Return the current checkpoint (0 if uninitialized)."""
        return self._checkpoint

    @property
    def last_updated(self) -> float | None:
        """Timestamp of the last initialization or accepted advance."""
        return self._last_updated

    def initialize(self, value: Any) -> bool:
        """
        Set the first checkpoint.

        This is a guard against double initialization, not an error path.
        A second call, or an invalid value, leaves the tracker untouched.

        Args:
            value: Block height visible at full-load time.

        Returns:
            True if the checkpoint was set.
        """
        if self._checkpoint != 0 or not is_valid_checkpoint(value):
            return False

        self._checkpoint = value
        self._last_updated = self.time_fn()
        logger.info("Progress tracker initialized at block %d", value)
        return True

    def advance(self, candidate: Any) -> bool:
        """
        Move the checkpoint forward.

        Three outcomes besides acceptance, none of them errors:

        - Invalid value: rejected and logged.
        - Equal to current: nothing new, silently ignored.
        - Lower than current: out-of-order remote data, rejected and logged.

        Args:
            candidate: Block height reported by the latest delta fetch.

        Returns:
            True if the checkpoint moved.
        """
        if not is_valid_checkpoint(candidate):
            logger.warning("Invalid block number received: %r", candidate)
            return False

        previous = self._checkpoint
        if candidate == previous:
            logger.debug("No new blocks (still at %d)", candidate)
            return False

        if candidate < previous:
            logger.warning("New block %d is older than current %d", candidate, previous)
            return False

        now = self.time_fn()
        self._checkpoint = candidate
        self._last_updated = now
        self._history.append(
            AdvanceRecord(
                observed_at=now,
                from_checkpoint=previous,
                to_checkpoint=candidate,
                delta=candidate - previous,
            )
        )

        logger.info("Block advanced %d -> %d (+%d)", previous, candidate, candidate - previous)
        return True

    def has_new(self, latest: int) -> bool:
        """Check whether the remote is ahead of the tracked checkpoint."""
        return latest > self._checkpoint

    def behind(self, latest: int) -> int:
        """Number of blocks the mirror lags behind `latest`."""
        return max(0, latest - self._checkpoint)

    def staleness(self) -> float | None:
        """Seconds since the checkpoint was last set, or None if never set."""
        if self._last_updated is None:
            return None
        return self.time_fn() - self._last_updated

    def healthy(self, max_age: float = TRACKER_MAX_AGE) -> bool:
        """
        Check that the checkpoint has moved recently.

        A tracker that was never set is unhealthy.
        """
        staleness = self.staleness()
        if staleness is None:
            return False
        return staleness <= max_age

    def reset(self) -> None:
        """Return to the uninitialized state. Used only by full refresh."""
        self._checkpoint = 0
        self._last_updated = None
        self._history.clear()
        logger.info("Progress tracker reset")

    def history(self, count: int = 10) -> list[AdvanceRecord]:
        """Return the most recent `count` advances, oldest first."""
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def average_advance(self) -> int:
        """Mean number of blocks per accepted advance, rounded."""
        if not self._history:
            return 0
        total = sum(record.delta for record in self._history)
        return round(total / len(self._history))

    def advances_per_minute(self) -> int:
        """
        Advance frequency over the most recent window.

        Needs at least two records to measure a time span.
        """
        recent = list(self._history)[-FREQUENCY_WINDOW:]
        if len(recent) < 2:
            return 0

        span = recent[-1].observed_at - recent[0].observed_at
        if span <= 0:
            return 0

        return round((len(recent) - 1) / (span / 60.0))

    def status(self) -> TrackerStatus:
        """Snapshot of tracker state for status reporting."""
        return TrackerStatus(
            checkpoint=self._checkpoint,
            last_updated=self._last_updated,
            staleness=self.staleness(),
            total_advances=len(self._history),
            average_advance=self.average_advance(),
            advances_per_minute=self.advances_per_minute(),
        )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def export_state(self) -> TrackerSnapshot:
        """Capture checkpoint, timestamp and recent history for persistence."""
        return TrackerSnapshot(
            checkpoint=self._checkpoint,
            last_updated=self._last_updated,
            history=list(self._history)[-EXPORT_HISTORY:],
        )

    def import_state(self, raw: Any) -> bool:
        """
        Restore a previously exported snapshot.

        Import only happens into an uninitialized tracker so it can never
        move a live checkpoint backwards. Missing or malformed fields fall
        back to defaults instead of failing; malformed history entries are
        dropped one by one.

        Args:
            raw: Decoded JSON object (or anything else, which is ignored).

        Returns:
            True if the snapshot was applied.
        """
        if self._checkpoint != 0:
            logger.warning("Refusing to import tracker state over live checkpoint")
            return False

        if not isinstance(raw, dict):
            logger.warning("Ignoring tracker state of type %s", type(raw).__name__)
            return False

        checkpoint = raw.get("checkpoint")
        self._checkpoint = checkpoint if is_valid_checkpoint(checkpoint) else 0

        last_updated = raw.get("lastUpdated")
        if isinstance(last_updated, (int, float)) and not isinstance(last_updated, bool):
            self._last_updated = float(last_updated)
        else:
            self._last_updated = None

        self._history.clear()
        entries = raw.get("history")
        if isinstance(entries, list):
            for entry in entries:
                try:
                    self._history.append(AdvanceRecord.model_validate(entry))
                except ValidationError:
                    continue

        logger.info("Progress tracker state imported: block %d", self._checkpoint)
        return True

    def save(self, path: Path) -> bool:
        """Write the exported snapshot as JSON. Best effort."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.export_state().model_dump_json(by_alias=True))
        except OSError as e:
            logger.warning("Could not save tracker state to %s: %s", path, e)
            return False
        return True

    def load(self, path: Path) -> bool:
        """Read and import a JSON snapshot. Best effort."""
        try:
            raw = json.loads(path.read_text())
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as e:
            logger.warning("Could not load tracker state from %s: %s", path, e)
            return False
        return self.import_state(raw)
