"""Sync driver state machine."""

from __future__ import annotations

from enum import Enum, auto


class SyncState(Enum):
    """
    Sync driver states.

    State Machine Diagram
    ---------------------
    ::

        UNINITIALIZED --> INITIALIZING --> IDLE <--> SYNCING
              ^                |            |
              +----------------+------------+

    Transitions
    -----------
    UNINITIALIZED -> INITIALIZING
        - Triggered when: `initialize()` starts the full load

    INITIALIZING -> IDLE
        - Triggered when: The full load was absorbed by the cache

    INITIALIZING -> UNINITIALIZED
        - Triggered when: The full fetch failed

    IDLE -> SYNCING -> IDLE
        - Triggered when: An incremental attempt starts, then ends
        - SYNCING always returns to IDLE, whether the attempt succeeded or not

    IDLE -> UNINITIALIZED
        - Triggered when: A forced refresh drops the cache
    """

    UNINITIALIZED = auto()
    """No full load yet. Incremental syncs are refused."""

    INITIALIZING = auto()
    """Full fetch in progress."""

    IDLE = auto()
    """Cache loaded, waiting for the next incremental attempt."""

    SYNCING = auto()
    """
    One incremental attempt in flight.

    Never entered twice at once: overlapping triggers are skipped.
    """

    def can_transition_to(self, target: SyncState) -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The proposed target state.

        Returns:
            True if the transition is allowed by the state machine rules.
        """
        return target in _VALID_TRANSITIONS.get(self, set())

    @property
    def is_initialized(self) -> bool:
        """Check whether a full load has completed in this state."""
        return self in {SyncState.IDLE, SyncState.SYNCING}


_VALID_TRANSITIONS: dict[SyncState, set[SyncState]] = {
    SyncState.UNINITIALIZED: {SyncState.INITIALIZING},
    SyncState.INITIALIZING: {SyncState.IDLE, SyncState.UNINITIALIZED},
    SyncState.IDLE: {SyncState.SYNCING, SyncState.UNINITIALIZED},
    SyncState.SYNCING: {SyncState.IDLE},
}
"""Valid state transitions for the sync state machine."""
