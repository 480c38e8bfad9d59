"""
Test doubles for the remote source and the clock.

Each mock provides minimal implementations for isolated testing.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from subgraph_mirror.source import DEFAULT_PAGE_SIZE, SourcePayload

Outcome = SourcePayload | Exception


@dataclass
class FakeClock:
    """Manually advanced time source."""

    now: float = 1_700_000_000.0
    """Current time in seconds."""

    def __call__(self) -> float:
        """Return the current time."""
        return self.now

    def advance(self, seconds: float) -> None:
        """Move time forward."""
        self.now += seconds


@dataclass
class MockSource:
    """
    Remote source answering from queued outcomes.

    Each queue hands out its entries in order and then keeps repeating the
    last one. An exception entry is raised instead of returned.
    """

    full: list[Outcome] = field(default_factory=list)
    """Outcomes of `fetch_full`."""

    deltas: list[Outcome] = field(default_factory=list)
    """Outcomes of `fetch_delta`."""

    full_calls: list[int] = field(default_factory=list)
    """Page sizes passed to `fetch_full`."""

    delta_calls: list[int] = field(default_factory=list)
    """Checkpoints passed to `fetch_delta`."""

    gate: asyncio.Event | None = None
    """If set, `fetch_delta` blocks until the event is set."""

    @staticmethod
    def _next(queue: list[Outcome]) -> SourcePayload:
        if not queue:
            raise LookupError("no outcome queued")
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def fetch_full(self, page_size: int = DEFAULT_PAGE_SIZE) -> SourcePayload:
        """Return the next full-load outcome."""
        self.full_calls.append(page_size)
        return self._next(self.full)

    async def fetch_delta(self, since_checkpoint: int) -> SourcePayload:
        """Return the next delta outcome, after the gate opens."""
        self.delta_calls.append(since_checkpoint)
        if self.gate is not None:
            await self.gate.wait()
        return self._next(self.deltas)
