"""
Payloads returned by the remote source.

A payload is the `data` object of a GraphQL response plus the block number
the subgraph had indexed when it answered. Entity arrays stay opaque: the
cache only relies on each record carrying a string `id`.
"""

from __future__ import annotations

from typing import Any

from subgraph_mirror.types import CamelModel

META_FIELD = "_meta"
"""Response field carrying subgraph indexing metadata."""


def parse_checkpoint(data: dict[str, Any]) -> int | None:
    """
    Extract `_meta.block.number` from a response body.

    Accepts an int or a decimal string. Anything else yields None.
    """
    meta = data.get(META_FIELD)
    if not isinstance(meta, dict):
        return None
    block = meta.get("block")
    if not isinstance(block, dict):
        return None

    number = block.get("number")
    if isinstance(number, bool):
        return None
    if isinstance(number, int):
        return number
    if isinstance(number, str) and number.strip().isdigit():
        return int(number)
    return None


class SourcePayload(CamelModel):
    """A full snapshot or a delta, tagged with the block it was read at."""

    checkpoint: int | None = None
    """Block number visible at fetch time. None if the response omitted it."""

    data: dict[str, Any] = {}
    """Entity arrays and singletons keyed by their GraphQL field name."""

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> SourcePayload:
        """Build a payload from the `data` object of a GraphQL response."""
        entities = {key: value for key, value in data.items() if key != META_FIELD}
        return cls(checkpoint=parse_checkpoint(data), data=entities)

    def get(self, name: str) -> Any:
        """Return a raw field, or None if absent."""
        return self.data.get(name)

    def record_count(self) -> int:
        """Count records across all fields, one per non-list value."""
        count = 0
        for value in self.data.values():
            if isinstance(value, list):
                count += len(value)
            elif value is not None:
                count += 1
        return count
