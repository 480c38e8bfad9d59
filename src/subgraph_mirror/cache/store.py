"""
In-memory cache of mirrored subgraph entities.

Layout
------
Each collection kind is held as an immutable `_Collection`: a tuple of
records plus an id -> position index. A merge builds the next tuple and index
on the side and publishes them with a single dict assignment, so a reader
that grabbed a collection sees it either entirely before or entirely after
the merge.

Records are deep-copied on the way in and on the way out. Nothing a caller
holds can alias cached state.

Merging
-------
One routine serves every kind, parameterized by the kind's `MergePolicy`:

- New id: appended, counted as added.
- Known id, REPLACE: overwritten at the same position, not counted.
- Known id, SKIP: ignored.

Series kinds are not top-level fields of a payload. Their buckets are pulled
out of each token record and annotated with the owning token's identity.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from time import time as wall_time
from typing import Any

from subgraph_mirror.source import SourcePayload
from subgraph_mirror.types import CamelModel

from .kinds import (
    ENTITY_KINDS,
    KINDS_BY_NAME,
    SINGLETON_KINDS,
    SINGLETONS_BY_NAME,
    KindSpec,
    MergePolicy,
    SingletonSpec,
)
from .series import (
    DEFAULT_SERIES_LIMIT,
    PriceQuote,
    SeriesPoint,
    as_number,
    historical_series,
    latest_price,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]
"""An opaque entity record. Only the string `id` field is interpreted."""


@dataclass(frozen=True, slots=True)
class _Collection:
    """Published state of one collection. Never mutated after construction."""

    records: tuple[Record, ...] = ()
    index: dict[str, int] = field(default_factory=dict)


_EMPTY = _Collection()


class CacheStats(CamelModel):
    """Cache metadata for status reporting."""

    initialized: bool
    last_updated: float | None
    total_records: int
    entities: dict[str, int]


def _merge(
    current: _Collection, incoming: Iterable[Any], policy: MergePolicy
) -> tuple[_Collection, int]:
    """
    Fold incoming records into a collection.

    Returns:
        The new collection and the number of records appended.
    """
    records = list(current.records)
    index = dict(current.index)
    added = 0
    dropped = 0

    for record in incoming:
        record_id = record.get("id") if isinstance(record, dict) else None
        if not isinstance(record_id, str):
            dropped += 1
            continue

        position = index.get(record_id)
        if position is None:
            index[record_id] = len(records)
            records.append(copy.deepcopy(record))
            added += 1
        elif policy is MergePolicy.REPLACE:
            records[position] = copy.deepcopy(record)

    if dropped:
        logger.warning("Dropped %d records without a string id", dropped)

    return _Collection(tuple(records), index), added


def _annotated_series(spec: KindSpec, parents: list[Any]) -> list[Record]:
    """Pull series buckets out of parent records, tagging each with its owner."""
    buckets: list[Record] = []
    for parent in parents:
        if not isinstance(parent, dict):
            continue
        nested = parent.get(spec.field_name)
        if not isinstance(nested, list):
            continue

        owner = {
            "id": parent.get("id"),
            "symbol": parent.get("symbol"),
            "name": parent.get("name"),
        }
        for bucket in nested:
            if isinstance(bucket, dict):
                buckets.append({**bucket, "token": owner})
    return buckets


def _incoming(spec: KindSpec, payload: SourcePayload) -> list[Any] | None:
    """Records a payload carries for one kind, or None if it carries none."""
    if spec.derived_from is None:
        value = payload.get(spec.field_name)
        if value is None:
            return None
        if not isinstance(value, list):
            logger.warning("Ignoring non-list value for %s", spec.name)
            return None
        return value

    parent = KINDS_BY_NAME[spec.derived_from]
    parents = payload.get(parent.field_name)
    if not isinstance(parents, list):
        return None
    return _annotated_series(spec, parents)


def _singleton(spec: SingletonSpec, payload: SourcePayload) -> Record | None:
    """Extract a singleton: the first element of a list, or the object itself."""
    value = payload.get(spec.field_name)
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        return copy.deepcopy(value)
    return None


@dataclass(slots=True)
class CacheStore:
    """
    Keyed store of entity collections and singletons.

    Created empty and not ready. `load_full` fills it and marks it ready;
    `merge_delta` folds in changes; `clear` empties it again.
    """

    time_fn: Callable[[], float] = wall_time
    """Time source function (injectable for testing)."""

    _collections: dict[str, _Collection] = field(default_factory=dict, init=False)
    """Published collection per kind."""

    _singletons: dict[str, Record | None] = field(default_factory=dict, init=False)
    """Singleton record per kind, None if the source had none."""

    _initialized: bool = field(default=False, init=False)
    """Whether a full load has completed since creation or the last clear."""

    _last_updated: float | None = field(default=None, init=False)
    """When the last load or non-empty merge completed."""

    def __post_init__(self) -> None:
        """Start with every kind present and empty."""
        self._reset()

    def _reset(self) -> None:
        self._collections = {spec.name: _EMPTY for spec in ENTITY_KINDS}
        self._singletons = {spec.name: None for spec in SINGLETON_KINDS}
        self._initialized = False
        self._last_updated = None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def load_full(self, payload: SourcePayload) -> bool:
        """
        Replace the whole cache with a full snapshot.

        Kinds absent from the payload become empty. Duplicate ids inside the
        payload follow the kind's merge policy.

        Returns:
            True once the cache is ready.
        """
        for spec in ENTITY_KINDS:
            incoming = _incoming(spec, payload) or []
            self._collections[spec.name], _ = _merge(_EMPTY, incoming, spec.policy)

        for singleton in SINGLETON_KINDS:
            self._singletons[singleton.name] = _singleton(singleton, payload)

        self._initialized = True
        self._last_updated = self.time_fn()

        logger.info(
            "Cache loaded: %d records across %d kinds",
            self.total_record_count(),
            len(ENTITY_KINDS),
        )
        return True

    def merge_delta(self, payload: SourcePayload) -> int:
        """
        Fold a delta into the cache.

        Only kinds present in the payload are touched. Singletons present in
        the payload replace the cached ones.

        Returns:
            Number of newly appended records across all kinds. Replacements
            of existing ids are not counted.
        """
        added_total = 0
        for spec in ENTITY_KINDS:
            incoming = _incoming(spec, payload)
            if not incoming:
                continue

            merged, added = _merge(self._collections[spec.name], incoming, spec.policy)
            self._collections[spec.name] = merged
            if added:
                logger.debug("Merged %d new %s", added, spec.name)
            added_total += added

        for singleton in SINGLETON_KINDS:
            record = _singleton(singleton, payload)
            if record is not None:
                self._singletons[singleton.name] = record

        if added_total:
            self._last_updated = self.time_fn()
            logger.info("Cache merged %d new records", added_total)

        return added_total

    def clear(self) -> None:
        """Drop every record and mark the cache not ready."""
        self._reset()
        logger.info("Cache cleared")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def is_ready(self) -> bool:
        """Check that a full load has completed and left records behind."""
        return self._initialized and self.total_record_count() > 0

    @property
    def last_updated(self) -> float | None:
        """Timestamp of the last load or merge that added records."""
        return self._last_updated

    def kinds(self) -> list[str]:
        """Every readable kind name, collections first."""
        return [spec.name for spec in ENTITY_KINDS] + [spec.name for spec in SINGLETON_KINDS]

    def get(self, kind: str) -> list[Record] | Record | None:
        """
        Copy of a collection or singleton.

        Returns:
            A list for collection kinds, a record or None for singletons,
            None for unknown kinds.
        """
        collection = self._collections.get(kind)
        if collection is not None:
            return [copy.deepcopy(record) for record in collection.records]

        if kind in SINGLETONS_BY_NAME:
            return copy.deepcopy(self._singletons.get(kind))

        logger.warning("Unknown entity kind: %s", kind)
        return None

    def get_by_id(self, kind: str, record_id: str) -> Record | None:
        """Copy of one record, or None if the kind or id is unknown."""
        collection = self._collections.get(kind)
        if collection is None:
            return None

        position = collection.index.get(record_id)
        if position is None:
            return None
        return copy.deepcopy(collection.records[position])

    def get_filtered(self, kind: str, predicate: Callable[[Record], bool]) -> list[Record]:
        """Copies of the records matching `predicate`, in cache order."""
        collection = self._collections.get(kind)
        if collection is None:
            return []
        return [copy.deepcopy(record) for record in collection.records if predicate(record)]

    def get_recent(self, kind: str, limit: int = 10) -> list[Record]:
        """
        Newest records of a kind.

        Ordered by `timestamp`, falling back to `createdAt`, numerically and
        descending. Records with neither sort last.
        """
        collection = self._collections.get(kind)
        if collection is None or limit <= 0:
            return []

        def recency(record: Record) -> float:
            return as_number(record.get("timestamp") or record.get("createdAt"))

        ordered = sorted(collection.records, key=recency, reverse=True)
        return [copy.deepcopy(record) for record in ordered[:limit]]

    def count(self, kind: str) -> int:
        """Number of records held for a collection kind."""
        collection = self._collections.get(kind)
        return len(collection.records) if collection is not None else 0

    def total_record_count(self) -> int:
        """Records across all collections plus one per present singleton."""
        collections = sum(len(collection.records) for collection in self._collections.values())
        singletons = sum(1 for record in self._singletons.values() if record is not None)
        return collections + singletons

    def stats(self) -> CacheStats:
        """Metadata and per-kind record counts."""
        return CacheStats(
            initialized=self._initialized,
            last_updated=self._last_updated,
            total_records=self.total_record_count(),
            entities={name: len(c.records) for name, c in self._collections.items()},
        )

    def snapshot(self) -> dict[str, Any]:
        """Copy of every collection and singleton plus cache metadata."""
        snapshot: dict[str, Any] = {kind: self.get(kind) for kind in self.kinds()}
        snapshot["initialized"] = self._initialized
        snapshot["lastUpdated"] = self._last_updated
        snapshot["totalRecords"] = self.total_record_count()
        return snapshot

    def trading_tokens(self) -> list[Record]:
        """ERC20 tokens that are one side of at least one pair."""
        traded: set[str] = set()
        for pair in self._collections["pairs"].records:
            for side in ("token0", "token1"):
                token = pair.get(side)
                if isinstance(token, dict) and isinstance(token.get("id"), str):
                    traded.add(token["id"].lower())

        return self.get_filtered("erc20Tokens", lambda token: token["id"].lower() in traded)

    def get_latest_price(self, token_id: str) -> PriceQuote | None:
        """Most recent USD price of a token. See `series.latest_price`."""
        return latest_price(self, token_id)

    def get_historical_series(
        self,
        token_id: str,
        granularity: str = "hour",
        limit: int = DEFAULT_SERIES_LIMIT,
    ) -> list[SeriesPoint]:
        """Normalized price series of a token. See `series.historical_series`."""
        return historical_series(self, token_id, granularity, limit)
