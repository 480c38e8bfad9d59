"""
Entity kinds mirrored by the cache and how duplicates are merged.

Why Two Policies?
-----------------
The subgraph serves two different sorts of entities:

1. **Mutable state**: a token's running totals, an ERC20's holder count.
   The subgraph always sends the latest full state for an id, so a duplicate
   id replaces the cached record in place.
2. **Event logs**: a contribution, a sale, an hourly price bucket. Once
   written these never change, so a duplicate id is a re-delivery and is
   skipped.

The policy is fixed per kind in the table below. Adding a kind is a table
edit; the merge routine in the store never branches on kind names.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final


class MergePolicy(Enum):
    """What happens when an incoming record's id is already cached."""

    REPLACE = auto()
    """Overwrite the cached record, keeping its position."""

    SKIP = auto()
    """Keep the cached record and drop the incoming one."""


@dataclass(frozen=True, slots=True)
class KindSpec:
    """Declaration of one collection-valued entity kind."""

    name: str
    """Kind name used by readers."""

    policy: MergePolicy
    """Duplicate handling for this kind."""

    source_field: str | None = None
    """
    GraphQL field carrying the records, if it differs from `name`.

    For derived kinds this is the field nested inside each parent record.
    """

    derived_from: str | None = None
    """Parent kind whose records embed this kind's records, if any."""

    @property
    def field_name(self) -> str:
        """Field to read from a payload (or from each parent record)."""
        return self.source_field or self.name


@dataclass(frozen=True, slots=True)
class SingletonSpec:
    """Declaration of an entity kind holding at most one record."""

    name: str
    """Kind name used by readers."""

    source_field: str | None = None
    """GraphQL field carrying the record, if it differs from `name`."""

    @property
    def field_name(self) -> str:
        """Field to read from a payload."""
        return self.source_field or self.name


ENTITY_KINDS: Final[tuple[KindSpec, ...]] = (
    # ICO
    KindSpec("icoRequests", MergePolicy.SKIP, source_field="icorequests"),
    KindSpec("contributions", MergePolicy.SKIP),
    # Projects and tokens
    KindSpec("projects", MergePolicy.SKIP),
    KindSpec("erc20Tokens", MergePolicy.REPLACE),
    # Marketplace
    KindSpec("listings", MergePolicy.SKIP),
    KindSpec("sales", MergePolicy.SKIP),
    # DEX
    KindSpec("tokens", MergePolicy.REPLACE),
    KindSpec("pairs", MergePolicy.SKIP),
    # Accounts and transactions
    KindSpec("accounts", MergePolicy.SKIP),
    KindSpec("transactions", MergePolicy.SKIP),
    # Funds manager
    KindSpec("checkpoints", MergePolicy.SKIP),
    KindSpec("lpTokenLocks", MergePolicy.SKIP),
    KindSpec("bonusClaims", MergePolicy.SKIP),
    # Price series embedded in tokens
    KindSpec("tokenMinuteData", MergePolicy.SKIP, derived_from="tokens"),
    KindSpec("tokenHourData", MergePolicy.SKIP, derived_from="tokens"),
    KindSpec("tokenDayData", MergePolicy.SKIP, derived_from="tokens"),
    # Pair series
    KindSpec("pairHourData", MergePolicy.SKIP),
    KindSpec("pairDayData", MergePolicy.SKIP),
)
"""Every collection-valued kind, in the order the cache materializes them."""

SINGLETON_KINDS: Final[tuple[SingletonSpec, ...]] = (
    SingletonSpec("globalStats"),
    SingletonSpec("marketplaceStats"),
    SingletonSpec("piculeFactory", source_field="piculeFactories"),
)
"""Kinds holding at most one record each."""

KINDS_BY_NAME: Final[dict[str, KindSpec]] = {spec.name: spec for spec in ENTITY_KINDS}
"""Collection kind lookup by name."""

SINGLETONS_BY_NAME: Final[dict[str, SingletonSpec]] = {spec.name: spec for spec in SINGLETON_KINDS}
"""Singleton kind lookup by name."""

SERIES_KINDS: Final[dict[str, str]] = {
    "minute": "tokenMinuteData",
    "hour": "tokenHourData",
    "day": "tokenDayData",
}
"""Token price series kind per granularity."""

PRICE_GRANULARITIES: Final[tuple[str, ...]] = ("minute", "hour", "day")
"""Latest-price lookup order, finest first."""
