"""
Cache store for mirrored subgraph entities.

Collections are keyed by entity kind and unique by id. Duplicate handling is
declared per kind in `kinds.py`.
"""

from __future__ import annotations

__all__ = [
    "CacheStore",
    "CacheStats",
    "ENTITY_KINDS",
    "SINGLETON_KINDS",
    "KindSpec",
    "SingletonSpec",
    "MergePolicy",
    "PriceQuote",
    "SeriesPoint",
    "latest_price",
    "historical_series",
]

from .kinds import ENTITY_KINDS, SINGLETON_KINDS, KindSpec, MergePolicy, SingletonSpec
from .series import PriceQuote, SeriesPoint, historical_series, latest_price
from .store import CacheStats, CacheStore
