"""
Token price series derived from the cached buckets.

Buckets come in three granularities (minute, hour, day) with slightly
different field sets. The day buckets predate the others in the subgraph
schema and name their fields differently, so every reader goes through the
fallback table below instead of touching raw keys.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import Field

from subgraph_mirror.types import CamelModel

from .kinds import PRICE_GRANULARITIES, SERIES_KINDS

if TYPE_CHECKING:
    from .store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_SERIES_LIMIT = 168
"""One week of hourly buckets."""


def as_number(value: Any) -> float:
    """
    Coerce a subgraph scalar to a float.

    BigDecimal and BigInt fields arrive as strings. Missing, empty or
    unparseable values count as zero.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _first_present(bucket: dict[str, Any], *names: str) -> Any:
    """Return the first truthy field among `names`."""
    for name in names:
        value = bucket.get(name)
        if value:
            return value
    return None


def bucket_start(bucket: dict[str, Any]) -> float:
    """Period start of a bucket: `periodStartUnix`, or `date` for day buckets."""
    return as_number(_first_present(bucket, "periodStartUnix", "date"))


def _belongs_to(bucket: dict[str, Any], token_id: str) -> bool:
    token = bucket.get("token")
    if not isinstance(token, dict):
        return False
    bucket_token = token.get("id")
    return isinstance(bucket_token, str) and bucket_token.lower() == token_id


class PriceQuote(CamelModel):
    """Latest known USD price of a token."""

    price_usd: float = Field(alias="priceUSD")
    """Price in USD."""

    timestamp: int
    """Start of the bucket the price was taken from."""

    source: str
    """Granularity of that bucket."""


class SeriesPoint(CamelModel):
    """One bucket of a token's price series, with normalized numeric fields."""

    timestamp: int
    price_usd: float = Field(alias="priceUSD")
    volume: float
    volume_usd: float = Field(alias="volumeUSD")
    open: float
    high: float
    low: float
    close: float
    total_value_locked: float
    total_value_locked_usd: float = Field(alias="totalValueLockedUSD")

    @classmethod
    def from_bucket(cls, bucket: dict[str, Any]) -> SeriesPoint:
        """Normalize a raw bucket, filling OHLC from the price when absent."""
        price = _first_present(bucket, "priceUSD")
        return cls(
            timestamp=int(bucket_start(bucket)),
            price_usd=as_number(price),
            volume=as_number(_first_present(bucket, "volume", "dailyVolumeToken")),
            volume_usd=as_number(_first_present(bucket, "volumeUSD", "dailyVolumeUSD")),
            open=as_number(_first_present(bucket, "open", "priceUSD")),
            high=as_number(_first_present(bucket, "high", "priceUSD")),
            low=as_number(_first_present(bucket, "low", "priceUSD")),
            close=as_number(_first_present(bucket, "close", "priceUSD")),
            total_value_locked=as_number(
                _first_present(bucket, "totalValueLocked", "totalLiquidityToken")
            ),
            total_value_locked_usd=as_number(
                _first_present(bucket, "totalValueLockedUSD", "totalLiquidityUSD")
            ),
        )


def token_buckets(store: CacheStore, token_id: str, granularity: str) -> list[dict[str, Any]]:
    """Buckets of one token at one granularity, newest first."""
    kind = SERIES_KINDS[granularity]
    address = token_id.lower()
    buckets = store.get_filtered(kind, lambda bucket: _belongs_to(bucket, address))
    buckets.sort(key=bucket_start, reverse=True)
    return buckets


def latest_price(store: CacheStore, token_id: str) -> PriceQuote | None:
    """
    Most recent USD price of a token.

    Looks at the newest bucket of each granularity, finest first, and
    returns the first one carrying a non-zero price.
    """
    for granularity in PRICE_GRANULARITIES:
        buckets = token_buckets(store, token_id, granularity)
        if not buckets:
            continue

        newest = buckets[0]
        price = as_number(newest.get("priceUSD"))
        if price:
            return PriceQuote(
                price_usd=price,
                timestamp=int(bucket_start(newest)),
                source=granularity,
            )

    return None


def historical_series(
    store: CacheStore,
    token_id: str,
    granularity: str = "hour",
    limit: int = DEFAULT_SERIES_LIMIT,
) -> list[SeriesPoint]:
    """
    Normalized price series of a token, newest first.

    Unknown granularities yield an empty list.
    """
    if granularity not in SERIES_KINDS:
        logger.warning("Unknown series granularity: %s", granularity)
        return []
    if limit <= 0:
        return []

    buckets = token_buckets(store, token_id, granularity)[:limit]
    return [SeriesPoint.from_bucket(bucket) for bucket in buckets]
