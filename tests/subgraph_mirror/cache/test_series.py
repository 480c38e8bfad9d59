"""Tests for token price series."""

from __future__ import annotations

from subgraph_mirror.cache import CacheStore
from tests.subgraph_mirror.helpers import make_bucket, make_day_bucket, make_payload, make_token


def load_tokens(store: CacheStore, *tokens: dict) -> None:
    """Load a snapshot holding only the given tokens."""
    store.load_full(make_payload(1, tokens=list(tokens)))


class TestLatestPrice:
    """Tests for the latest price lookup."""

    def test_prefers_minute_data(self, store: CacheStore) -> None:
        """The newest minute bucket wins when it has a price."""
        load_tokens(
            store,
            make_token(
                "0xabc",
                minute=[make_bucket("m1", 60, "1.0"), make_bucket("m2", 120, "2.5")],
                hour=[make_bucket("h1", 3600, "9.0")],
            ),
        )

        quote = store.get_latest_price("0xabc")

        assert quote is not None
        assert quote.price_usd == 2.5
        assert quote.timestamp == 120
        assert quote.source == "minute"

    def test_falls_back_to_hour_then_day(self, store: CacheStore) -> None:
        """Coarser series are used when finer ones have no price."""
        load_tokens(
            store,
            make_token(
                "0xabc",
                minute=[make_bucket("m1", 60, "0")],
                hour=[make_bucket("h1", 3600, "3")],
            ),
            make_token("0xdef", day=[make_day_bucket("d1", 86400, "4")]),
        )

        hour_quote = store.get_latest_price("0xabc")
        day_quote = store.get_latest_price("0xdef")

        assert hour_quote is not None and hour_quote.source == "hour"
        assert day_quote is not None and day_quote.source == "day"
        assert day_quote.timestamp == 86400

    def test_token_id_is_case_insensitive(self, store: CacheStore) -> None:
        """Addresses match regardless of case."""
        load_tokens(store, make_token("0xAbC", minute=[make_bucket("m", 60, "1")]))

        assert store.get_latest_price("0XABC") is not None

    def test_unknown_token(self, store: CacheStore) -> None:
        """No buckets means no price."""
        load_tokens(store, make_token("0xabc"))

        assert store.get_latest_price("0xabc") is None
        assert store.get_latest_price("0xother") is None

    def test_serializes_with_camel_aliases(self, store: CacheStore) -> None:
        """Quotes serialize with the field names the API exposes."""
        load_tokens(store, make_token("0xabc", minute=[make_bucket("m", 60, "1")]))

        quote = store.get_latest_price("0xabc")
        assert quote is not None
        assert quote.model_dump(by_alias=True) == {
            "priceUSD": 1.0,
            "timestamp": 60,
            "source": "minute",
        }


class TestHistoricalSeries:
    """Tests for the normalized series."""

    def test_hour_series_newest_first(self, store: CacheStore) -> None:
        """Buckets are returned newest first, up to the limit."""
        load_tokens(
            store,
            make_token(
                "0xabc",
                hour=[make_bucket(f"h{i}", i * 3600, str(i)) for i in range(1, 6)],
            ),
        )

        series = store.get_historical_series("0xabc", "hour", limit=3)

        assert [point.timestamp for point in series] == [18000, 14400, 10800]
        assert series[0].price_usd == 5.0

    def test_missing_ohlc_falls_back_to_price(self, store: CacheStore) -> None:
        """Open, high, low and close default to the bucket price."""
        load_tokens(store, make_token("0xabc", hour=[make_bucket("h", 3600, "2.0", high="3.0")]))

        point = store.get_historical_series("0xabc")[0]

        assert point.open == 2.0
        assert point.high == 3.0
        assert point.low == 2.0
        assert point.close == 2.0
        assert point.volume == 0.0

    def test_day_series_uses_legacy_fields(self, store: CacheStore) -> None:
        """Day buckets map their own field names onto the common shape."""
        load_tokens(
            store,
            make_token(
                "0xabc",
                day=[
                    make_day_bucket(
                        "d",
                        86400,
                        "1.25",
                        dailyVolumeToken="100",
                        dailyVolumeUSD="125",
                        totalLiquidityToken="50",
                        totalLiquidityUSD="62.5",
                    )
                ],
            ),
        )

        point = store.get_historical_series("0xabc", "day")[0]

        assert point.timestamp == 86400
        assert point.volume == 100.0
        assert point.volume_usd == 125.0
        assert point.total_value_locked == 50.0
        assert point.total_value_locked_usd == 62.5

    def test_unknown_granularity(self, store: CacheStore) -> None:
        """An unsupported granularity yields an empty series."""
        load_tokens(store, make_token("0xabc", hour=[make_bucket("h", 3600)]))

        assert store.get_historical_series("0xabc", "week") == []

    def test_only_requested_token(self, store: CacheStore) -> None:
        """Buckets of other tokens are excluded."""
        load_tokens(
            store,
            make_token("0xaaa", hour=[make_bucket("a", 3600)]),
            make_token("0xbbb", hour=[make_bucket("b", 7200)]),
        )

        assert [p.timestamp for p in store.get_historical_series("0xaaa")] == [3600]
