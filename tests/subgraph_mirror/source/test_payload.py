"""Tests for source payload parsing."""

from __future__ import annotations

from subgraph_mirror.source import SourcePayload, parse_checkpoint


class TestParseCheckpoint:
    """Tests for block number extraction."""

    def test_int_block_number(self) -> None:
        """An int block number is returned as is."""
        assert parse_checkpoint({"_meta": {"block": {"number": 42}}}) == 42

    def test_decimal_string_block_number(self) -> None:
        """A decimal string is converted."""
        assert parse_checkpoint({"_meta": {"block": {"number": "42"}}}) == 42

    def test_missing_or_invalid_yields_none(self) -> None:
        """Anything that is not a block number yields None."""
        for data in (
            {},
            {"_meta": None},
            {"_meta": {"block": None}},
            {"_meta": {"block": {}}},
            {"_meta": {"block": {"number": "12a"}}},
            {"_meta": {"block": {"number": 1.5}}},
            {"_meta": {"block": {"number": True}}},
        ):
            assert parse_checkpoint(data) is None


class TestSourcePayload:
    """Tests for payload construction and inspection."""

    def test_from_response_strips_metadata(self) -> None:
        """Indexing metadata is lifted into the checkpoint."""
        payload = SourcePayload.from_response(
            {"_meta": {"block": {"number": 9}}, "tokens": [{"id": "A"}]}
        )

        assert payload.checkpoint == 9
        assert payload.data == {"tokens": [{"id": "A"}]}

    def test_get_missing_field(self) -> None:
        """Absent fields read as None."""
        assert SourcePayload(checkpoint=1).get("tokens") is None

    def test_record_count(self) -> None:
        """Lists count per element, objects count once, nulls not at all."""
        payload = SourcePayload(
            checkpoint=1,
            data={"tokens": [{"id": "A"}, {"id": "B"}], "globalStats": {"id": "1"}, "x": None},
        )
        assert payload.record_count() == 3
