"""Tests for the entity kind table."""

from __future__ import annotations

from subgraph_mirror.cache import ENTITY_KINDS, SINGLETON_KINDS, MergePolicy
from subgraph_mirror.cache.kinds import KINDS_BY_NAME


class TestKindTable:
    """Tests for the declarative kind table."""

    def test_names_are_unique(self) -> None:
        """No kind is declared twice, across collections and singletons."""
        names = [spec.name for spec in ENTITY_KINDS] + [spec.name for spec in SINGLETON_KINDS]
        assert len(names) == len(set(names))

    def test_state_kinds_replace(self) -> None:
        """Only mutable-state kinds replace on duplicate ids."""
        replacing = {spec.name for spec in ENTITY_KINDS if spec.policy is MergePolicy.REPLACE}
        assert replacing == {"tokens", "erc20Tokens"}

    def test_derived_kinds_point_at_known_parents(self) -> None:
        """Every derived kind names a declared, non-derived parent."""
        for spec in ENTITY_KINDS:
            if spec.derived_from is not None:
                parent = KINDS_BY_NAME[spec.derived_from]
                assert parent.derived_from is None

    def test_field_name_defaults_to_kind_name(self) -> None:
        """Source fields default to the kind name."""
        assert KINDS_BY_NAME["sales"].field_name == "sales"
        assert KINDS_BY_NAME["icoRequests"].field_name == "icorequests"
