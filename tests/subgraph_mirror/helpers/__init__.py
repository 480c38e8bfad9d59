"""Test helpers for subgraph mirror unit tests."""

from __future__ import annotations

from .builders import (
    graphql_body,
    make_bucket,
    make_day_bucket,
    make_pair,
    make_payload,
    make_token,
)
from .mocks import FakeClock, MockSource

__all__ = [
    "FakeClock",
    "MockSource",
    "graphql_body",
    "make_bucket",
    "make_day_bucket",
    "make_pair",
    "make_payload",
    "make_token",
]
