"""
Remote source client for the subgraph.

Fetches full snapshots and deltas, each tagged with the block height the
subgraph had indexed when it answered. Transient failures are retried with a
fixed pause; exhaustion surfaces as `FetchFailedError`.
"""

from __future__ import annotations

__all__ = [
    # Client
    "SubgraphClient",
    "RemoteSource",
    "SourceHealth",
    "SourceConfig",
    # Payloads
    "SourcePayload",
    "parse_checkpoint",
    # Errors
    "SourceError",
    "TransportError",
    "RemoteQueryError",
    "MalformedResponseError",
    "FetchFailedError",
    # Configuration constants
    "MAX_ATTEMPTS",
    "RETRY_DELAY",
    "REQUEST_TIMEOUT",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]

from .client import RemoteSource, SourceHealth, SubgraphClient
from .config import (
    DEFAULT_PAGE_SIZE,
    MAX_ATTEMPTS,
    MAX_PAGE_SIZE,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
    SourceConfig,
)
from .errors import (
    FetchFailedError,
    MalformedResponseError,
    RemoteQueryError,
    SourceError,
    TransportError,
)
from .payload import SourcePayload, parse_checkpoint
