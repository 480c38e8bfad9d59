"""
Remote source configuration constants.

Retry policy, timeouts, and page sizes for subgraph queries.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

MIRROR_ENV: Final[str] = os.environ.get("MIRROR_ENV", "prod").lower()
"""
Deployment environment, `prod` or `test`.

The test environment drops the pause between retries so failure paths run
without waiting.
"""

if MIRROR_ENV not in ("prod", "test"):
    raise ValueError(f"MIRROR_ENV must be prod or test, got {MIRROR_ENV!r}")

MAX_ATTEMPTS: Final[int] = 3
"""Attempts per query before the fetch is declared failed."""

RETRY_DELAY: Final[float] = 2.0 if MIRROR_ENV == "prod" else 0.0
"""Fixed pause between attempts, in seconds. Zero under the test environment."""

REQUEST_TIMEOUT: Final[float] = 30.0
"""Timeout for a single attempt, in seconds."""

DEFAULT_PAGE_SIZE: Final[int] = 1000
"""Entities per collection requested by a full load."""

MAX_PAGE_SIZE: Final[int] = 5000
"""Upper bound the subgraph accepts for `first`."""

USER_AGENT: Final[str] = "subgraph-mirror/1.0"
"""User-Agent header sent with every query."""


@dataclass(frozen=True, slots=True)
class SourceConfig:
    """Connection settings for the subgraph client."""

    url: str
    """GraphQL endpoint of the subgraph."""

    max_attempts: int = MAX_ATTEMPTS
    """Attempts per query."""

    retry_delay: float = RETRY_DELAY
    """Seconds between attempts."""

    timeout: float = REQUEST_TIMEOUT
    """Seconds before a single attempt is aborted."""
