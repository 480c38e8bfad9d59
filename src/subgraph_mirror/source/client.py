"""
GraphQL client for the subgraph.

What Can Go Wrong
-----------------
A hosted subgraph is a shared service. It times out, returns 5xx under load,
answers with inline GraphQL errors while an indexer restarts, and sometimes
returns a body without indexing metadata. All of these are transient from the
mirror's point of view, so each query is retried a fixed number of times with
a fixed pause between attempts.

Two outcomes must never be confused:

- **Zero new entities**: valid. The subgraph answered, nothing changed.
- **No block number**: invalid. A response that does not say which block it
  was read at cannot advance progress, so it counts as a failed attempt.

Once the retry budget is spent the caller receives a single
`FetchFailedError` naming the last failure.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from subgraph_mirror.types import CamelModel

from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, USER_AGENT, SourceConfig
from .errors import (
    FetchFailedError,
    MalformedResponseError,
    RemoteQueryError,
    SourceError,
    TransportError,
)
from .payload import SourcePayload
from .queries import DELTA_QUERY, FULL_QUERY, META_QUERY

logger = logging.getLogger(__name__)

_RETRYABLE = (TransportError, RemoteQueryError, MalformedResponseError)
"""Failures that consume one attempt and are then retried."""


class RemoteSource(Protocol):
    """
    Protocol for the data source the sync driver mirrors.

    The driver depends on this rather than on the HTTP client so tests and
    alternative sources can stand in for the subgraph.

    Implementers should:
    - Retry transient failures internally
    - Raise once retries are exhausted (never return a partial payload)
    """

    async def fetch_full(self, page_size: int = DEFAULT_PAGE_SIZE) -> SourcePayload:
        """Fetch a complete snapshot of every entity kind."""
        ...

    async def fetch_delta(self, since_checkpoint: int) -> SourcePayload:
        """Fetch entities changed after `since_checkpoint`."""
        ...


class SourceHealth(CamelModel):
    """Result of probing the subgraph."""

    healthy: bool
    checkpoint: int | None = None
    error: str | None = None


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a failed attempt before the retry pause."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Subgraph query attempt %d failed: %s (retrying)",
        retry_state.attempt_number,
        exc,
    )


@dataclass(slots=True)
class SubgraphClient:
    """
    Retrying GraphQL client for one subgraph endpoint.

    Owns a lazily created `httpx.AsyncClient`. Call `close()` (or use the
    client as an async context manager) to release the connection pool.
    """

    config: SourceConfig
    """Endpoint and retry policy."""

    transport: httpx.AsyncBaseTransport | None = field(default=None)
    """Optional transport override (tests inject `httpx.MockTransport`)."""

    _http: httpx.AsyncClient | None = field(default=None, init=False, repr=False)
    """Underlying HTTP client, created on first use."""

    async def __aenter__(self) -> SubgraphClient:
        """Enter async context."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close the HTTP client on exit."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        """Return the HTTP client, creating it on first use."""
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                headers={"User-Agent": USER_AGENT},
                transport=self.transport,
            )
        return self._http

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def fetch_full(self, page_size: int = DEFAULT_PAGE_SIZE) -> SourcePayload:
        """
        Fetch a complete snapshot.

        Args:
            page_size: Rows per collection, clamped to the subgraph maximum.

        Returns:
            Payload tagged with the block it was read at.

        Raises:
            FetchFailedError: If every attempt failed.
        """
        first = max(1, min(page_size, MAX_PAGE_SIZE))
        return await self.query(FULL_QUERY, {"first": first})

    async def fetch_delta(self, since_checkpoint: int) -> SourcePayload:
        """
        Fetch entities changed after a block.

        Raises:
            FetchFailedError: If every attempt failed.
        """
        return await self.query(DELTA_QUERY, {"fromBlock": since_checkpoint})

    async def current_checkpoint(self) -> int:
        """Return the subgraph's indexed block height, or 0 if unreachable."""
        try:
            payload = await self.query(META_QUERY)
        except FetchFailedError as e:
            logger.error("Failed to get current block: %s", e)
            return 0
        return payload.checkpoint or 0

    async def health_check(self) -> SourceHealth:
        """Check the subgraph with a metadata-only query."""
        try:
            payload = await self.query(META_QUERY)
        except FetchFailedError as e:
            return SourceHealth(healthy=False, error=str(e))
        return SourceHealth(healthy=True, checkpoint=payload.checkpoint)

    async def query(self, document: str, variables: dict[str, Any] | None = None) -> SourcePayload:
        """
        Run a GraphQL document with retries.

        Raises:
            FetchFailedError: If every attempt failed. The last failure is
                available as `__cause__`.
        """
        variables = variables or {}
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_fixed(self.config.retry_delay),
            retry=retry_if_exception_type(_RETRYABLE),
            before_sleep=_log_retry,
            reraise=True,
        )

        try:
            return await retrying(self._attempt, document, variables)
        except SourceError as e:
            logger.error(
                "Subgraph query failed after %d attempts: %s", self.config.max_attempts, e
            )
            raise FetchFailedError(self.config.max_attempts, e) from e

    async def _attempt(self, document: str, variables: dict[str, Any]) -> SourcePayload:
        """
        Perform one HTTP round trip and validate the response.

        Every failure mode is mapped onto a `SourceError` subclass so the
        retry policy can classify it.
        """
        logger.debug("Subgraph request variables=%s", variables)

        try:
            async with asyncio.timeout(self.config.timeout):
                response = await self._client().post(
                    self.config.url,
                    json={"query": document, "variables": variables},
                )
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise TransportError(f"Request timeout after {self.config.timeout}s") from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP error {response.status_code}: {response.text[:200]}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Response body is not JSON") from exc

        if not isinstance(body, dict):
            raise MalformedResponseError("Response body is not a JSON object")

        errors = body.get("errors")
        if errors:
            messages = ", ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise RemoteQueryError(f"GraphQL error: {messages}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("No data returned from GraphQL query")

        payload = SourcePayload.from_response(data)
        if payload.checkpoint is None:
            raise MalformedResponseError("Response carries no block number")

        logger.debug(
            "Subgraph response: %d records at block %d",
            payload.record_count(),
            payload.checkpoint,
        )
        return payload
