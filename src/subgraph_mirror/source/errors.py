"""
Failures raised by the remote source client.

Everything below `SourceError` except `FetchFailedError` is transient and
retried inside the client. `FetchFailedError` is what callers see once the
retry budget is spent.
"""

from __future__ import annotations


class SourceError(Exception):
    """Base class for subgraph query failures."""


class TransportError(SourceError):
    """Network failure, timeout, or non-success HTTP status."""


class RemoteQueryError(SourceError):
    """The subgraph answered with an inline GraphQL `errors` array."""


class MalformedResponseError(SourceError):
    """
    The response cannot be used.

    Raised for non-JSON bodies, a missing `data` object, or a missing or
    unparseable block number. An empty entity list is not malformed.
    """


class FetchFailedError(SourceError):
    """
    Terminal failure after all attempts were exhausted.

    The last underlying failure is chained as `__cause__`.
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        """Record the attempt count and the last failure."""
        super().__init__(f"Subgraph query failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
