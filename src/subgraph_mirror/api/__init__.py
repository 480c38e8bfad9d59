"""
API server module for the subgraph mirror.

Serves the cache, driver status and Prometheus metrics over HTTP.
"""

from .server import DEFAULT_PORT, ApiServer, ApiServerConfig, create_app

__all__ = [
    "DEFAULT_PORT",
    "ApiServer",
    "ApiServerConfig",
    "create_app",
]
