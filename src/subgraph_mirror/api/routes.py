"""API route definitions."""

from collections.abc import Awaitable, Callable

from aiohttp import web

from .endpoints import admin, entities, health, metrics, status, tokens

Handler = Callable[[web.Request], Awaitable[web.Response]]

ROUTES: list[tuple[str, str, Handler]] = [
    ("GET", "/health", health.handle),
    ("GET", "/status", status.handle),
    ("GET", "/metrics", metrics.handle),
    ("GET", "/api/entities/{kind}", entities.handle_collection),
    ("GET", "/api/entities/{kind}/{id}", entities.handle_by_id),
    ("GET", "/api/tokens/{id}/price", tokens.handle_price),
    ("GET", "/api/tokens/{id}/history", tokens.handle_history),
    ("GET", "/api/stats/cache", status.handle_cache_stats),
    ("POST", "/api/admin/refresh", admin.handle_refresh),
    ("POST", "/api/admin/update", admin.handle_update),
]
"""All API routes as (method, path, handler)."""
