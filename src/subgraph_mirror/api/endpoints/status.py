"""Status and cache statistics handlers."""

from __future__ import annotations

from aiohttp import web

from .common import failure, get_driver, success


async def handle(request: web.Request) -> web.Response:
    """Return the aggregate driver status. Available before the cache is ready."""
    driver = get_driver(request)
    if driver is None:
        return failure(503, "Sync driver not running")
    return success(driver.status())


async def handle_cache_stats(request: web.Request) -> web.Response:
    """Return cache metadata and per-kind counts. Available before the cache is ready."""
    driver = get_driver(request)
    if driver is None:
        return failure(503, "Sync driver not running")
    return success(driver.store.stats())
