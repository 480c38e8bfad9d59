"""Administrative triggers."""

from __future__ import annotations

import logging

from aiohttp import web

from .common import failure, get_driver, success

logger = logging.getLogger(__name__)


async def handle_refresh(request: web.Request) -> web.Response:
    """Drop the cache and reload it. 500 if the reload failed."""
    driver = get_driver(request)
    if driver is None:
        return failure(503, "Sync driver not running")

    logger.info("Force refresh requested via API")
    if await driver.force_refresh():
        return success(None, "Cache refresh completed successfully")
    return failure(500, "Cache refresh failed", driver.stats.last_error)


async def handle_update(request: web.Request) -> web.Response:
    """Run one incremental sync now. 500 if it was skipped or failed."""
    driver = get_driver(request)
    if driver is None:
        return failure(503, "Sync driver not running")

    logger.info("Manual update requested via API")
    if await driver.trigger_update():
        return success(
            {"checkpoint": driver.tracker.current()},
            "Manual update completed successfully",
        )
    return failure(500, "Manual update failed", driver.stats.last_error)
