"""Token price handlers."""

from __future__ import annotations

from aiohttp import web

from subgraph_mirror.cache.kinds import SERIES_KINDS
from subgraph_mirror.cache.series import DEFAULT_SERIES_LIMIT

from .common import failure, not_ready, query_int, ready_driver, success


async def handle_price(request: web.Request) -> web.Response:
    """Return the latest USD price of a token, or 404 if no bucket has one."""
    driver = ready_driver(request)
    if driver is None:
        return not_ready()

    token_id = request.match_info["id"]
    quote = driver.store.get_latest_price(token_id)
    if quote is None:
        return failure(404, f"No price data for token {token_id}")
    return success(quote)


async def handle_history(request: web.Request) -> web.Response:
    """
    Return a token's price series, newest first.

    Query parameters:
        - granularity: `minute`, `hour` (default) or `day`.
        - limit: Maximum buckets returned (default 168).
    """
    driver = ready_driver(request)
    if driver is None:
        return not_ready()

    granularity = request.query.get("granularity", "hour")
    if granularity not in SERIES_KINDS:
        return failure(400, f"Unknown granularity: {granularity}")

    limit = query_int(request, "limit", DEFAULT_SERIES_LIMIT)
    series = driver.store.get_historical_series(request.match_info["id"], granularity, limit)
    return success(series)
