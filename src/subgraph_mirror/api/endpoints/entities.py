"""Entity collection handlers."""

from __future__ import annotations

from aiohttp import web

from .common import failure, not_ready, query_flag, query_int, ready_driver, success

DEFAULT_RECENT_LIMIT = 10
"""Records returned by `?recent=true` without an explicit limit."""


async def handle_collection(request: web.Request) -> web.Response:
    """
    Return every record of a kind, or the newest ones.

    Query parameters:
        - recent: `true` to order newest first (by timestamp, then createdAt).
        - limit: Maximum records returned.

    Status Codes:
        200 OK: Records returned (singleton kinds return one record or null).
        404 Not Found: Unknown entity kind.
        503 Service Unavailable: Cache not ready.
    """
    driver = ready_driver(request)
    if driver is None:
        return not_ready()

    kind = request.match_info["kind"]
    if kind not in driver.store.kinds():
        return failure(404, f"Unknown entity kind: {kind}")

    if query_flag(request, "recent"):
        records = driver.store.get_recent(kind, query_int(request, "limit", DEFAULT_RECENT_LIMIT))
        return success(records)

    data = driver.store.get(kind)
    if isinstance(data, list) and "limit" in request.query:
        data = data[: query_int(request, "limit", len(data))]
    return success(data)


async def handle_by_id(request: web.Request) -> web.Response:
    """
    Return one record by id.

    Status Codes:
        200 OK: Record found.
        404 Not Found: Unknown kind or id.
        503 Service Unavailable: Cache not ready.
    """
    driver = ready_driver(request)
    if driver is None:
        return not_ready()

    kind = request.match_info["kind"]
    record_id = request.match_info["id"]
    record = driver.store.get_by_id(kind, record_id)
    if record is None:
        return failure(404, f"{kind} {record_id} not found")
    return success(record)
