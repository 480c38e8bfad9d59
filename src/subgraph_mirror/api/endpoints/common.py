"""Shared plumbing for endpoint handlers."""

from __future__ import annotations

import logging
from time import time as wall_time
from typing import Any

from aiohttp import web

from subgraph_mirror.sync import SyncDriver
from subgraph_mirror.types import CamelModel

logger = logging.getLogger(__name__)

DRIVER_KEY = web.AppKey("driver", SyncDriver)
"""Application key holding the sync driver."""


def _jsonable(data: Any) -> Any:
    if isinstance(data, CamelModel):
        return data.to_wire()
    if isinstance(data, list):
        return [_jsonable(item) for item in data]
    return data


def success(data: Any, message: str = "Success", status: int = 200) -> web.Response:
    """Wrap a payload in the standard success envelope."""
    return web.json_response(
        {
            "success": True,
            "message": message,
            "data": _jsonable(data),
            "timestamp": wall_time(),
        },
        status=status,
    )


def failure(status: int, message: str, details: str | None = None) -> web.Response:
    """Wrap an error in the standard failure envelope."""
    logger.warning("API error %d: %s", status, message)
    return web.json_response(
        {
            "success": False,
            "error": message,
            "details": details,
            "timestamp": wall_time(),
        },
        status=status,
    )


def not_ready() -> web.Response:
    """Answer a read while no full load has completed."""
    return web.json_response(
        {
            "error": "Service Unavailable",
            "message": "Cache is not ready yet, please try again in a few seconds",
            "ready": False,
        },
        status=503,
    )


def get_driver(request: web.Request) -> SyncDriver | None:
    """Return the sync driver bound to the application, if any."""
    return request.app.get(DRIVER_KEY)


def ready_driver(request: web.Request) -> SyncDriver | None:
    """Return the driver only if its cache can serve reads."""
    driver = get_driver(request)
    if driver is None or not driver.store.is_ready():
        return None
    return driver


def query_int(request: web.Request, name: str, default: int) -> int:
    """
    Read a non-negative integer query parameter.

    Raises:
        web.HTTPBadRequest: If the parameter is present but not an integer.
    """
    raw = request.query.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise web.HTTPBadRequest(reason=f"Query parameter {name} must be an integer") from None
    if value < 0:
        raise web.HTTPBadRequest(reason=f"Query parameter {name} must not be negative")
    return value


def query_flag(request: web.Request, name: str) -> bool:
    """Read a boolean query parameter (`true`, `1` or `yes`)."""
    return request.query.get(name, "").lower() in {"true", "1", "yes"}
