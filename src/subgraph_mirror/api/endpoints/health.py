"""Health endpoint handler."""

from __future__ import annotations

from aiohttp import web

from .common import get_driver


async def handle(request: web.Request) -> web.Response:
    """
    Handle health check request.

    Response: the health report (`healthy`, `issues`, `status`, `timestamp`).

    Status Codes:
        200 OK: Every health check passed.
        503 Service Unavailable: At least one check failed, or no driver.
    """
    driver = get_driver(request)
    if driver is None:
        return web.json_response(
            {"healthy": False, "issues": ["Sync driver not running"]},
            status=503,
        )

    report = driver.health_report()
    return web.json_response(
        report.to_wire(),
        status=200 if report.healthy else 503,
    )
