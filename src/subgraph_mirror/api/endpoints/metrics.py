"""Prometheus scrape handler."""

from aiohttp import web

from subgraph_mirror.metrics import generate_metrics

from .common import get_driver

CONTENT_TYPE = "text/plain; version=0.0.4"
"""Prometheus text exposition format."""


async def handle(request: web.Request) -> web.Response:
    """
    Render every mirror metric.

    State gauges are refreshed from the driver first, so a scrape between
    syncs still reports the live checkpoint and cache size.
    """
    driver = get_driver(request)
    if driver is not None:
        driver.publish_gauges()

    return web.Response(body=generate_metrics(), content_type=CONTENT_TYPE, charset="utf-8")
