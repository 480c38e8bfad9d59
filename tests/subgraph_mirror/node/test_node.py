"""Tests for the mirror node orchestrator."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from subgraph_mirror.api import ApiServerConfig
from subgraph_mirror.node import Node, NodeConfig
from subgraph_mirror.source import SourceConfig
from tests.subgraph_mirror.helpers import FakeClock, graphql_body

SUBGRAPH_URL = "http://subgraph.test/graphql"


def answering(checkpoint: int, **fields: object) -> httpx.MockTransport:
    """Transport answering every query with the same body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=graphql_body(checkpoint, **fields))

    return httpx.MockTransport(handler)


def failing() -> httpx.MockTransport:
    """Transport answering every query with a server error."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    return httpx.MockTransport(handler)


def make_config(transport: httpx.MockTransport, **overrides: object) -> NodeConfig:
    """Node configuration against a mock subgraph."""
    return NodeConfig(
        source=SourceConfig(url=SUBGRAPH_URL, retry_delay=0.0),
        transport=transport,
        **overrides,  # type: ignore[arg-type]
    )


async def wait_until_ready(node: Node) -> None:
    """Poll until the node's cache has loaded."""
    for _ in range(200):
        if node.store.is_ready():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("cache never became ready")


class TestFromConfig:
    """Tests for node wiring."""

    def test_components_share_state(self) -> None:
        """The driver works on the node's own tracker and cache."""
        clock = FakeClock()
        node = Node.from_config(
            make_config(answering(1), interval=5.0, page_size=50, time_fn=clock)
        )

        assert node.driver.tracker is node.tracker
        assert node.driver.store is node.store
        assert node.driver.source is node.client
        assert node.driver.interval == 5.0
        assert node.driver.page_size == 50
        assert node.store.time_fn is clock

    def test_api_server_optional(self) -> None:
        """No API configuration, or a disabled one, means no server."""
        assert Node.from_config(make_config(answering(1))).api_server is None

        disabled = make_config(answering(1), api_config=ApiServerConfig(enabled=False))
        assert Node.from_config(disabled).api_server is None

        enabled = make_config(answering(1), api_config=ApiServerConfig(port=15130))
        node = Node.from_config(enabled)
        assert node.api_server is not None
        assert node.api_server.driver is node.driver


class TestRun:
    """Tests for the node lifecycle."""

    async def test_runs_until_stopped(self, tmp_path: Path) -> None:
        """The node loads, schedules syncs and exports its checkpoint on stop."""
        state_file = tmp_path / "tracker.json"
        node = Node.from_config(
            make_config(answering(100, sales=[{"id": "s"}]), state_file=state_file)
        )

        task = asyncio.create_task(node.run(install_signal_handlers=False))
        await wait_until_ready(node)

        assert node.is_running
        assert node.driver.scheduled
        assert node.store.count("sales") == 1
        assert node.tracker.current() == 100

        node.stop()
        await task

        assert not node.is_running
        assert not node.driver.scheduled
        assert json.loads(state_file.read_text())["checkpoint"] == 100

    async def test_serves_api(self) -> None:
        """The API answers once the node is up."""
        node = Node.from_config(
            make_config(
                answering(100, sales=[{"id": "s"}]),
                api_config=ApiServerConfig(host="127.0.0.1", port=15131),
            )
        )

        task = asyncio.create_task(node.run(install_signal_handlers=False))
        await wait_until_ready(node)
        await asyncio.sleep(0.2)

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get("http://127.0.0.1:15131/api/entities/sales")

            assert response.status_code == 200
            assert response.json()["data"] == [{"id": "s"}]
        finally:
            node.stop()
            await task

    async def test_initial_load_failure_aborts(self, tmp_path: Path) -> None:
        """Startup fails loudly and writes no state."""
        state_file = tmp_path / "tracker.json"
        node = Node.from_config(make_config(failing(), state_file=state_file))

        with pytest.raises(RuntimeError, match="Initial cache load failed"):
            await node.run(install_signal_handlers=False)

        assert not state_file.exists()
        assert not node.driver.scheduled

    async def test_snapshot_overrides_saved_checkpoint(self, tmp_path: Path) -> None:
        """A saved checkpoint ahead of the snapshot is replaced by it."""
        state_file = tmp_path / "tracker.json"
        state_file.write_text(json.dumps({"checkpoint": 500, "lastUpdated": 1.0}))
        node = Node.from_config(
            make_config(answering(100, sales=[{"id": "s"}]), state_file=state_file)
        )

        task = asyncio.create_task(node.run(install_signal_handlers=False))
        await wait_until_ready(node)

        assert node.tracker.current() == 100

        node.stop()
        await task
