"""Tests for the command line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from subgraph_mirror.__main__ import build_parser, config_from_args, main
from subgraph_mirror.api import DEFAULT_PORT
from subgraph_mirror.source import DEFAULT_PAGE_SIZE
from subgraph_mirror.sync import DEFAULT_UPDATE_INTERVAL


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without flags or environment the standard defaults apply."""
        monkeypatch.delenv("SUBGRAPH_URL", raising=False)
        monkeypatch.delenv("PORT", raising=False)

        args = build_parser().parse_args([])

        assert args.subgraph_url is None
        assert args.host == "0.0.0.0"
        assert args.port == DEFAULT_PORT
        assert args.interval == DEFAULT_UPDATE_INTERVAL
        assert args.page_size == DEFAULT_PAGE_SIZE
        assert args.state_file is None
        assert not args.no_api

    def test_environment_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SUBGRAPH_URL and PORT seed the defaults."""
        monkeypatch.setenv("SUBGRAPH_URL", "http://env.test/graphql")
        monkeypatch.setenv("PORT", "8080")

        args = build_parser().parse_args([])

        assert args.subgraph_url == "http://env.test/graphql"
        assert args.port == 8080

    def test_flags_override_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Explicit flags win."""
        monkeypatch.setenv("SUBGRAPH_URL", "http://env.test/graphql")

        args = build_parser().parse_args(
            ["--subgraph-url", "http://flag.test/graphql", "--interval", "2.5", "--page-size", "10"]
        )

        assert args.subgraph_url == "http://flag.test/graphql"
        assert args.interval == 2.5
        assert args.page_size == 10

    @pytest.mark.parametrize(
        "argv",
        [
            ["--interval", "0"],
            ["--interval", "-3"],
            ["--page-size", "0"],
            ["--page-size", "5001"],
        ],
    )
    def test_rejects_out_of_range(self, argv: list[str]) -> None:
        """Non-positive intervals and oversized pages are rejected."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(argv)


class TestConfigFromArgs:
    """Tests for translating arguments into node configuration."""

    def test_builds_node_config(self, tmp_path: Path) -> None:
        """Every flag lands in the configuration."""
        state_file = tmp_path / "state.json"
        args = build_parser().parse_args(
            [
                "--subgraph-url",
                "http://flag.test/graphql",
                "--host",
                "127.0.0.1",
                "--port",
                "9000",
                "--state-file",
                str(state_file),
            ]
        )

        config = config_from_args(args)

        assert config.source.url == "http://flag.test/graphql"
        assert config.api_config is not None
        assert config.api_config.host == "127.0.0.1"
        assert config.api_config.port == 9000
        assert config.api_config.enabled
        assert config.state_file == state_file

    def test_no_api(self) -> None:
        """--no-api disables the server."""
        args = build_parser().parse_args(["--subgraph-url", "http://x.test", "--no-api"])

        config = config_from_args(args)

        assert config.api_config is not None
        assert not config.api_config.enabled


class TestMain:
    """Tests for the entry point."""

    def test_requires_subgraph_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Running without an endpoint is a usage error."""
        monkeypatch.delenv("SUBGRAPH_URL", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
