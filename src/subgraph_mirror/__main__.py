"""
Subgraph mirror CLI entry point.

Mirror a subgraph into memory and serve it over HTTP.

Usage::

    python -m subgraph_mirror --subgraph-url https://api.example/subgraphs/name/app
    python -m subgraph_mirror --port 8080 --interval 15 --state-file ./state/tracker.json
    SUBGRAPH_URL=https://api.example/subgraphs/name/app python -m subgraph_mirror --no-api

Options:
    --subgraph-url   GraphQL endpoint (default: $SUBGRAPH_URL)
    --host           Address the API binds to (default: 0.0.0.0)
    --port           Port the API listens on (default: $PORT or 3001)
    --interval       Seconds between incremental syncs (default: 30)
    --page-size      Rows per collection in the full load (default: 1000)
    --state-file     Path to persist the tracker checkpoint across restarts
    --no-api         Run the sync loop without the HTTP API
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from subgraph_mirror.api import DEFAULT_PORT, ApiServerConfig
from subgraph_mirror.node import Node, NodeConfig
from subgraph_mirror.source import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, SourceConfig
from subgraph_mirror.sync import DEFAULT_UPDATE_INTERVAL

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"{timestamp} {levelname} {name}: {message}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure the root logger with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO.
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _page_size(value: str) -> int:
    size = int(value)
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise argparse.ArgumentTypeError(f"page size must be between 1 and {MAX_PAGE_SIZE}")
    return size


def _interval(value: str) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError("interval must be positive")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser. Environment variables supply defaults."""
    parser = argparse.ArgumentParser(
        prog="subgraph_mirror",
        description="Subgraph mirror",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--subgraph-url",
        default=os.environ.get("SUBGRAPH_URL"),
        help="GraphQL endpoint of the subgraph (default: $SUBGRAPH_URL)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Address the API binds to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", DEFAULT_PORT)),
        help=f"Port the API listens on (default: $PORT or {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--interval",
        type=_interval,
        default=DEFAULT_UPDATE_INTERVAL,
        help=f"Seconds between incremental syncs (default: {DEFAULT_UPDATE_INTERVAL:g})",
    )
    parser.add_argument(
        "--page-size",
        type=_page_size,
        default=DEFAULT_PAGE_SIZE,
        help=f"Rows per collection in the full load (default: {DEFAULT_PAGE_SIZE})",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        default=None,
        help="Path to persist the tracker checkpoint across restarts",
    )
    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Run the sync loop without the HTTP API",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> NodeConfig:
    """Translate parsed arguments into a node configuration."""
    return NodeConfig(
        source=SourceConfig(url=args.subgraph_url),
        api_config=ApiServerConfig(host=args.host, port=args.port, enabled=not args.no_api),
        interval=args.interval,
        page_size=args.page_size,
        state_file=args.state_file,
    )


async def run_node(config: NodeConfig) -> None:
    """Build a node from configuration and run it until shutdown."""
    logger.info("Mirroring %s", config.source.url)
    node = Node.from_config(config)
    await node.run()


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subgraph_url:
        parser.error("a subgraph URL is required (--subgraph-url or $SUBGRAPH_URL)")

    setup_logging(args.verbose, args.no_color)

    try:
        asyncio.run(run_node(config_from_args(args)))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except RuntimeError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
