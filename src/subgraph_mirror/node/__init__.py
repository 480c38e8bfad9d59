"""Node orchestrator for the subgraph mirror."""

from .node import Node, NodeConfig

__all__ = ["Node", "NodeConfig"]
