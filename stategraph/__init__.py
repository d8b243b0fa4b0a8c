"""
stategraph: path, loop and partition analysis for rule-driven state machines.

Main interface: enumerate_paths(), detect_loops(), partition(), extract_subgraph()
"""

__version__ = "0.1.0"

from .core import (
    CancellationToken,
    PathMode,
    StateGraph,
    detect_loops,
    enumerate_paths,
    extract_subgraph,
    load_graph,
    partition,
)

__all__ = [
    "CancellationToken",
    "PathMode",
    "StateGraph",
    "detect_loops",
    "enumerate_paths",
    "extract_subgraph",
    "load_graph",
    "partition",
]
