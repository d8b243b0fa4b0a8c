"""Core domain types and algorithms."""

from .document import graph_from_dict, graph_to_dict, load_graph, save_graph
from .errors import (
    DuplicateStateError,
    GraphDocumentError,
    InvalidPartitionCount,
    SearchCancelled,
    StateGraphError,
    StateNotFoundError,
)
from .loops import Loop, LoopDetector, detect_loops, unique_loops
from .models import (
    UNKNOWN_STATE_NAME,
    Condition,
    KnownState,
    Rule,
    State,
    StateGraph,
    StateRef,
    UnknownState,
)
from .partition import (
    GraphPartitioner,
    Partition,
    connected_components,
    merge_partitions,
    partition,
    split_partition,
    state_degrees,
    validate_partitions,
)
from .pathfinding import PathEnumerator, PathMode, StatePath, enumerate_paths, is_reachable, shortest_path
from .search import CancellationToken, SearchController, SearchReport
from .subgraph import BoundaryRule, Subgraph, extract_subgraph, split_graph

__all__ = [
    # models
    "UNKNOWN_STATE_NAME",
    "Condition",
    "KnownState",
    "Rule",
    "State",
    "StateGraph",
    "StateRef",
    "UnknownState",
    # errors
    "DuplicateStateError",
    "GraphDocumentError",
    "InvalidPartitionCount",
    "SearchCancelled",
    "StateGraphError",
    "StateNotFoundError",
    # search
    "CancellationToken",
    "SearchController",
    "SearchReport",
    "PathEnumerator",
    "PathMode",
    "StatePath",
    "enumerate_paths",
    "is_reachable",
    "shortest_path",
    "Loop",
    "LoopDetector",
    "detect_loops",
    "unique_loops",
    # partitioning
    "GraphPartitioner",
    "Partition",
    "connected_components",
    "merge_partitions",
    "partition",
    "split_partition",
    "state_degrees",
    "validate_partitions",
    "BoundaryRule",
    "Subgraph",
    "extract_subgraph",
    "split_graph",
    # documents
    "graph_from_dict",
    "graph_to_dict",
    "load_graph",
    "save_graph",
]
