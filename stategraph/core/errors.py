"""Exceptions raised by the stategraph core."""

from __future__ import annotations

from typing import Any, List, Optional


class StateGraphError(Exception):
    """Base class for stategraph errors."""


class StateNotFoundError(StateGraphError, KeyError):
    def __init__(self, state_id: str):
        super().__init__(state_id)
        self.state_id = state_id

    def __str__(self) -> str:
        return f"State not found: {self.state_id}"


class DuplicateStateError(StateGraphError, ValueError):
    def __init__(self, state_id: str):
        super().__init__(f"Duplicate state id: {state_id}")
        self.state_id = state_id


class InvalidPartitionCount(StateGraphError, ValueError):
    """Raised by `clamp_partition_count(strict=True)` for an out-of-range k."""

    def __init__(self, requested: int, state_count: int):
        super().__init__(f"Cannot split {state_count} states into {requested} partitions")
        self.requested = requested
        self.state_count = state_count


class GraphDocumentError(StateGraphError, ValueError):
    """Malformed graph document."""


class SearchCancelled(StateGraphError):
    """
    A search observed its cancellation token at a checkpoint.

    `results` holds everything emitted before cancellation; it stays valid.
    """

    def __init__(self, results: Optional[List[Any]] = None, expanded: int = 0):
        super().__init__("Search cancelled")
        self.results: List[Any] = list(results or [])
        self.expanded = expanded
