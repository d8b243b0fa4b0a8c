"""Simple-path enumeration over a StateGraph.

Depth-first over an explicit work stack. A state already on the current path
is never a next hop, so every emitted path is simple and cycles cannot
recurse forever (cycles are LoopDetector's business).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from .. import config
from .debuglog import debug_log
from .errors import SearchCancelled, StateNotFoundError
from .models import Rule, State, StateGraph
from .search import CancelPredicate, LimitReached, ProgressCallback, SearchController, SearchReport


class PathMode(str, Enum):
    """Termination condition for a path search."""

    TO_TERMINAL = "to-terminal"
    TO_TARGET = "to-target"
    # The start state itself satisfies the waypoint when they are the same state
    THROUGH_WAYPOINT = "through-waypoint-to-target"


@dataclass(frozen=True)
class StatePath:
    """
    A simple path.

    rules[i] leads from states[i] to states[i + 1]; rejected[i] holds the
    rules stored on states[i] before rules[i], in authoring order.
    """

    states: Tuple[State, ...]
    rules: Tuple[Rule, ...] = ()
    rejected: Tuple[Tuple[Rule, ...], ...] = ()

    @property
    def state_ids(self) -> List[str]:
        return [s.id for s in self.states]

    @property
    def names(self) -> List[str]:
        return [s.name for s in self.states]

    def __len__(self) -> int:
        return len(self.states)

    def to_dict(self) -> Dict[str, object]:
        return {
            "states": self.names,
            "state_ids": self.state_ids,
            "rules": [str(r.condition) for r in self.rules],
            "rejected": [[str(r.condition) for r in step] for step in self.rejected],
        }


@dataclass
class _Frame:
    state: State
    waypoint_seen: bool
    next_index: int = 0


class PathEnumerator:
    """
    Streams every simple path from a start state that satisfies a PathMode.

    Usage:
        token = CancellationToken()
        report = PathEnumerator(graph).run("a", on_path_found=print, is_cancelled=token.is_cancelled)
    """

    def __init__(self, graph: StateGraph):
        self.graph = graph

    def run(
        self,
        start_id: str,
        mode: PathMode = PathMode.TO_TERMINAL,
        target_id: Optional[str] = None,
        waypoint_id: Optional[str] = None,
        on_path_found: Optional[Callable[[StatePath], object]] = None,
        is_cancelled: Optional[CancelPredicate] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_results: Optional[int] = None,
    ) -> SearchReport[StatePath]:
        mode = PathMode(mode)
        if mode != PathMode.TO_TERMINAL and not target_id:
            raise ValueError(f"Mode {mode.value} requires a target state")
        if mode == PathMode.THROUGH_WAYPOINT and not waypoint_id:
            raise ValueError(f"Mode {mode.value} requires a waypoint state")

        start = self.graph.get_state(start_id)
        if start is None:
            raise StateNotFoundError(start_id)

        ctrl: SearchController[StatePath] = SearchController(
            on_result=on_path_found,
            is_cancelled=is_cancelled,
            on_progress=on_progress,
            max_results=max_results,
        )
        ctrl.start()
        debug_log({"event": "paths_start", "start": start_id, "mode": mode.value, "target": target_id})

        # Stale target/waypoint references simply match nothing
        if mode != PathMode.TO_TERMINAL and target_id not in self.graph:
            return ctrl.finish()
        if mode == PathMode.THROUGH_WAYPOINT and waypoint_id not in self.graph:
            return ctrl.finish()

        search = _PathSearch(self.graph, ctrl, mode, target_id, waypoint_id)
        truncated = False
        try:
            search.run(start)
        except LimitReached:
            truncated = True
        except SearchCancelled:
            debug_log({"event": "paths_cancelled", "found": len(ctrl.results), "expanded": ctrl.expanded})
            raise

        debug_log(
            {"event": "paths_done", "found": len(ctrl.results), "expanded": ctrl.expanded, "truncated": truncated}
        )
        return ctrl.finish(truncated=truncated)


class _PathSearch:
    def __init__(
        self,
        graph: StateGraph,
        ctrl: SearchController[StatePath],
        mode: PathMode,
        target_id: Optional[str],
        waypoint_id: Optional[str],
    ):
        self.graph = graph
        self.ctrl = ctrl
        self.mode = mode
        self.target_id = target_id
        self.waypoint_id = waypoint_id
        self.estimate = max(1, len(graph) * config.SEARCH_SIZE_MULTIPLIER)

        self.path: List[State] = []
        self.rules: List[Rule] = []
        self.rejected: List[Tuple[Rule, ...]] = []
        self.on_path: Set[str] = set()
        self.stack: List[_Frame] = []

    def run(self, start: State) -> None:
        self._visit(start, start.id == self.waypoint_id)

        while self.stack:
            frame = self.stack[-1]
            rules = frame.state.rules
            if frame.next_index >= len(rules):
                self.stack.pop()
                self._leave()
                continue

            i = frame.next_index
            frame.next_index += 1
            rule = rules[i]
            nxt = self.graph.get_state(rule.target_id)
            if nxt is None or nxt.id in self.on_path:
                continue

            self.rules.append(rule)
            self.rejected.append(rules[:i])
            self._visit(nxt, frame.waypoint_seen or nxt.id == self.waypoint_id)

    def _visit(self, state: State, waypoint_seen: bool) -> None:
        self.ctrl.checkpoint(min(self.ctrl.expanded / self.estimate, 0.99))
        self.path.append(state)
        self.on_path.add(state.id)

        if self.mode == PathMode.TO_TERMINAL:
            if state.is_terminal:
                self._emit()
        elif state.id == self.target_id:
            if self.mode == PathMode.TO_TARGET or waypoint_seen:
                self._emit()
            # No simple path can come back to the target, so stop here
            self._leave()
            return

        self.stack.append(_Frame(state=state, waypoint_seen=waypoint_seen))

    def _leave(self) -> None:
        state = self.path.pop()
        self.on_path.discard(state.id)
        if self.rules:
            self.rules.pop()
            self.rejected.pop()

    def _emit(self) -> None:
        self.ctrl.emit(StatePath(states=tuple(self.path), rules=tuple(self.rules), rejected=tuple(self.rejected)))


def enumerate_paths(
    graph: StateGraph,
    start_id: str,
    mode: PathMode = PathMode.TO_TERMINAL,
    target_id: Optional[str] = None,
    waypoint_id: Optional[str] = None,
    on_path_found: Optional[Callable[[StatePath], object]] = None,
    is_cancelled: Optional[CancelPredicate] = None,
    on_progress: Optional[ProgressCallback] = None,
    max_results: Optional[int] = None,
) -> SearchReport[StatePath]:
    return PathEnumerator(graph).run(
        start_id,
        mode=mode,
        target_id=target_id,
        waypoint_id=waypoint_id,
        on_path_found=on_path_found,
        is_cancelled=is_cancelled,
        on_progress=on_progress,
        max_results=max_results,
    )


def shortest_path(graph: StateGraph, start_id: str, target_id: str) -> Optional[StatePath]:
    """
    Fewest-rules path between two states (BFS, unweighted).

    Returns None when either state is unknown or the target is unreachable.
    """
    start = graph.get_state(start_id)
    if start is None or target_id not in graph:
        return None

    # state id -> (previous state id, rule index on previous state)
    parents: Dict[str, Optional[Tuple[str, int]]] = {start.id: None}
    queue: deque[State] = deque([start])

    while queue:
        current = queue.popleft()
        if current.id == target_id:
            break
        for i, rule in enumerate(current.rules):
            nxt = graph.get_state(rule.target_id)
            if nxt is None or nxt.id in parents:
                continue
            parents[nxt.id] = (current.id, i)
            queue.append(nxt)

    if target_id not in parents:
        return None

    states: List[State] = []
    rules: List[Rule] = []
    rejected: List[Tuple[Rule, ...]] = []
    node_id: Optional[str] = target_id
    while node_id is not None:
        state = graph.get_state(node_id)
        assert state is not None
        states.append(state)
        link = parents[node_id]
        if link is None:
            node_id = None
        else:
            prev_id, i = link
            prev = graph.get_state(prev_id)
            assert prev is not None
            rules.append(prev.rules[i])
            rejected.append(prev.rules[:i])
            node_id = prev_id

    states.reverse()
    rules.reverse()
    rejected.reverse()
    return StatePath(states=tuple(states), rules=tuple(rules), rejected=tuple(rejected))


def is_reachable(graph: StateGraph, start_id: str, target_id: str) -> bool:
    return shortest_path(graph, start_id, target_id) is not None
