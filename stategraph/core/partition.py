"""Graph partitioning.

Natural structure first: if the undirected view has several connected
components, those are the partitions. Otherwise a greedy degree-seeded split
grows k groups around the best-connected states. Heuristic only; no minimum
cut is attempted.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence, Set, Tuple

from .. import config
from .errors import InvalidPartitionCount
from .models import StateGraph


@dataclass(frozen=True)
class Partition:
    """An ordered, non-empty group of state ids. `index` is 1-based."""

    index: int
    state_ids: Tuple[str, ...]

    @property
    def id(self) -> str:
        return f"partition-{self.index}"

    @property
    def name(self) -> str:
        return f"Subgraph {self.index}"

    def as_set(self) -> FrozenSet[str]:
        return frozenset(self.state_ids)

    def __contains__(self, state_id: object) -> bool:
        return state_id in self.state_ids

    def __iter__(self) -> Iterator[str]:
        return iter(self.state_ids)

    def __len__(self) -> int:
        return len(self.state_ids)


def _to_partitions(groups: Iterable[Sequence[str]]) -> List[Partition]:
    return [Partition(index=i + 1, state_ids=tuple(g)) for i, g in enumerate(g for g in groups if g)]


def undirected_adjacency(graph: StateGraph) -> Dict[str, List[str]]:
    """Every rule links its source and target both ways. Dangling targets are ignored."""
    adj: Dict[str, List[str]] = {s.id: [] for s in graph.states}
    for s in graph.states:
        for rule in s.rules:
            if rule.target_id not in adj:
                continue
            adj[s.id].append(rule.target_id)
            adj[rule.target_id].append(s.id)
    return adj


def connected_components(graph: StateGraph) -> List[List[str]]:
    """Connected components of the undirected view, via BFS, in authoring order."""
    adj = undirected_adjacency(graph)
    seen: Set[str] = set()
    components: List[List[str]] = []

    for s in graph.states:
        if s.id in seen:
            continue
        component: List[str] = []
        queue: deque[str] = deque([s.id])
        seen.add(s.id)
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbor in adj[current]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        components.append(component)

    return components


def state_degrees(graph: StateGraph) -> Dict[str, int]:
    """Outgoing + incoming rule count per state; multi-edges count individually."""
    return {s.id: len(s.rules) + len(graph.get_rules_to(s.id)) for s in graph.states}


def clamp_partition_count(k: int, state_count: int, strict: bool = False) -> int:
    """Bound k to 2..state_count; with strict=True an out-of-range k raises instead."""
    k = int(k)
    if strict and not 2 <= k <= state_count:
        raise InvalidPartitionCount(k, state_count)
    return max(2, min(k, state_count))


class GraphPartitioner:
    def __init__(self, graph: StateGraph):
        self.graph = graph

    def partition(self, k: int = config.DEFAULT_TARGET_PARTITIONS) -> List[Partition]:
        graph = self.graph
        if len(graph) == 0:
            return []
        if len(graph) == 1:
            return _to_partitions([graph.state_ids])

        components = connected_components(graph)
        if len(components) > 1:
            return _to_partitions(components)

        k = clamp_partition_count(k, len(graph))
        degrees = state_degrees(graph)
        # sorted() is stable: equal degrees keep authoring order
        ranked = sorted(graph.state_ids, key=lambda sid: -degrees[sid])

        groups: List[List[str]] = [[sid] for sid in ranked[:k]]
        owner: Dict[str, int] = {sid: i for i, sid in enumerate(ranked[:k])}

        for sid in ranked[k:]:
            scores = self._connection_scores(sid, owner, len(groups))
            best = 0
            for i in range(1, len(scores)):
                if scores[i] > scores[best]:
                    best = i
            groups[best].append(sid)
            owner[sid] = best

        return _to_partitions(groups)

    def _connection_scores(self, state_id: str, owner: Dict[str, int], count: int) -> List[int]:
        """Rule edges, either direction, between a state and each group's current members."""
        scores = [0] * count
        state = self.graph.get_state(state_id)
        if state is None:
            return scores
        for rule in state.rules:
            i = owner.get(rule.target_id)
            if i is not None:
                scores[i] += 1
        for source, _rule in self.graph.get_rules_to(state_id):
            i = owner.get(source.id)
            if i is not None:
                scores[i] += 1
        return scores


def partition(graph: StateGraph, k: int = config.DEFAULT_TARGET_PARTITIONS) -> List[Partition]:
    return GraphPartitioner(graph).partition(k)


def validate_partitions(graph: StateGraph, partitions: Sequence[Partition]) -> bool:
    """True when partitions are non-empty, pairwise disjoint and cover every state."""
    seen: Set[str] = set()
    for p in partitions:
        if not p.state_ids:
            return False
        for sid in p.state_ids:
            if sid in seen or sid not in graph:
                return False
            seen.add(sid)
    return len(seen) == len(graph)


def merge_partitions(partitions: Sequence[Partition], index: int = 1) -> Partition:
    """Union of several partitions, first-seen order, duplicates dropped."""
    merged: Dict[str, None] = {}
    for p in partitions:
        for sid in p.state_ids:
            merged.setdefault(sid, None)
    return Partition(index=index, state_ids=tuple(merged))


def split_partition(graph: StateGraph, part: Partition, k: int = 2) -> List[Partition]:
    """Re-partition the graph induced by one partition's states."""
    return partition(graph.subset(part.state_ids), k)
