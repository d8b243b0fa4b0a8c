"""Subgraph extraction with boundary metadata.

A Subgraph keeps its member states and their rules verbatim, and records
every rule crossing the partition edge so the piece can be exported alone
without losing connectivity context.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from .. import config
from .document import state_to_dict
from .models import KnownState, Rule, State, StateGraph, StateRef
from .partition import Partition, partition


@dataclass(frozen=True)
class BoundaryRule:
    """One rule crossing a partition edge."""

    source: KnownState
    rule: Rule
    target: StateRef


@dataclass(frozen=True)
class Subgraph:
    partition_id: str
    name: str
    states: Tuple[State, ...]
    outgoing_boundary: Tuple[StateRef, ...] = ()
    incoming_boundary: Tuple[KnownState, ...] = ()
    outgoing_rules: Tuple[BoundaryRule, ...] = ()
    incoming_rules: Tuple[BoundaryRule, ...] = ()

    @property
    def state_ids(self) -> List[str]:
        return [s.id for s in self.states]

    @property
    def has_boundaries(self) -> bool:
        return bool(self.outgoing_boundary or self.incoming_boundary)

    @property
    def boundary_rules(self) -> Tuple[BoundaryRule, ...]:
        return self.outgoing_rules + self.incoming_rules

    @property
    def entry_points(self) -> List[StateRef]:
        """Member states targeted by rules from outside, first-seen order."""
        return _unique_refs(br.target for br in self.incoming_rules)

    @property
    def exit_points(self) -> List[KnownState]:
        """Member states owning at least one rule that leaves the partition."""
        return _unique_refs(br.source for br in self.outgoing_rules)

    def to_graph(self) -> StateGraph:
        return StateGraph(states=self.states)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.partition_id,
            "name": self.name,
            "states": [state_to_dict(s) for s in self.states],
            "outgoing_boundary": [{"id": r.id, "name": r.name, "resolved": r.resolved} for r in self.outgoing_boundary],
            "incoming_boundary": [{"id": r.id, "name": r.name} for r in self.incoming_boundary],
            "outgoing_rules": [
                {
                    "source_id": br.source.id,
                    "source": br.source.name,
                    "condition": str(br.rule.condition),
                    "target_id": br.target.id,
                    "target": br.target.name,
                }
                for br in self.outgoing_rules
            ],
        }


def _unique_refs(refs: Iterable[Any]) -> List[Any]:
    seen: Set[str] = set()
    out = []
    for ref in refs:
        if ref.id in seen:
            continue
        seen.add(ref.id)
        out.append(ref)
    return out


def extract_subgraph(graph: StateGraph, part: Union[Partition, Iterable[str]]) -> Subgraph:
    """
    Build the isolated subgraph for one partition.

    Pure function of its inputs: the graph is only read, and every returned
    object is new. Ids in `part` with no state in the graph are ignored.
    """
    if isinstance(part, Partition):
        member_ids = list(part.state_ids)
        partition_id, name = part.id, part.name
    else:
        member_ids = list(part)
        partition_id, name = "partition", "Subgraph"

    members: Set[str] = {sid for sid in member_ids if sid in graph}
    states: List[State] = []
    outgoing_rules: List[BoundaryRule] = []

    for sid in member_ids:
        state = graph.get_state(sid)
        if state is None:
            continue
        states.append(replace(state, rules=tuple(state.rules)))
        source = KnownState(id=state.id, name=state.name)
        for rule in state.rules:
            if rule.target_id not in members:
                outgoing_rules.append(BoundaryRule(source=source, rule=rule, target=graph.resolve(rule.target_id)))

    incoming_rules: List[BoundaryRule] = []
    for state in graph.states:
        if state.id in members:
            continue
        for rule in state.rules:
            if rule.target_id in members:
                incoming_rules.append(
                    BoundaryRule(
                        source=KnownState(id=state.id, name=state.name),
                        rule=rule,
                        target=graph.resolve(rule.target_id),
                    )
                )

    return Subgraph(
        partition_id=partition_id,
        name=name,
        states=tuple(states),
        outgoing_boundary=tuple(_unique_refs(br.target for br in outgoing_rules)),
        incoming_boundary=tuple(_unique_refs(br.source for br in incoming_rules)),
        outgoing_rules=tuple(outgoing_rules),
        incoming_rules=tuple(incoming_rules),
    )


def split_graph(
    graph: StateGraph,
    k: int = config.DEFAULT_TARGET_PARTITIONS,
    max_workers: Optional[int] = None,
) -> List[Subgraph]:
    """Partition the graph and extract every subgraph, optionally on a thread pool."""
    parts = partition(graph, k)
    if not max_workers or max_workers <= 1 or len(parts) <= 1:
        return [extract_subgraph(graph, p) for p in parts]

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda p: extract_subgraph(graph, p), parts))
