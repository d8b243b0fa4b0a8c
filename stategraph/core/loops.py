"""Cycle detection over a StateGraph.

An independent depth-first search is rooted at every state, so a cycle is
reported once per root that reaches it. Callers that want one report per
logical cycle can pass the results through `unique_loops`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .debuglog import debug_log
from .errors import SearchCancelled
from .models import Rule, State, StateGraph
from .search import CancelPredicate, LimitReached, ProgressCallback, SearchController, SearchReport


@dataclass(frozen=True)
class Loop:
    """
    A cycle: states[0] -> ... -> states[-1] -> states[0].

    rules/rejected follow StatePath (one entry per step inside `states`);
    closing_rule is the first rule on states[-1] that targets states[0].
    """

    states: Tuple[State, ...]
    rules: Tuple[Rule, ...]
    rejected: Tuple[Tuple[Rule, ...], ...]
    closing_rule: Rule
    closing_rejected: Tuple[Rule, ...] = ()

    @property
    def start(self) -> State:
        return self.states[0]

    @property
    def closed_states(self) -> Tuple[State, ...]:
        return self.states + (self.states[0],)

    @property
    def all_rules(self) -> Tuple[Rule, ...]:
        return self.rules + (self.closing_rule,)

    @property
    def state_ids(self) -> List[str]:
        return [s.id for s in self.states]

    def __len__(self) -> int:
        return len(self.states)

    def canonical_key(self) -> Tuple[Tuple[str, str], ...]:
        """Rotation-invariant identity: (state id, rule id taken) around the cycle."""
        steps = [(s.id, r.id) for s, r in zip(self.states, self.all_rules)]
        best = min(range(len(steps)), key=lambda i: steps[i:] + steps[:i])
        return tuple(steps[best:] + steps[:best])

    def to_dict(self) -> Dict[str, object]:
        return {
            "states": [s.name for s in self.closed_states],
            "state_ids": [s.id for s in self.closed_states],
            "rules": [str(r.condition) for r in self.all_rules],
            "rejected": [[str(r.condition) for r in step] for step in self.rejected + (self.closing_rejected,)],
        }


def unique_loops(loops: Iterable[Loop]) -> List[Loop]:
    """Keep the first report of each logical cycle."""
    seen: Set[Tuple[Tuple[str, str], ...]] = set()
    out: List[Loop] = []
    for loop in loops:
        key = loop.canonical_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(loop)
    return out


@dataclass
class _Frame:
    state: State
    next_index: int = 0
    # On-path targets already reported from this expansion
    closed: Set[str] = field(default_factory=set)


class LoopDetector:
    def __init__(self, graph: StateGraph):
        self.graph = graph

    def run(
        self,
        on_loop_found: Optional[Callable[[Loop], object]] = None,
        is_cancelled: Optional[CancelPredicate] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_results: Optional[int] = None,
    ) -> SearchReport[Loop]:
        ctrl: SearchController[Loop] = SearchController(
            on_result=on_loop_found,
            is_cancelled=is_cancelled,
            on_progress=on_progress,
            max_results=max_results,
        )
        ctrl.start()
        debug_log({"event": "loops_start", "states": len(self.graph)})

        total = max(1, len(self.graph))
        truncated = False
        try:
            for index, root in enumerate(self.graph.states):
                self._search_from(root, ctrl, index / total)
        except LimitReached:
            truncated = True
        except SearchCancelled:
            debug_log({"event": "loops_cancelled", "found": len(ctrl.results), "expanded": ctrl.expanded})
            raise

        debug_log(
            {"event": "loops_done", "found": len(ctrl.results), "expanded": ctrl.expanded, "truncated": truncated}
        )
        return ctrl.finish(truncated=truncated)

    def _search_from(self, root: State, ctrl: SearchController[Loop], fraction: float) -> None:
        path: List[State] = []
        rules: List[Rule] = []
        rejected: List[Tuple[Rule, ...]] = []
        position: Dict[str, int] = {}
        stack: List[_Frame] = []

        def visit(state: State) -> None:
            ctrl.checkpoint(fraction)
            position[state.id] = len(path)
            path.append(state)
            stack.append(_Frame(state=state))

        visit(root)
        while stack:
            frame = stack[-1]
            state_rules = frame.state.rules
            if frame.next_index >= len(state_rules):
                stack.pop()
                left = path.pop()
                del position[left.id]
                if rules:
                    rules.pop()
                    rejected.pop()
                continue

            i = frame.next_index
            frame.next_index += 1
            rule = state_rules[i]
            nxt = self.graph.get_state(rule.target_id)
            if nxt is None:
                continue

            pos = position.get(nxt.id)
            if pos is not None:
                if nxt.id not in frame.closed:
                    frame.closed.add(nxt.id)
                    ctrl.emit(
                        Loop(
                            states=tuple(path[pos:]),
                            rules=tuple(rules[pos:]),
                            rejected=tuple(rejected[pos:]),
                            closing_rule=rule,
                            closing_rejected=state_rules[:i],
                        )
                    )
                continue

            rules.append(rule)
            rejected.append(state_rules[:i])
            visit(nxt)


def detect_loops(
    graph: StateGraph,
    on_loop_found: Optional[Callable[[Loop], object]] = None,
    is_cancelled: Optional[CancelPredicate] = None,
    on_progress: Optional[ProgressCallback] = None,
    max_results: Optional[int] = None,
) -> SearchReport[Loop]:
    return LoopDetector(graph).run(
        on_loop_found=on_loop_found,
        is_cancelled=is_cancelled,
        on_progress=on_progress,
        max_results=max_results,
    )
