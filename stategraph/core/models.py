from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .errors import DuplicateStateError

UNKNOWN_STATE_NAME = "Unknown"
DEFAULT_PRIORITY = 50


@dataclass(frozen=True)
class Condition:
    """Opaque rule condition label. Carried through, never evaluated."""

    text: str = ""

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Rule:
    id: str
    condition: Condition
    target_id: str
    priority: int = DEFAULT_PRIORITY
    operation: str = ""


@dataclass(frozen=True)
class State:
    id: str
    name: str
    rules: Tuple[Rule, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return not self.rules


@dataclass(frozen=True)
class KnownState:
    id: str
    name: str

    @property
    def resolved(self) -> bool:
        return True


@dataclass(frozen=True)
class UnknownState:
    """A rule target with no matching state in the graph (dangling reference)."""

    id: str

    @property
    def name(self) -> str:
        return UNKNOWN_STATE_NAME

    @property
    def resolved(self) -> bool:
        return False


StateRef = Union[KnownState, UnknownState]


@dataclass(frozen=True)
class StateGraph:
    """
    Immutable read view over states and their rules.

    Keeps states in authoring order plus indexes for O(1) lookup by id
    and for incoming rules.
    """

    states: Tuple[State, ...] = ()

    _state_map: Dict[str, State] = field(default_factory=dict, init=False, repr=False, compare=False)
    _rules_to: Dict[str, List[Tuple[State, Rule]]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        state_map: Dict[str, State] = {}
        rules_to: Dict[str, List[Tuple[State, Rule]]] = {}

        for s in self.states:
            if s.id in state_map:
                raise DuplicateStateError(s.id)
            state_map[s.id] = s

        for s in self.states:
            for rule in s.rules:
                rules_to.setdefault(rule.target_id, []).append((s, rule))

        object.__setattr__(self, "_state_map", state_map)
        object.__setattr__(self, "_rules_to", rules_to)

    @classmethod
    def of(cls, states: Iterable[State]) -> "StateGraph":
        return cls(states=tuple(states))

    def __len__(self) -> int:
        return len(self.states)

    def __iter__(self) -> Iterator[State]:
        return iter(self.states)

    def __contains__(self, state_id: object) -> bool:
        return state_id in self._state_map

    @property
    def state_ids(self) -> List[str]:
        return [s.id for s in self.states]

    def get_state(self, state_id: str) -> Optional[State]:
        """Get state by ID (O(1)). None for unknown ids."""
        return self._state_map.get(state_id)

    def resolve(self, state_id: str) -> StateRef:
        state = self._state_map.get(state_id)
        if state is None:
            return UnknownState(id=state_id)
        return KnownState(id=state.id, name=state.name)

    def get_rules_to(self, state_id: str) -> List[Tuple[State, Rule]]:
        """Get (source state, rule) pairs targeting a state, in authoring order."""
        return self._rules_to.get(state_id, [])

    def successors(self, state_id: str) -> List[State]:
        """Resolved targets of a state's rules, in stored order. Dangling targets are skipped."""
        state = self._state_map.get(state_id)
        if state is None:
            return []
        out: List[State] = []
        for rule in state.rules:
            target = self._state_map.get(rule.target_id)
            if target is not None:
                out.append(target)
        return out

    def dangling_rules(self) -> List[Tuple[State, Rule]]:
        return [(s, r) for s in self.states for r in s.rules if r.target_id not in self._state_map]

    def subset(self, state_ids: Iterable[str]) -> "StateGraph":
        """Graph induced by the given ids, in authoring order. Rules are kept verbatim."""
        wanted = set(state_ids)
        return StateGraph(states=tuple(s for s in self.states if s.id in wanted))

    def stats(self) -> Dict[str, int]:
        """Return graph statistics."""
        return {
            "states": len(self.states),
            "rules": sum(len(s.rules) for s in self.states),
            "terminal_states": sum(1 for s in self.states if s.is_terminal),
            "dangling_rules": len(self.dangling_rules()),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StateGraph":
        from .document import graph_from_dict

        return graph_from_dict(d)

    def to_dict(self) -> Dict[str, Any]:
        from .document import graph_to_dict

        return graph_to_dict(self)
