"""JSON graph documents.

Shape:
    {"states": [{"id": "a", "name": "Start",
                 "rules": [{"id": "a:0", "condition": "x > 1", "target": "b",
                            "priority": 50, "operation": ""}]}]}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import GraphDocumentError
from .models import DEFAULT_PRIORITY, Condition, Rule, State, StateGraph


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    return {
        "id": rule.id,
        "condition": str(rule.condition),
        "target": rule.target_id,
        "priority": rule.priority,
        "operation": rule.operation,
    }


def state_to_dict(state: State) -> Dict[str, Any]:
    return {
        "id": state.id,
        "name": state.name,
        "rules": [rule_to_dict(r) for r in state.rules],
    }


def graph_to_dict(graph: StateGraph) -> Dict[str, Any]:
    return {"states": [state_to_dict(s) for s in graph.states]}


def _parse_priority(raw: Any, where: str) -> int:
    if raw is None or raw == "":
        return DEFAULT_PRIORITY
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise GraphDocumentError(f"{where}: invalid priority {raw!r}") from e


def rule_from_dict(d: Dict[str, Any], state_id: str, index: int) -> Rule:
    where = f"state {state_id!r} rule {index}"
    if not isinstance(d, dict):
        raise GraphDocumentError(f"{where}: expected an object")
    target = d.get("target", d.get("target_id"))
    if target is None:
        raise GraphDocumentError(f"{where}: missing target")
    return Rule(
        id=str(d.get("id") or f"{state_id}:{index}"),
        condition=Condition(str(d.get("condition") or "")),
        target_id=str(target),
        priority=_parse_priority(d.get("priority"), where),
        operation=str(d.get("operation") or ""),
    )


def state_from_dict(d: Dict[str, Any]) -> State:
    if not isinstance(d, dict) or "id" not in d:
        raise GraphDocumentError("State entries need an 'id'")
    state_id = str(d["id"])
    raw_rules = d.get("rules") or []
    if not isinstance(raw_rules, list):
        raise GraphDocumentError(f"state {state_id!r}: 'rules' must be a list")
    return State(
        id=state_id,
        name=str(d.get("name") or state_id),
        rules=tuple(rule_from_dict(r, state_id, i) for i, r in enumerate(raw_rules)),
    )


def graph_from_dict(d: Dict[str, Any]) -> StateGraph:
    if not isinstance(d, dict):
        raise GraphDocumentError("Graph document must be an object")
    raw_states = d.get("states", [])
    if not isinstance(raw_states, list):
        raise GraphDocumentError("'states' must be a list")
    states: List[State] = [state_from_dict(s) for s in raw_states]
    return StateGraph(states=tuple(states))


def load_graph(path: Union[str, Path]) -> StateGraph:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise GraphDocumentError(f"{p}: invalid JSON ({e})") from e
    return graph_from_dict(data)


def save_graph(graph: StateGraph, path: Union[str, Path]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(graph_to_dict(graph), indent=2, ensure_ascii=False), encoding="utf-8")
