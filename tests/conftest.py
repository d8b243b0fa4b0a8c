"""Shared fixtures: small hand-built state graphs."""

from typing import Dict, List

import pytest

from stategraph.core.models import Condition, Rule, State, StateGraph


def build_graph(edges: Dict[str, List[str]]) -> StateGraph:
    """
    Build a graph from {state id: [target ids in rule order]}.

    Rule ids are "<source>-><target>#<index>", conditions "<source> to <target>",
    state names are the lower-cased ids.
    """
    states = []
    for sid, targets in edges.items():
        rules = tuple(
            Rule(id=f"{sid}->{t}#{i}", condition=Condition(f"{sid} to {t}"), target_id=t)
            for i, t in enumerate(targets)
        )
        states.append(State(id=sid, name=sid.lower(), rules=rules))
    return StateGraph.of(states)


@pytest.fixture
def make_graph():
    return build_graph


@pytest.fixture
def two_triangles():
    """Two 3-cycles joined by a single bridge rule C -> D."""
    return build_graph({
        "A": ["B"],
        "B": ["C"],
        "C": ["A", "D"],
        "D": ["E"],
        "E": ["F"],
        "F": ["D"],
    })


@pytest.fixture
def layered():
    """S fans out to three states, each fanning out to three more, all ending in T: 9 paths."""
    return build_graph({
        "S": ["A1", "A2", "A3"],
        "A1": ["B1", "B2", "B3"],
        "A2": ["B1", "B2", "B3"],
        "A3": ["B1", "B2", "B3"],
        "B1": ["T"],
        "B2": ["T"],
        "B3": ["T"],
        "T": [],
    })
