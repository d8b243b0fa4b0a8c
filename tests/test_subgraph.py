"""Tests for subgraph extraction and boundary metadata."""

from stategraph.core.models import KnownState, UnknownState
from stategraph.core.partition import Partition, partition
from stategraph.core.subgraph import extract_subgraph, split_graph


def test_whole_graph_has_no_boundaries(two_triangles) -> None:
    sg = extract_subgraph(two_triangles, Partition(1, tuple(two_triangles.state_ids)))

    assert sg.outgoing_boundary == ()
    assert sg.incoming_boundary == ()
    assert not sg.has_boundaries
    assert sg.state_ids == two_triangles.state_ids


def test_bridge_becomes_boundary(two_triangles) -> None:
    left, right = partition(two_triangles, 2)

    a = extract_subgraph(two_triangles, left)
    b = extract_subgraph(two_triangles, right)

    assert a.outgoing_boundary == (KnownState(id="D", name="d"),)
    assert a.incoming_boundary == ()
    assert b.outgoing_boundary == ()
    assert b.incoming_boundary == (KnownState(id="C", name="c"),)
    assert [s.id for s in a.exit_points] == ["C"]
    assert [s.id for s in b.entry_points] == ["D"]


def test_boundary_rules_account_for_every_crossing_rule(make_graph) -> None:
    g = make_graph({
        "A": ["B", "C", "E"],
        "B": ["A", "D"],
        "C": ["D", "F"],
        "D": ["A", "E"],
        "E": ["F", "B"],
        "F": ["A"],
    })
    parts = partition(g, 3)
    owner = {sid: p.index for p in parts for sid in p.state_ids}

    crossing = {
        r.id
        for s in g.states
        for r in s.rules
        if owner[s.id] != owner[r.target_id]
    }
    subgraphs = [extract_subgraph(g, p) for p in parts]
    outgoing = [br.rule.id for sg in subgraphs for br in sg.outgoing_rules]
    incoming = [br.rule.id for sg in subgraphs for br in sg.incoming_rules]

    assert crossing
    assert sorted(outgoing) == sorted(crossing)
    assert sorted(incoming) == sorted(crossing)
    assert sum(len(sg.boundary_rules) for sg in subgraphs) == 2 * len(crossing)

    for sg in subgraphs:
        refs = {r.id for r in sg.outgoing_boundary}
        assert refs == {br.target.id for br in sg.outgoing_rules}
        assert all(isinstance(r, KnownState) and r.name == g.get_state(r.id).name for r in sg.outgoing_boundary)


def test_dangling_target_is_unknown(make_graph) -> None:
    g = make_graph({"A": ["ghost", "B"], "B": []})

    sg = extract_subgraph(g, ["A", "B"])

    assert sg.outgoing_boundary == (UnknownState(id="ghost"),)
    assert sg.outgoing_boundary[0].name == "Unknown"
    assert sg.incoming_boundary == ()


def test_rules_preserved_verbatim(make_graph) -> None:
    g = make_graph({"A": ["B", "C"], "B": ["A"], "C": []})

    sg = extract_subgraph(g, ["A"])

    assert sg.states[0].rules == g.get_state("A").rules
    assert sg.states[0] == g.get_state("A")
    assert [r.id for r in sg.outgoing_boundary] == ["B", "C"]
    assert sg.incoming_boundary == (KnownState(id="B", name="b"),)


def test_extraction_is_pure(two_triangles) -> None:
    before = two_triangles.to_dict()
    parts = partition(two_triangles, 2)

    first = [extract_subgraph(two_triangles, p) for p in parts]
    second = [extract_subgraph(two_triangles, p) for p in reversed(parts)]

    assert first == list(reversed(second))
    assert two_triangles.to_dict() == before


def test_unknown_member_ids_are_ignored(make_graph) -> None:
    g = make_graph({"A": ["B"], "B": []})
    sg = extract_subgraph(g, ["A", "nope"])
    assert sg.state_ids == ["A"]
    assert [r.id for r in sg.outgoing_boundary] == ["B"]


def test_stale_member_id_keeps_dangling_rule_on_boundary(make_graph) -> None:
    # "ghost" was deleted after the split; A's rule to it now dangles
    g = make_graph({"A": ["ghost"]})

    sg = extract_subgraph(g, ["A", "ghost"])

    assert sg.state_ids == ["A"]
    assert sg.outgoing_boundary == (UnknownState(id="ghost"),)
    assert [br.rule.id for br in sg.outgoing_rules] == [g.get_state("A").rules[0].id]
    assert sg.incoming_boundary == ()


def test_split_graph_in_parallel_matches_sequential(make_graph) -> None:
    g = make_graph({
        "A": ["B", "C"],
        "B": ["C", "D"],
        "C": ["A", "E"],
        "D": ["E", "F"],
        "E": ["F"],
        "F": ["A"],
    })

    sequential = split_graph(g, 3)
    parallel = split_graph(g, 3, max_workers=4)

    assert parallel == sequential
    assert [sg.name for sg in sequential] == ["Subgraph 1", "Subgraph 2", "Subgraph 3"]


def test_to_dict(two_triangles) -> None:
    left, _ = partition(two_triangles, 2)

    d = extract_subgraph(two_triangles, left).to_dict()

    assert d["id"] == "partition-1"
    assert [s["id"] for s in d["states"]] == ["C", "A", "B"]
    assert d["outgoing_boundary"] == [{"id": "D", "name": "d", "resolved": True}]
    assert d["outgoing_rules"] == [
        {"source_id": "C", "source": "c", "condition": "C to D", "target_id": "D", "target": "d"}
    ]
