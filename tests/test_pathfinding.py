"""Tests for simple-path enumeration."""

import pytest

from stategraph.core.errors import SearchCancelled, StateNotFoundError
from stategraph.core.pathfinding import PathMode, enumerate_paths, is_reachable, shortest_path
from stategraph.core.search import CancellationToken


def test_single_terminal_state(make_graph) -> None:
    g = make_graph({"S": []})

    report = enumerate_paths(g, "S", PathMode.TO_TERMINAL)

    assert len(report.results) == 1
    path = report.results[0]
    assert path.state_ids == ["S"]
    assert path.rules == ()
    assert path.rejected == ()


def test_chain_has_no_rejected_rules(make_graph) -> None:
    g = make_graph({"A": ["B"], "B": ["C"], "C": []})

    paths = enumerate_paths(g, "A").results

    assert len(paths) == 1
    assert paths[0].state_ids == ["A", "B", "C"]
    assert len(paths[0].rules) == 2
    assert paths[0].rejected == ((), ())


def test_branching_annotates_earlier_rules(make_graph) -> None:
    g = make_graph({"A": ["B", "C"], "B": [], "C": []})
    first_rule = g.get_state("A").rules[0]

    paths = enumerate_paths(g, "A").results

    assert [p.state_ids for p in paths] == [["A", "B"], ["A", "C"]]
    assert paths[0].rejected == ((),)
    assert paths[1].rejected == ((first_rule,),)


def test_paths_are_simple(make_graph) -> None:
    g = make_graph({
        "A": ["B", "C", "D"],
        "B": ["A", "C", "D"],
        "C": ["A", "B", "D", "E"],
        "D": ["A", "B", "C", "E"],
        "E": [],
    })

    paths = enumerate_paths(g, "A").results

    assert paths
    for p in paths:
        assert len(set(p.state_ids)) == len(p.state_ids)
        assert p.state_ids[-1] == "E"
        assert len(p.rules) == len(p.states) - 1 == len(p.rejected)
        for i, rule in enumerate(p.rules):
            assert rule.target_id == p.state_ids[i + 1]


def test_cycles_do_not_recurse_forever(make_graph) -> None:
    g = make_graph({"A": ["B"], "B": ["A", "C"], "C": ["A", "D"], "D": []})

    paths = enumerate_paths(g, "A").results

    assert [p.state_ids for p in paths] == [["A", "B", "C", "D"]]


def test_streams_in_discovery_order(layered) -> None:
    seen = []

    report = enumerate_paths(layered, "S", on_path_found=seen.append)

    assert len(seen) == 9
    assert seen == report.results
    assert seen[0].state_ids == ["S", "A1", "B1", "T"]
    assert seen[-1].state_ids == ["S", "A3", "B3", "T"]
    assert not report.truncated


def test_unknown_start_raises(make_graph) -> None:
    g = make_graph({"A": []})
    with pytest.raises(StateNotFoundError):
        enumerate_paths(g, "missing")
    # also a KeyError for callers doing dict-style handling
    with pytest.raises(KeyError):
        enumerate_paths(g, "missing")


def test_to_target(layered) -> None:
    paths = enumerate_paths(layered, "S", PathMode.TO_TARGET, target_id="B2").results

    assert sorted(p.state_ids[1] for p in paths) == ["A1", "A2", "A3"]
    assert all(p.state_ids[-1] == "B2" for p in paths)


def test_absent_target_yields_nothing(layered) -> None:
    report = enumerate_paths(layered, "S", PathMode.TO_TARGET, target_id="gone")
    assert report.results == []


def test_start_is_target(make_graph) -> None:
    g = make_graph({"A": ["B"], "B": ["A"]})
    paths = enumerate_paths(g, "A", PathMode.TO_TARGET, target_id="A").results
    assert [p.state_ids for p in paths] == [["A"]]


def test_target_mode_requires_target(make_graph) -> None:
    g = make_graph({"A": []})
    with pytest.raises(ValueError):
        enumerate_paths(g, "A", PathMode.TO_TARGET)
    with pytest.raises(ValueError):
        enumerate_paths(g, "A", PathMode.THROUGH_WAYPOINT, target_id="A")


def test_waypoint_must_come_first(make_graph) -> None:
    g = make_graph({"S": ["T", "W"], "W": ["T"], "T": ["W"]})

    paths = enumerate_paths(g, "S", PathMode.THROUGH_WAYPOINT, target_id="T", waypoint_id="W").results

    # S -> T reaches the target without the waypoint and does not count
    assert [p.state_ids for p in paths] == [["S", "W", "T"]]
    assert paths[0].rejected[0] == (g.get_state("S").rules[0],)


def test_start_state_can_be_the_waypoint(make_graph) -> None:
    g = make_graph({"W": ["T"], "T": []})

    paths = enumerate_paths(g, "W", PathMode.THROUGH_WAYPOINT, target_id="T", waypoint_id="W").results

    assert [p.state_ids for p in paths] == [["W", "T"]]


def test_absent_waypoint_yields_nothing(make_graph) -> None:
    g = make_graph({"S": ["T"], "T": []})
    report = enumerate_paths(g, "S", PathMode.THROUGH_WAYPOINT, target_id="T", waypoint_id="gone")
    assert report.results == []


def test_mode_accepts_string_value(make_graph) -> None:
    g = make_graph({"S": ["T"], "T": []})
    paths = enumerate_paths(g, "S", "to-target", target_id="T").results
    assert [p.state_ids for p in paths] == [["S", "T"]]


def test_dangling_rules_are_tolerated(make_graph) -> None:
    g = make_graph({"A": ["ghost", "B"], "B": []})

    paths = enumerate_paths(g, "A").results

    assert [p.state_ids for p in paths] == [["A", "B"]]
    # the dangling rule was stored first, so it shows up as rejected
    assert [r.target_id for r in paths[0].rejected[0]] == ["ghost"]


def test_cancel_after_n_paths(layered) -> None:
    token = CancellationToken()
    seen = []

    def on_path(path):
        seen.append(path)
        if len(seen) == 3:
            token.cancel()

    with pytest.raises(SearchCancelled) as exc:
        enumerate_paths(layered, "S", on_path_found=on_path, is_cancelled=token.is_cancelled)

    assert len(seen) == 3
    assert exc.value.results == seen


def test_cancelled_before_start(layered) -> None:
    token = CancellationToken()
    token.cancel()
    seen = []

    with pytest.raises(SearchCancelled):
        enumerate_paths(layered, "S", on_path_found=seen.append, is_cancelled=token.is_cancelled)

    assert seen == []


def test_soft_cap(layered) -> None:
    seen = []

    report = enumerate_paths(layered, "S", on_path_found=seen.append, max_results=4)

    assert report.truncated
    assert len(report.results) == 4
    assert len(seen) == 4


def test_progress_runs_from_zero_to_one(layered) -> None:
    progress = []

    enumerate_paths(layered, "S", on_progress=progress.append)

    assert progress[0] == 0.0
    assert progress[-1] == 1.0
    assert all(0.0 <= p <= 1.0 for p in progress)
    assert progress == sorted(progress)


def test_long_chain_does_not_hit_recursion_limit(make_graph) -> None:
    n = 5000
    edges = {f"s{i}": [f"s{i + 1}"] for i in range(n - 1)}
    edges[f"s{n - 1}"] = []
    g = make_graph(edges)

    report = enumerate_paths(g, "s0")

    assert len(report.results) == 1
    assert len(report.results[0]) == n
    assert report.expanded == n


def test_shortest_path(make_graph) -> None:
    g = make_graph({"A": ["B", "D"], "B": ["C"], "C": ["D"], "D": []})

    path = shortest_path(g, "A", "D")

    assert path is not None
    assert path.state_ids == ["A", "D"]
    assert path.rejected == ((g.get_state("A").rules[0],),)
    assert shortest_path(g, "D", "A") is None
    assert shortest_path(g, "A", "gone") is None
    assert is_reachable(g, "B", "D")
    assert not is_reachable(g, "D", "B")
