from __future__ import annotations

from dex_indexer.domain.services.pair_graph import build_pair_graph, find_shortest_path


def test_build_pair_graph_adds_both_directions():
    graph = build_pair_graph([("a", "b"), ("b", "c")])

    assert graph == {"a": ["b"], "b": ["a", "c"], "c": ["b"]}
    for node, neighbors in graph.items():
        for neighbor in neighbors:
            assert node in graph[neighbor]


def test_build_pair_graph_empty_input_returns_empty_graph():
    assert build_pair_graph([]) == {}


def test_find_shortest_path_prefers_fewest_hops():
    graph = build_pair_graph([("a", "b"), ("b", "c"), ("c", "d"), ("a", "d")])

    assert find_shortest_path(graph, "a", "d") == ["a", "d"]
    assert find_shortest_path(graph, "b", "d") == ["b", "a", "d"]


def test_find_shortest_path_tie_break_follows_insertion_order():
    graph = build_pair_graph([("a", "x"), ("a", "y"), ("x", "z"), ("y", "z")])

    assert find_shortest_path(graph, "a", "z") == ["a", "x", "z"]


def test_find_shortest_path_returns_none_when_disconnected():
    graph = build_pair_graph([("a", "b"), ("c", "d")])

    assert find_shortest_path(graph, "a", "d") is None


def test_find_shortest_path_unknown_start_returns_none():
    graph = build_pair_graph([("a", "b")])

    assert find_shortest_path(graph, "x", "a") is None


def test_find_shortest_path_same_node_is_zero_hops():
    graph = build_pair_graph([("a", "b")])

    assert find_shortest_path(graph, "a", "a") == ["a"]
