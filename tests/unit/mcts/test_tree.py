"""Test tree statistics and export."""

import networkx as nx
import pytest
from mcts_planner.mcts.node import SearchNode
from mcts_planner.mcts.tree import SearchTree


@pytest.fixture
def tree():
    """Root with children a, b; a has children c (terminal), d."""
    root = SearchNode(state=(), visit_count=5, total_value=1.0, is_expanded=True)
    a = SearchNode(state=("a",), action="a", visit_count=3, is_expanded=True)
    b = SearchNode(state=("b",), action="b", visit_count=1)
    c = SearchNode(state=("a", "c"), action="c", visit_count=1, is_terminal=True)
    d = SearchNode(state=("a", "d"), action="d", visit_count=1)
    root.add_child("a", a)
    root.add_child("b", b)
    a.add_child("c", c)
    a.add_child("d", d)
    return SearchTree(root)


def test_counts(tree):
    assert tree.count_nodes() == 5
    assert tree.count_terminal() == 1
    assert tree.max_depth() == 2


def test_branching_factor_averages_expanded_nodes(tree):
    assert tree.branching_factor() == pytest.approx(2.0)
    assert SearchTree(SearchNode(state=())).branching_factor() == 0.0


def test_path_to_root(tree):
    leaf = tree.root.children["a"].children["d"]
    path = tree.get_path_to_root(leaf)
    assert [n.action for n in path] == ["d", "a", None]


def test_find_child(tree):
    found = tree.find_child(("b",), key_fn=lambda state: state)
    assert found is tree.root.children["b"]
    assert tree.find_child(("zzz",), key_fn=lambda state: state) is None


def test_statistics(tree):
    stats = tree.get_statistics()
    assert stats.total_nodes == 5
    assert stats.max_depth == 2
    assert stats.root_visits == 5
    assert stats.root_value == pytest.approx(0.2)
    assert stats.terminal_nodes == 1
    assert set(stats.to_dict()) == {
        'total_nodes', 'max_depth', 'branching_factor',
        'root_visits', 'root_value', 'terminal_nodes',
    }


def test_max_depth_is_relative_to_subtree_root(tree):
    subtree = SearchTree(tree.root.children["a"])
    assert subtree.max_depth() == 1


def test_to_networkx(tree):
    graph = tree.to_networkx(key_fn=lambda node: "/".join(node.state) or "root")

    assert isinstance(graph, nx.DiGraph)
    assert graph.number_of_nodes() == 5
    assert graph.number_of_edges() == 4
    assert nx.is_arborescence(graph)
    assert graph.nodes["a"]["visits"] == 3
    assert graph.nodes["a/c"]["terminal"] is True
    assert graph.edges["a", "a/d"]["action"] == repr("d")


def test_to_networkx_of_subtree_has_no_parent_edge(tree):
    graph = SearchTree(tree.root.children["a"]).to_networkx()
    assert graph.number_of_nodes() == 3
    assert graph.number_of_edges() == 2
