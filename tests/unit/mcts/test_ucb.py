"""Test UCB selection."""

import math

import pytest
from mcts_planner.mcts.node import SearchNode
from mcts_planner.mcts.ucb import ucb_score, ucb_select, select_most_visited


def _parent_with_children(stats):
    """Build a parent whose children have (visits, total_value, prior)."""
    parent = SearchNode(state=())
    for key, (visits, value, prior) in stats.items():
        parent.add_child(key, SearchNode(state=(key,), action=key, visit_count=visits,
                                         total_value=value, prior=prior))
    parent.visit_count = 1 + sum(v for v, _, _ in stats.values())
    parent.is_expanded = True
    return parent


def test_unvisited_child_scores_infinity():
    parent = _parent_with_children({"a": (0, 0.0, 0.5)})
    assert ucb_score(parent.children["a"], parent) == float('inf')


def test_ucb_formula():
    """UCB = Q + c * P * sqrt(N_parent) / (1 + N_child)."""
    parent = SearchNode(state=(), visit_count=9)
    child = SearchNode(state=("a",), visit_count=2, total_value=1.0, prior=0.5)
    expected = 0.5 + 1.414 * 0.5 * math.sqrt(9) / 3
    assert ucb_score(child, parent, c=1.414) == pytest.approx(expected)


def test_virtual_loss_counts_as_losing_visit():
    parent = SearchNode(state=(), visit_count=9)
    child = SearchNode(state=("a",), visit_count=2, total_value=1.0, prior=0.5, virtual_loss=1)
    expected = (1.0 - 1.0) / 3 + 1.414 * 0.5 * math.sqrt(9) / 4
    assert ucb_score(child, parent, c=1.414, virtual_loss_value=1.0) == pytest.approx(expected)


def test_in_flight_child_is_no_longer_infinite():
    parent = SearchNode(state=(), visit_count=1)
    child = SearchNode(state=("a",), virtual_loss=1, prior=0.5)
    assert math.isfinite(ucb_score(child, parent))


def test_unvisited_sibling_always_selected():
    """An unvisited child beats any visited sibling."""
    parent = _parent_with_children({
        "strong": (50, 49.0, 0.99),
        "fresh": (0, 0.0, 0.01),
    })
    assert ucb_select(parent).action == "fresh"


def test_ties_go_to_first_child():
    parent = _parent_with_children({
        "first": (0, 0.0, 0.5),
        "second": (0, 0.0, 0.5),
    })
    assert ucb_select(parent).action == "first"


def test_exploitation_wins_with_zero_exploration():
    parent = _parent_with_children({
        "low": (5, 1.0, 0.5),
        "high": (5, 4.0, 0.5),
    })
    assert ucb_select(parent, c=0.0).action == "high"


def test_select_without_children_raises():
    with pytest.raises(ValueError):
        ucb_select(SearchNode(state=()))


def test_select_most_visited():
    parent = _parent_with_children({
        "a": (3, 0.0, 0.5),
        "b": (7, -7.0, 0.5),
    })
    assert select_most_visited(parent).action == "b"
    assert select_most_visited(SearchNode(state=())) is None
