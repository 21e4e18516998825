"""UCB selection for plan MCTS."""

import math
from typing import Optional

from .node import SearchNode


def ucb_score(
    child: SearchNode,
    parent: SearchNode,
    c: float = 1.414,
    virtual_loss_value: float = 1.0
) -> float:
    """Compute UCB score.

    UCB = Q + c * P * sqrt(N_parent) / (1 + N_child)

    In-flight simulations count as extra visits, each contributing
    -virtual_loss_value to the child's value. With no simulation in flight
    this is exactly the formula above.

    Args:
        child: Child node
        parent: Parent node
        c: Exploration constant
        virtual_loss_value: Value charged per in-flight traversal

    Returns:
        UCB score (+inf for a child nobody has visited yet)
    """
    visits = child.visit_count + child.virtual_loss
    if visits == 0:
        return float('inf')

    exploitation = (child.total_value - virtual_loss_value * child.virtual_loss) / visits
    parent_visits = parent.visit_count + parent.virtual_loss
    exploration = c * child.prior * math.sqrt(parent_visits) / (1 + visits)

    return exploitation + exploration


def ucb_select(
    node: SearchNode,
    c: float = 1.414,
    virtual_loss_value: float = 1.0
) -> SearchNode:
    """Select the child of node with the highest UCB score.

    Ties go to the child inserted first.

    Raises:
        ValueError: If node has no children
    """
    if not node.children:
        raise ValueError("Cannot select child of unexpanded node")

    best_child = None
    best_score = float('-inf')
    for child in node.children.values():
        score = ucb_score(child, node, c, virtual_loss_value)
        if score > best_score:
            best_score = score
            best_child = child

    return best_child


def select_most_visited(node: SearchNode) -> Optional[SearchNode]:
    """Select most visited child (for final selection)."""
    if not node.children:
        return None

    return max(node.children.values(), key=lambda child: child.visit_count)
