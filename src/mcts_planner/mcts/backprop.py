"""Backpropagation for plan MCTS.

Each completed simulation updates, for every node on its path:
- Visit count
- Total value (mean value is W / N)

With alternate_sign the value flips at every level, the adversarial
convention where each ply is scored from the mover's perspective.
"""

from typing import List

from .node import SearchNode


def backpropagate(node: SearchNode, value: float, alternate_sign: bool = False) -> None:
    """Backpropagate value from node to root.

    Args:
        node: Evaluated node
        value: Value of node's state
        alternate_sign: Negate the value at each step towards the root
    """
    current = node

    while current is not None:
        current.visit_count += 1
        current.total_value += value
        if alternate_sign:
            value = -value
        current = current.parent


def backpropagate_path(path: List[SearchNode], value: float, alternate_sign: bool = False) -> None:
    """Backpropagate along explicit root-to-leaf path."""
    for node in reversed(path):
        node.visit_count += 1
        node.total_value += value
        if alternate_sign:
            value = -value


def apply_virtual_loss(path: List[SearchNode]) -> None:
    """Mark a simulation as in flight through every node on path."""
    for node in path:
        node.virtual_loss += 1


def revert_virtual_loss(path: List[SearchNode]) -> None:
    """Undo apply_virtual_loss for a finished or abandoned simulation."""
    for node in path:
        node.virtual_loss -= 1
