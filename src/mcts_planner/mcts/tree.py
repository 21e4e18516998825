"""MCTS tree structure for plan search."""

from dataclasses import dataclass, asdict
from typing import Callable, Dict, Hashable, Iterator, List, Optional

import networkx as nx

from .node import SearchNode


@dataclass
class TreeStats:
    """Aggregate counters describing a search tree."""
    total_nodes: int
    max_depth: int
    branching_factor: float
    root_visits: int
    root_value: float
    terminal_nodes: int

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class SearchTree:
    """MCTS tree for plan search.

    Thin view over a root node: all statistics are computed by walking
    the tree on demand.
    """

    def __init__(self, root: SearchNode):
        self.root = root

    def iter_nodes(self) -> Iterator[SearchNode]:
        """Depth-first walk over every node (iterative, trees can be deep)."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(node.children.values())

    def get_path_to_root(self, node: SearchNode) -> List[SearchNode]:
        """Get path from node to root."""
        path = []
        current = node
        while current is not None:
            path.append(current)
            current = current.parent
        return path

    def count_nodes(self) -> int:
        """Count total nodes."""
        return sum(1 for _ in self.iter_nodes())

    def count_terminal(self) -> int:
        """Count terminal nodes."""
        return sum(1 for node in self.iter_nodes() if node.is_terminal)

    def max_depth(self) -> int:
        """Depth of the deepest node below the root (root alone = 0)."""
        base = self.root.depth
        return max(node.depth - base for node in self.iter_nodes())

    def branching_factor(self) -> float:
        """Mean number of children per expanded node."""
        expanded = [len(node.children) for node in self.iter_nodes() if node.children]
        if not expanded:
            return 0.0
        return sum(expanded) / len(expanded)

    def find_child(self, state_key: str, key_fn: Callable) -> Optional[SearchNode]:
        """Find a direct child of the root whose state has state_key."""
        for child in self.root.children.values():
            if key_fn(child.state) == state_key:
                return child
        return None

    def get_statistics(self) -> TreeStats:
        """Get tree statistics."""
        return TreeStats(
            total_nodes=self.count_nodes(),
            max_depth=self.max_depth(),
            branching_factor=self.branching_factor(),
            root_visits=self.root.visit_count,
            root_value=self.root.Q,
            terminal_nodes=self.count_terminal(),
        )

    def to_networkx(self, key_fn: Optional[Callable[[SearchNode], Hashable]] = None) -> nx.DiGraph:
        """Export the tree as a directed graph.

        Nodes are labelled by key_fn (defaults to id()) and carry visit
        counts, mean values and priors; edges carry the action.
        """
        key_fn = key_fn or id
        graph = nx.DiGraph()
        for node in self.iter_nodes():
            graph.add_node(
                key_fn(node),
                visits=node.visit_count,
                value=node.Q,
                prior=node.prior,
                terminal=node.is_terminal,
                depth=node.depth,
            )
            if node is not self.root:
                graph.add_edge(key_fn(node.parent), key_fn(node), action=repr(node.action))
        return graph
