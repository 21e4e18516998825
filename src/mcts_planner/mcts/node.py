"""MCTS node for plan search."""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Optional


@dataclass(eq=False)
class SearchNode:
    """MCTS node for plan search.

    The state is opaque to the search; only the domain interprets it.

    Attributes:
        state: Domain state at this node
        parent: Parent node (None for root)
        action: Action applied to parent.state to reach state (None for root)
        children: Mapping from action key to child node
        visit_count: N - number of simulations that passed through this node
        total_value: W - sum of backed-up values
        prior: P - policy prior for the action that produced this node
        is_expanded: Whether children have been generated
        is_terminal: Whether state satisfies the terminal predicate
        policy: Evaluator policy recorded when this node was evaluated
        virtual_loss: Number of in-flight simulations through this node
        depth: Distance from the root at creation time
    """
    state: Any
    parent: Optional['SearchNode'] = None
    action: Any = None
    children: Dict[Hashable, 'SearchNode'] = field(default_factory=dict)
    visit_count: int = 0
    total_value: float = 0.0
    prior: float = 0.0
    is_expanded: bool = False
    is_terminal: bool = False
    policy: Optional[Dict[Hashable, float]] = None
    virtual_loss: int = 0
    depth: int = 0

    @property
    def Q(self) -> float:
        """Average value (Q = W / N)."""
        if self.visit_count == 0:
            return 0.0
        return self.total_value / self.visit_count

    def is_leaf(self) -> bool:
        """Check if node has no children."""
        return len(self.children) == 0

    def is_root(self) -> bool:
        return self.parent is None

    def add_child(self, key: Hashable, child: 'SearchNode') -> None:
        """Attach child under an action key.

        Raises:
            ValueError: If the node is terminal or the key is already taken
        """
        if self.is_terminal:
            raise ValueError("Terminal nodes never have children")
        if key in self.children:
            raise ValueError(f"Duplicate action key: {key!r}")
        child.parent = self
        child.depth = self.depth + 1
        self.children[key] = child

    def detach(self) -> None:
        """Make this node a root, dropping the link to its parent."""
        self.parent = None
        self.action = None
        self._rebase_depth(0)

    def _rebase_depth(self, depth: int) -> None:
        stack = [(self, depth)]
        while stack:
            node, d = stack.pop()
            node.depth = d
            for child in node.children.values():
                stack.append((child, d + 1))

    def __repr__(self) -> str:
        return (f"SearchNode(action={self.action!r}, visits={self.visit_count}, "
                f"Q={self.Q:.3f}, children={len(self.children)})")
