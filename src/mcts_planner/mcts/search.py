"""Main MCTS search over plan states.

One simulation:

def simulate(root):
    path = ucb_select(root)                # until terminal or unexpanded
    if visited(leaf) and not terminal(leaf):
        expand(leaf); path += ucb child    # one child per legal action
    value = terminal_value or evaluator    # evaluator also records priors
    backprop(path, value)

Simulations are independent. With num_workers > 1 they run on a thread
pool: selection and backup hold the tree lock, domain and evaluator calls
do not, and virtual loss steers concurrent workers onto different paths.
"""

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Tuple

from .backprop import apply_virtual_loss, backpropagate_path, revert_virtual_loss
from .domain import SearchDomain
from .evaluator import Evaluator, UniformEvaluator, priors_for_actions
from .exceptions import NoLegalActionsError, SearchError, TerminalStateError
from .node import SearchNode
from .tree import SearchTree, TreeStats
from .ucb import select_most_visited, ucb_select

logger = logging.getLogger(__name__)


@dataclass
class MCTSConfig:
    """Configuration for MCTS search."""
    num_simulations: int = 1000
    exploration_constant: float = 1.414
    # Negate the backed-up value at every level (two-player convention).
    alternate_sign: bool = True
    # Keep the tree between calls when the new root is the old root or one
    # of its children.
    reuse_tree: bool = True
    # Leaves are evaluated without expansion once the tree is this large.
    max_tree_nodes: int = 1000000
    num_workers: int = 1
    virtual_loss_value: float = 1.0

    def __post_init__(self):
        if self.num_simulations < 1:
            raise ValueError(f"num_simulations must be positive, got {self.num_simulations}")
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")
        if self.max_tree_nodes < 1:
            raise ValueError(f"max_tree_nodes must be positive, got {self.max_tree_nodes}")


@dataclass
class SearchResult:
    """Result of MCTS search from one root state."""
    # Action leading to the most visited root child (None if unexpanded)
    action: Any
    # Visit share of that child: N(child) / N(root)
    confidence: float
    tree_stats: TreeStats
    # Root child visit counts by action key
    visit_counts: Dict[Hashable, int] = field(default_factory=dict)
    # Root child actions by action key
    actions: Dict[Hashable, Any] = field(default_factory=dict)
    simulations_run: int = 0
    failed_simulations: int = 0
    cancelled: bool = False
    elapsed_time: float = 0.0

    @property
    def visit_distribution(self) -> Dict[Hashable, float]:
        """Normalized root visit counts, the policy training target."""
        total = sum(self.visit_counts.values())
        if total == 0:
            return {}
        return {key: count / total for key, count in self.visit_counts.items()}


class CancellationToken:
    """Cooperative stop signal for a running search.

    Cancelled once cancel() is called, once the optional timeout elapses,
    or once the optional parent token is cancelled. Checked between
    simulations (between batches with a worker pool).
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional['CancellationToken'] = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self.parent = parent

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return True
        return self.parent is not None and self.parent.cancelled


class MCTSSearch:
    """Monte Carlo Tree Search driven by a domain and an evaluator.

    Usage:
        search = MCTSSearch(domain, evaluator, MCTSConfig(num_simulations=200))
        result = search.search(state)
        state = domain.next_state(state, result.action)
        result = search.search(state)   # reuses the matching subtree
    """

    def __init__(
        self,
        domain: SearchDomain,
        evaluator: Optional[Evaluator] = None,
        config: Optional[MCTSConfig] = None
    ):
        self.domain = domain
        self.evaluator = evaluator or UniformEvaluator()
        self.config = config or MCTSConfig()

        self.root: Optional[SearchNode] = None
        # Nodes in the current tree / created over this object's lifetime
        self.node_count = 0
        self.nodes_created = 0

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def search(
        self,
        root_state: Any,
        num_simulations: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None
    ) -> SearchResult:
        """Run simulations from root_state and recommend an action.

        Args:
            root_state: State to search from (must be non-terminal)
            num_simulations: Simulation budget (defaults to config)
            cancel_token: Optional token to stop the search early
            timeout: Optional wall-clock limit in seconds

        Returns:
            SearchResult

        Raises:
            TerminalStateError: If root_state is terminal
            NoLegalActionsError: If a non-terminal state has no legal actions
            SearchError: If every simulation failed
        """
        num_simulations = self.config.num_simulations if num_simulations is None else num_simulations
        if num_simulations < 1:
            raise ValueError(f"num_simulations must be positive, got {num_simulations}")
        if self.domain.is_terminal(root_state):
            raise TerminalStateError(
                f"Cannot search from terminal state {self.domain.state_key(root_state)}"
            )

        token = cancel_token
        if timeout is not None:
            token = CancellationToken(timeout=timeout, parent=cancel_token)

        start_time = time.time()
        self._prepare_root(root_state)
        if not self.root.is_expanded and not self.domain.legal_actions(root_state):
            raise NoLegalActionsError(self.domain.state_key(root_state))

        if self.config.num_workers > 1:
            attempted, succeeded, cancelled = self._run_parallel(num_simulations, token)
        else:
            attempted, succeeded, cancelled = self._run_sequential(num_simulations, token)

        failed = attempted - succeeded
        if attempted > 0 and succeeded == 0:
            raise SearchError(f"All {attempted} simulations failed")
        if failed:
            logger.warning(f"{failed}/{attempted} simulations failed and were discarded")
        if cancelled:
            logger.info(f"Search cancelled after {attempted}/{num_simulations} simulations")

        return self._build_result(attempted, failed, cancelled, time.time() - start_time)

    def reset(self) -> None:
        """Drop the current tree."""
        self.root = None
        self.node_count = 0

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def get_tree(self) -> Optional[SearchTree]:
        return SearchTree(self.root) if self.root is not None else None

    def _prepare_root(self, root_state: Any) -> None:
        """Reuse the existing tree when possible, otherwise start fresh."""
        if self.config.reuse_tree and self.root is not None:
            key = self.domain.state_key(root_state)
            if self.domain.state_key(self.root.state) == key:
                logger.debug("Reusing search tree at same root")
                return
            child = SearchTree(self.root).find_child(key, self.domain.state_key)
            if child is not None:
                child.detach()
                self.root = child
                self.node_count = SearchTree(child).count_nodes()
                logger.debug(f"Reusing subtree with {self.node_count} nodes")
                return

        self.root = self._new_node(root_state)
        self.node_count = 1
        self.nodes_created += 1

    def _new_node(self, state: Any, action: Any = None, prior: float = 0.0) -> SearchNode:
        return SearchNode(
            state=state,
            action=action,
            prior=prior,
            is_terminal=bool(self.domain.is_terminal(state)),
        )

    def _run_sequential(self, num_simulations: int, token: Optional[CancellationToken]) -> Tuple[int, int, bool]:
        attempted = succeeded = 0
        for _ in range(num_simulations):
            if token is not None and token.cancelled:
                return attempted, succeeded, True
            attempted += 1
            if self._run_simulation():
                succeeded += 1
        return attempted, succeeded, False

    def _run_parallel(self, num_simulations: int, token: Optional[CancellationToken]) -> Tuple[int, int, bool]:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.num_workers,
                thread_name_prefix="mcts-sim"
            )

        attempted = succeeded = 0
        while attempted < num_simulations:
            if token is not None and token.cancelled:
                return attempted, succeeded, True
            batch = min(self.config.num_workers, num_simulations - attempted)
            futures = [self._executor.submit(self._run_simulation) for _ in range(batch)]
            attempted += batch
            # Let the whole batch finish before result() re-raises a worker error
            wait(futures)
            succeeded += sum(1 for future in futures if future.result())
        return attempted, succeeded, False

    def _run_simulation(self) -> bool:
        """Run one select/expand/evaluate/backup pass.

        Returns:
            True if the simulation was backed up, False if a collaborator
            failed and the simulation was abandoned
        """
        with self._lock:
            path = self._select()
            leaf = path[-1]
            expand = self._should_expand(leaf)
            apply_virtual_loss(path)

        try:
            if expand:
                children = self._build_children(leaf)
                with self._lock:
                    if not leaf.is_expanded:
                        self._attach_children(leaf, children)
                    child = ucb_select(leaf, self.config.exploration_constant,
                                       self.config.virtual_loss_value)
                    apply_virtual_loss([child])
                    path.append(child)
                leaf = child
            value, policy = self._evaluate(leaf)
        except SearchError:
            with self._lock:
                revert_virtual_loss(path)
            raise
        except Exception as exc:
            with self._lock:
                revert_virtual_loss(path)
            logger.warning(f"Simulation abandoned: {type(exc).__name__}: {exc}")
            return False

        with self._lock:
            if policy is not None:
                leaf.policy = policy
            revert_virtual_loss(path)
            backpropagate_path(path, value, self.config.alternate_sign)
        return True

    def _select(self) -> List[SearchNode]:
        """Descend by UCB until a terminal or unexpanded node."""
        node = self.root
        path = [node]
        while node.is_expanded and not node.is_terminal:
            node = ucb_select(node, self.config.exploration_constant, self.config.virtual_loss_value)
            path.append(node)
        return path

    def _should_expand(self, node: SearchNode) -> bool:
        if node.is_terminal or node.is_expanded or node.visit_count < 1:
            return False
        if self.node_count >= self.config.max_tree_nodes:
            logger.debug(f"Tree size cap {self.config.max_tree_nodes} reached, evaluating leaf unexpanded")
            return False
        return True

    def _build_children(self, node: SearchNode) -> Dict[Hashable, SearchNode]:
        """Create (but do not attach) one child per legal action."""
        actions = self.domain.legal_actions(node.state)
        if not actions:
            raise NoLegalActionsError(self.domain.state_key(node.state))

        keys = [self.domain.action_key(action) for action in actions]
        if len(set(keys)) != len(keys):
            raise SearchError(f"Domain returned duplicate action keys: {keys}")

        priors = priors_for_actions(node.policy or {}, keys)
        children = {}
        for action, key in zip(actions, keys):
            child_state = self.domain.next_state(node.state, action)
            children[key] = self._new_node(child_state, action=action, prior=priors[key])
        return children

    def _attach_children(self, node: SearchNode, children: Dict[Hashable, SearchNode]) -> None:
        for key, child in children.items():
            node.add_child(key, child)
        node.is_expanded = True
        self.node_count += len(children)
        self.nodes_created += len(children)

    def _evaluate(self, node: SearchNode) -> Tuple[float, Optional[Dict[Hashable, float]]]:
        """Terminal value for terminal nodes, evaluator otherwise."""
        if node.is_terminal:
            value = float(self.domain.terminal_value(node.state))
            policy = None
        else:
            evaluation = self.evaluator.evaluate(node.state)
            value = float(evaluation.value)
            policy = dict(evaluation.policy)
        if not math.isfinite(value):
            raise ValueError(f"Non-finite value {value}")
        return value, policy

    def _build_result(self, attempted: int, failed: int, cancelled: bool, elapsed: float) -> SearchResult:
        root = self.root
        best = select_most_visited(root)
        if best is None or best.visit_count == 0:
            action, confidence = None, 0.0
        else:
            action = best.action
            confidence = best.visit_count / root.visit_count

        return SearchResult(
            action=action,
            confidence=confidence,
            tree_stats=SearchTree(root).get_statistics(),
            visit_counts={key: child.visit_count for key, child in root.children.items()},
            actions={key: child.action for key, child in root.children.items()},
            simulations_run=attempted,
            failed_simulations=failed,
            cancelled=cancelled,
            elapsed_time=elapsed,
        )
