"""MCTS module: tree search over plan states.

Selection walks the tree by UCB.
Expansion creates one child per legal action.
The evaluator scores leaves and proposes priors.
Backup feeds the value to every node on the path.
"""

from .node import SearchNode
from .tree import SearchTree, TreeStats
from .ucb import ucb_select, ucb_score, select_most_visited
from .backprop import backpropagate, backpropagate_path
from .domain import SearchDomain
from .evaluator import Evaluation, Evaluator, UniformEvaluator
from .exceptions import SearchError, TerminalStateError, NoLegalActionsError
from .search import MCTSSearch, MCTSConfig, SearchResult, CancellationToken

__all__ = [
    "SearchNode",
    "SearchTree",
    "TreeStats",
    "ucb_select",
    "ucb_score",
    "select_most_visited",
    "backpropagate",
    "backpropagate_path",
    "SearchDomain",
    "Evaluation",
    "Evaluator",
    "UniformEvaluator",
    "SearchError",
    "TerminalStateError",
    "NoLegalActionsError",
    "MCTSSearch",
    "MCTSConfig",
    "SearchResult",
    "CancellationToken",
]
