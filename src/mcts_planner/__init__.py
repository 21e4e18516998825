"""MCTS planner for construction plan analysis.

Monte Carlo Tree Search sequences analysis steps over a plan.
A value/policy network scores partial analyses and proposes next steps.
Self-play fills a replay buffer the network trains from.

Components:
- mcts/ - Tree, UCB selection, backup, search loop
- models/ - Value/policy network and evaluator
- training/ - Replay buffer, self-play, trainer
- core/planning/ - Construction plan domain and analyzers
"""

__version__ = "0.1.0"

from .mcts.search import MCTSSearch, MCTSConfig, SearchResult, CancellationToken
from .mcts.domain import SearchDomain
from .mcts.evaluator import Evaluation, Evaluator, UniformEvaluator
from .engine import PlanningEngine, EngineConfig, create_construction_engine

__all__ = [
    "MCTSSearch",
    "MCTSConfig",
    "SearchResult",
    "CancellationToken",
    "SearchDomain",
    "Evaluation",
    "Evaluator",
    "UniformEvaluator",
    "PlanningEngine",
    "EngineConfig",
    "create_construction_engine",
]
