"""Pytest fixtures for testing."""

import threading

import numpy as np
import pytest
import torch

from mcts_planner.mcts.domain import SearchDomain
from mcts_planner.mcts.evaluator import Evaluation, Evaluator, UniformEvaluator


class ChainDomain(SearchDomain):
    """Toy game: pick one of `branching` digits, `depth` times.

    The terminal value rewards picking `good_action` every move:
    2 * (share of good moves) - 1, so all-good scores 1.0 and all-bad -1.0.
    """

    def __init__(self, branching: int = 2, depth: int = 3, good_action: int = 0):
        self.branching = branching
        self.depth = depth
        self.good_action = good_action

    def initial_state(self):
        return ()

    def legal_actions(self, state):
        return list(range(self.branching))

    def next_state(self, state, action):
        return state + (action,)

    def is_terminal(self, state):
        return len(state) >= self.depth

    def terminal_value(self, state):
        good = sum(1 for a in state if a == self.good_action)
        return 2.0 * good / self.depth - 1.0

    def decode_state(self, data):
        return tuple(data)


class ScriptedEvaluator(Evaluator):
    """Evaluator with a fixed value and policy that can fail on chosen calls."""

    def __init__(self, value=0.0, policy=None, fail_on=(), fail_always=False):
        self.value = value
        self.policy = policy or {}
        self.fail_on = set(fail_on)
        self.fail_always = fail_always
        self.calls = 0
        self.train_calls = 0
        self._lock = threading.Lock()

    def evaluate(self, state):
        with self._lock:
            self.calls += 1
            call = self.calls
        if self.fail_always or call in self.fail_on:
            raise RuntimeError(f"evaluator failure on call {call}")
        return Evaluation(value=self.value, policy=dict(self.policy))

    def train(self, batch):
        self.train_calls += 1
        return {'loss': 0.5}


@pytest.fixture
def seed():
    """Set random seed for reproducibility."""
    seed_value = 42
    torch.manual_seed(seed_value)
    np.random.seed(seed_value)
    return seed_value


@pytest.fixture
def device():
    """CPU device for testing."""
    return torch.device("cpu")


@pytest.fixture
def chain_domain_cls():
    """The toy domain class, for tests that subclass it."""
    return ChainDomain


@pytest.fixture
def chain_domain():
    """Two choices per move, three moves."""
    return ChainDomain(branching=2, depth=3)


@pytest.fixture
def uniform_evaluator():
    return UniformEvaluator()


@pytest.fixture
def scripted_evaluator_cls():
    return ScriptedEvaluator


@pytest.fixture
def plan_data():
    """Plan document with three valid, fully priced elements."""
    return {
        "plan_id": "test_plan",
        "hoai_phase": "LP6",
        "declared_compliance": {"hoai": True, "din276": True, "vob": True},
        "elements": [
            {"id": "wall", "din276_group": "331", "description": "Exterior wall",
             "quantity": 100.0, "unit": "m2", "unit_price": 80.0},
            {"id": "slab", "din276_group": "351", "description": "Floor slab",
             "quantity": 50.0, "unit": "m2", "unit_price": 120.0},
            {"id": "heating", "din276_group": "420", "description": "Heat pump",
             "quantity": 1.0, "unit": "pcs", "unit_price": 20000.0},
        ],
    }


@pytest.fixture
def plan_document(plan_data):
    from mcts_planner.core.planning.analyzers import PlanDocument
    return PlanDocument.from_dict(plan_data)


@pytest.fixture
def faulty_plan_document():
    """One element with an invalid cost group, no quantity and no price."""
    from mcts_planner.core.planning.analyzers import PlanDocument
    return PlanDocument.from_dict({
        "plan_id": "faulty_plan",
        "elements": [
            {"id": "mystery", "din276_group": "999", "description": "Unknown"},
        ],
    })


@pytest.fixture
def analyzer(plan_document):
    from mcts_planner.core.planning.analyzers import PlanDocumentAnalyzer
    return PlanDocumentAnalyzer(plan_document)


@pytest.fixture
def construction_domain(analyzer):
    from mcts_planner.core.planning.domain import ConstructionPlanDomain
    return ConstructionPlanDomain(analyzer, plan_id="test_plan")
