"""Value/policy evaluator interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Sequence


@dataclass
class Evaluation:
    """Output of a value/policy evaluation.

    Attributes:
        value: Scalar value estimate, expected in [-1, 1]
        policy: Probability per action key; keys the evaluator has no
            opinion about may be missing
    """
    value: float
    policy: Dict[Hashable, float] = field(default_factory=dict)


class Evaluator(ABC):
    """Scores leaf states and proposes action priors."""

    @abstractmethod
    def evaluate(self, state: Any) -> Evaluation:
        """Evaluate a non-terminal state."""

    @abstractmethod
    def train(self, batch: Sequence[Any]) -> Dict[str, float]:
        """Update from a batch of replay entries.

        Returns:
            Dict with at least a 'loss' entry
        """


class UniformEvaluator(Evaluator):
    """Deterministic stub: fixed value and no policy preference.

    An empty policy makes expansion fall back to uniform priors.
    """

    def __init__(self, value: float = 0.0):
        self.value = value
        self.train_calls = 0

    def evaluate(self, state: Any) -> Evaluation:
        return Evaluation(value=self.value)

    def train(self, batch: Sequence[Any]) -> Dict[str, float]:
        self.train_calls += 1
        return {'loss': 0.0}


def priors_for_actions(policy: Dict[Hashable, float], keys: List[Hashable]) -> Dict[Hashable, float]:
    """Restrict a policy to the legal action keys and renormalize.

    Falls back to uniform priors when the policy gives no mass to any
    legal action.

    Args:
        policy: Evaluator policy (may be empty)
        keys: Legal action keys

    Returns:
        Prior per key, summing to 1
    """
    if not keys:
        return {}
    masses = {key: max(float(policy.get(key, 0.0)), 0.0) for key in keys}
    total = sum(masses.values())
    if total <= 0.0:
        return {key: 1.0 / len(keys) for key in keys}
    return {key: mass / total for key, mass in masses.items()}
