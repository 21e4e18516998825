"""Value/policy network: scores a plan state and proposes next actions.

V_θ(s) ≈ E[z | s],  p_θ(a | s) ≈ π_MCTS(a | s)
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import torch
import torch.nn as nn

from ..mcts.evaluator import Evaluation, Evaluator
from ..training.trainer import TrainingConfig, ValuePolicyTrainer


@dataclass
class NetworkConfig:
    """Value/policy network architecture."""
    input_dim: int = 19
    hidden_dims: List[int] = field(default_factory=lambda: [256, 128, 64])
    num_actions: int = 5
    dropout: float = 0.0


class ValuePolicyNetwork(nn.Module):
    """Shared MLP trunk with a value head and a policy head.

    Architecture:
    - MLP trunk over state features
    - Value head: scalar in [-1, 1] (tanh)
    - Policy head: logits over the action vocabulary
    """

    def __init__(self, config: Optional[NetworkConfig] = None):
        super().__init__()
        self.config = config or NetworkConfig()

        layers = []
        in_dim = self.config.input_dim
        for hidden_dim in self.config.hidden_dims:
            layers.append(nn.Linear(in_dim, hidden_dim))
            layers.append(nn.ReLU())
            if self.config.dropout > 0:
                layers.append(nn.Dropout(self.config.dropout))
            in_dim = hidden_dim
        self.trunk = nn.Sequential(*layers)

        self.value_head = nn.Sequential(
            nn.Linear(in_dim, 1),
            nn.Tanh()
        )
        self.policy_head = nn.Linear(in_dim, self.config.num_actions)

    def forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """Forward pass.

        Args:
            x: State features [B, input_dim]

        Returns:
            value [B], policy logits [B, num_actions]
        """
        h = self.trunk(x)
        value = self.value_head(h).squeeze(-1)
        logits = self.policy_head(h)
        return value, logits


class NeuralEvaluator(Evaluator):
    """Evaluator backed by a ValuePolicyNetwork.

    Args:
        network: The network
        featurizer: Maps a state to a feature tensor [input_dim]
        action_keys: Action vocabulary, index i is policy logit i
        training_config: Optimizer settings for train()
        device: Device (if None, auto-detect)
    """

    def __init__(
        self,
        network: ValuePolicyNetwork,
        featurizer: Callable[[Any], torch.Tensor],
        action_keys: Sequence[Hashable],
        training_config: Optional[TrainingConfig] = None,
        device: Optional[torch.device] = None
    ):
        if len(action_keys) != network.config.num_actions:
            raise ValueError(
                f"Network has {network.config.num_actions} policy outputs "
                f"but {len(action_keys)} action keys were given"
            )
        self.featurizer = featurizer
        self.action_keys = list(action_keys)
        self._index = {key: i for i, key in enumerate(self.action_keys)}
        self.trainer = ValuePolicyTrainer(network, training_config, device)
        self.network = self.trainer.model
        self.device = self.trainer.device
        self.network.eval()
        # Serializes weight updates against concurrent evaluation.
        self._lock = threading.Lock()

    def evaluate(self, state: Any) -> Evaluation:
        x = self.featurizer(state).unsqueeze(0).to(self.device)
        with self._lock, torch.no_grad():
            value, logits = self.network(x)
        probs = torch.softmax(logits[0], dim=-1).tolist()
        return Evaluation(
            value=max(-1.0, min(1.0, float(value[0].item()))),
            policy={key: p for key, p in zip(self.action_keys, probs)}
        )

    def train(self, batch: Sequence[Any]) -> Dict[str, float]:
        """One gradient step on replay entries.

        Entries need .state, .outcome and
        .search_statistics['visit_distribution'].
        """
        if not batch:
            raise ValueError("Cannot train on an empty batch")

        features = torch.stack([self.featurizer(entry.state) for entry in batch])
        target_values = torch.tensor([float(entry.outcome) for entry in batch], dtype=torch.float32)
        target_policies = torch.stack([self.policy_target(entry) for entry in batch])

        with self._lock:
            return self.trainer.train_step(features, target_values, target_policies)

    def policy_target(self, entry: Any) -> torch.Tensor:
        """Visit distribution over the action vocabulary (uniform if empty)."""
        target = torch.zeros(len(self.action_keys), dtype=torch.float32)
        distribution = (entry.search_statistics or {}).get('visit_distribution', {})
        for key, p in distribution.items():
            index = self._index.get(key)
            if index is not None:
                target[index] = float(p)
        total = target.sum()
        if total <= 0:
            return torch.full_like(target, 1.0 / len(self.action_keys))
        return target / total

    def save(self, path: str) -> None:
        self.trainer.save_checkpoint(path, extra={
            'action_keys': [str(key) for key in self.action_keys],
        })

    def load(self, path: str) -> None:
        with self._lock:
            self.trainer.load_checkpoint(path)


def create_construction_evaluator(
    network_config: Optional[NetworkConfig] = None,
    training_config: Optional[TrainingConfig] = None,
    device: Optional[torch.device] = None
) -> NeuralEvaluator:
    """NeuralEvaluator wired to the construction plan features and actions."""
    from ..core.planning.actions import ACTION_IDS
    from ..core.planning.features import FEATURE_DIM, encode_state

    config = replace(network_config or NetworkConfig(), input_dim=FEATURE_DIM, num_actions=len(ACTION_IDS))
    network = ValuePolicyNetwork(config)
    return NeuralEvaluator(network, encode_state, ACTION_IDS, training_config, device)
