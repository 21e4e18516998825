"""Training step and checkpointing for the value/policy network."""

import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import torch
import torch.nn as nn

from .loss import ValuePolicyLoss

logger = logging.getLogger(__name__)


@dataclass
class TrainingConfig:
    """Optimizer and loss settings."""
    learning_rate: float = 1e-3
    weight_decay: float = 0.01
    value_loss_weight: float = 1.0
    policy_loss_weight: float = 1.0
    max_grad_norm: float = 1.0


class ValuePolicyTrainer:
    """One gradient step per replay batch."""

    def __init__(
        self,
        model: nn.Module,
        config: Optional[TrainingConfig] = None,
        device: Optional[torch.device] = None
    ):
        """Initialize trainer.

        Args:
            model: Value/policy network
            config: Training configuration
            device: Device (if None, auto-detect)
        """
        self.config = config or TrainingConfig()
        self.device = device or torch.device("cuda" if torch.cuda.is_available() else "cpu")
        self.model = model.to(self.device)

        self.loss_fn = ValuePolicyLoss(
            value_weight=self.config.value_loss_weight,
            policy_weight=self.config.policy_loss_weight
        )

        self.optimizer = torch.optim.AdamW(
            self.model.parameters(),
            lr=self.config.learning_rate,
            weight_decay=self.config.weight_decay
        )

        self.steps = 0

    def train_step(
        self,
        features: torch.Tensor,
        target_values: torch.Tensor,
        target_policies: torch.Tensor
    ) -> Dict[str, float]:
        """Single optimizer step.

        Args:
            features: State features [B, F]
            target_values: Outcomes [B]
            target_policies: Visit distributions [B, A]

        Returns:
            Dict with loss values
        """
        features = features.to(self.device)
        target_values = target_values.to(self.device)
        target_policies = target_policies.to(self.device)

        self.model.train()
        value_pred, policy_logits = self.model(features)
        loss, value_loss, policy_loss = self.loss_fn(
            value_pred, policy_logits, target_values, target_policies
        )

        # Backward
        self.optimizer.zero_grad()
        loss.backward()

        # Gradient clipping
        torch.nn.utils.clip_grad_norm_(self.model.parameters(), max_norm=self.config.max_grad_norm)

        self.optimizer.step()
        self.model.eval()
        self.steps += 1

        return {
            'loss': loss.item(),
            'value_loss': value_loss.item(),
            'policy_loss': policy_loss.item()
        }

    def save_checkpoint(self, path: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Save model and optimizer state.

        Args:
            path: Checkpoint file
            extra: Additional entries stored alongside
        """
        checkpoint = {
            'steps': self.steps,
            'model_state_dict': self.model.state_dict(),
            'optimizer_state_dict': self.optimizer.state_dict(),
            'config': asdict(self.config),
        }
        if extra:
            checkpoint.update(extra)

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        torch.save(checkpoint, path)
        logger.info(f"Saved checkpoint to {path}")

    def load_checkpoint(self, path: str) -> Dict[str, Any]:
        """Restore model and optimizer state.

        Returns:
            The loaded checkpoint dict
        """
        checkpoint = torch.load(path, map_location=self.device)
        self.model.load_state_dict(checkpoint['model_state_dict'])
        if 'optimizer_state_dict' in checkpoint:
            self.optimizer.load_state_dict(checkpoint['optimizer_state_dict'])
        self.steps = checkpoint.get('steps', 0)
        self.model.eval()
        logger.info(f"Loaded checkpoint from {path}")
        return checkpoint
