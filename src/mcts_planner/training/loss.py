"""Value/policy loss for self-play training."""

from typing import Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F


class ValuePolicyLoss(nn.Module):
    """AlphaZero-style loss.

    L_total = λ_V·MSE(v, z) + λ_P·CE(π, p)

    z is the game outcome, π the root visit distribution from search and
    p the network's policy.
    """

    def __init__(self, value_weight: float = 1.0, policy_weight: float = 1.0):
        """Initialize loss function.

        Args:
            value_weight: Weight for value regression
            policy_weight: Weight for policy cross-entropy
        """
        super().__init__()
        self.value_weight = value_weight
        self.policy_weight = policy_weight

    def forward(
        self,
        value_pred: torch.Tensor,
        policy_logits: torch.Tensor,
        target_value: torch.Tensor,
        target_policy: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """Compute total loss.

        Args:
            value_pred: Predicted values [B]
            policy_logits: Policy logits [B, A]
            target_value: Outcomes [B]
            target_policy: Visit distributions [B, A]

        Returns:
            (total, value_loss, policy_loss)
        """
        L_value = F.mse_loss(value_pred, target_value)
        log_probs = F.log_softmax(policy_logits, dim=-1)
        L_policy = -(target_policy * log_probs).sum(dim=-1).mean()

        total = self.value_weight * L_value + self.policy_weight * L_policy
        return total, L_value, L_policy
