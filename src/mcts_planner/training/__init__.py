from .loss import ValuePolicyLoss
from .trainer import TrainingConfig, ValuePolicyTrainer
from .replay_buffer import ReplayBuffer, ReplayEntry
from .self_play import GameRecord, SelfPlayConfig, SelfPlayMetrics, SelfPlayRunner, sample_action

__all__ = [
    "ValuePolicyLoss",
    "TrainingConfig",
    "ValuePolicyTrainer",
    "ReplayBuffer",
    "ReplayEntry",
    "GameRecord",
    "SelfPlayConfig",
    "SelfPlayMetrics",
    "SelfPlayRunner",
    "sample_action",
]
