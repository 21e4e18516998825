"""Test the value/policy loss and trainer."""

import math

import pytest
import torch
import torch.nn as nn
from mcts_planner.training.loss import ValuePolicyLoss
from mcts_planner.training.trainer import TrainingConfig, ValuePolicyTrainer


class TinyNet(nn.Module):
    def __init__(self, input_dim=4, num_actions=3):
        super().__init__()
        self.value = nn.Linear(input_dim, 1)
        self.policy = nn.Linear(input_dim, num_actions)

    def forward(self, x):
        return torch.tanh(self.value(x)).squeeze(-1), self.policy(x)


@pytest.fixture
def batch(seed):
    features = torch.randn(8, 4)
    values = torch.rand(8) * 2 - 1
    policies = torch.softmax(torch.randn(8, 3), dim=-1)
    return features, values, policies


def test_uniform_policy_loss_is_log_actions():
    loss_fn = ValuePolicyLoss()
    logits = torch.zeros(2, 4)
    target = torch.full((2, 4), 0.25)
    total, value_loss, policy_loss = loss_fn(torch.zeros(2), logits, torch.zeros(2), target)

    assert value_loss.item() == pytest.approx(0.0)
    assert policy_loss.item() == pytest.approx(math.log(4))
    assert total.item() == pytest.approx(math.log(4))


def test_loss_weights():
    loss_fn = ValuePolicyLoss(value_weight=2.0, policy_weight=0.0)
    total, value_loss, _ = loss_fn(
        torch.tensor([0.5]), torch.zeros(1, 2), torch.tensor([-0.5]), torch.tensor([[1.0, 0.0]])
    )
    assert value_loss.item() == pytest.approx(1.0)
    assert total.item() == pytest.approx(2.0)


def test_train_step_updates_weights(seed, device, batch):
    trainer = ValuePolicyTrainer(TinyNet(), TrainingConfig(), device)
    before = [p.detach().clone() for p in trainer.model.parameters()]

    result = trainer.train_step(*batch)

    assert set(result) == {'loss', 'value_loss', 'policy_loss'}
    assert trainer.steps == 1
    assert not trainer.model.training
    assert any(not torch.equal(b, p) for b, p in zip(before, trainer.model.parameters()))


def test_training_reduces_loss(seed, device, batch):
    trainer = ValuePolicyTrainer(TinyNet(), TrainingConfig(learning_rate=1e-2), device)
    first = trainer.train_step(*batch)['loss']
    for _ in range(100):
        last = trainer.train_step(*batch)['loss']
    assert last < first


def test_checkpoint_roundtrip(seed, device, batch, tmp_path):
    trainer = ValuePolicyTrainer(TinyNet(), TrainingConfig(), device)
    trainer.train_step(*batch)
    path = tmp_path / "ckpt" / "model.pt"
    trainer.save_checkpoint(str(path), extra={'note': 'test'})

    restored = ValuePolicyTrainer(TinyNet(), TrainingConfig(), device)
    checkpoint = restored.load_checkpoint(str(path))

    assert checkpoint['note'] == 'test'
    assert restored.steps == 1
    for a, b in zip(trainer.model.parameters(), restored.model.parameters()):
        assert torch.equal(a, b)
