"""Test state features for the network."""

import torch
from mcts_planner.core.planning.actions import ACTION_IDS, get_action
from mcts_planner.core.planning.features import FEATURE_DIM, encode_batch, encode_state, state_features


def test_feature_length(construction_domain):
    state = construction_domain.initial_state()
    assert len(state_features(state)) == FEATURE_DIM
    assert FEATURE_DIM == 9 + 2 * len(ACTION_IDS)


def test_encode_state(construction_domain):
    x = encode_state(construction_domain.initial_state())
    assert x.shape == (FEATURE_DIM,)
    assert x.dtype == torch.float32


def test_features_bounded(construction_domain):
    state = construction_domain.initial_state()
    for action_id in ["analyze_structure", "calculate_quantities", "detect_errors"]:
        state = construction_domain.next_state(state, get_action(action_id))
    x = encode_state(state)
    assert torch.all(x >= 0.0)
    assert torch.all(x <= 1.0)


def test_last_action_one_hot(construction_domain):
    state = construction_domain.next_state(construction_domain.initial_state(), get_action("detect_errors"))
    one_hot = encode_state(state)[-len(ACTION_IDS):]
    assert one_hot.tolist() == [1.0 if a == "detect_errors" else 0.0 for a in ACTION_IDS]


def test_history_shares(construction_domain):
    state = construction_domain.initial_state()
    for action_id in ["analyze_structure", "analyze_structure", "verify_compliance", "detect_errors"]:
        state = construction_domain.next_state(state, get_action(action_id))
    shares = encode_state(state)[9:9 + len(ACTION_IDS)]
    assert shares.tolist() == [0.5, 0.0, 0.25, 0.25, 0.0]


def test_encode_batch(construction_domain):
    state = construction_domain.initial_state()
    batch = encode_batch([state, construction_domain.next_state(state, get_action("analyze_structure"))])
    assert batch.shape == (2, FEATURE_DIM)
