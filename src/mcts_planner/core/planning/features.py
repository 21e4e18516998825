"""State features for the value/policy network."""

from typing import List, Sequence

import torch

from .actions import ACTION_IDS
from .state import ConstructionState

# Scale for element / history counts.
MAX_ELEMENTS = 100
MAX_HISTORY = 50

FEATURE_DIM = 9 + 2 * len(ACTION_IDS)


def state_features(state: ConstructionState) -> List[float]:
    """Fixed-length feature list for a state.

    Layout:
        0: element count (scaled)
        1: quantity coverage of elements
        2: error rate
        3-5: compliance flags hoai/din276/vob
        6: completeness
        7: has cost optimization findings
        8: history length (scaled)
        9..: per-action share of history
        ..: one-hot of last action
    """
    n_elements = len(state.elements)
    n_history = len(state.action_history)

    features = [
        min(n_elements / MAX_ELEMENTS, 1.0),
        min(len(state.quantities) / max(n_elements, 1), 1.0),
        min(len(state.errors) / max(n_elements, 1), 1.0),
        float(bool(state.compliance.get("hoai"))),
        float(bool(state.compliance.get("din276"))),
        float(bool(state.compliance.get("vob"))),
        state.completeness(),
        float(bool(state.optimizations)),
        min(n_history / MAX_HISTORY, 1.0),
    ]

    for action_id in ACTION_IDS:
        features.append(state.action_history.count(action_id) / max(n_history, 1))

    for action_id in ACTION_IDS:
        features.append(1.0 if state.last_action == action_id else 0.0)

    return features


def encode_state(state: ConstructionState) -> torch.Tensor:
    """Features as a float tensor [FEATURE_DIM]."""
    return torch.tensor(state_features(state), dtype=torch.float32)


def encode_batch(states: Sequence[ConstructionState]) -> torch.Tensor:
    """Stacked features [B, FEATURE_DIM]."""
    return torch.stack([encode_state(state) for state in states])
