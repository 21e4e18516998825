"""Test construction state copying and hashing."""

import pytest
from mcts_planner.core.planning.state import ConstructionState


@pytest.fixture
def state():
    return ConstructionState(
        plan_id="p1",
        elements=[{"id": "wall", "din276_group": "331"}],
        quantities={"wall": 10.0},
        action_history=["analyze_structure", "calculate_quantities"],
        last_action="calculate_quantities",
    )


def test_defaults():
    state = ConstructionState(plan_id="p")
    assert state.hoai_phase == "LP6"
    assert state.compliance == {"hoai": True, "din276": True, "vob": True}
    assert state.elements == []
    assert state.last_action is None


def test_deep_copy_independence(state):
    """Test that deep copy is independent."""
    clone = state.copy()
    clone.elements[0]["id"] = "changed"
    clone.quantities["slab"] = 5.0
    clone.action_history.append("detect_errors")

    assert state.elements[0]["id"] == "wall"
    assert "slab" not in state.quantities
    assert len(state.action_history) == 2


def test_dict_roundtrip(state):
    assert ConstructionState.from_dict(state.to_dict()) == state


def test_key_is_stable(state):
    assert state.key() == state.copy().key()
    assert len(state.key()) == 40


def test_key_changes_with_content(state):
    other = state.copy()
    other.quantities["wall"] = 11.0
    assert other.key() != state.key()


def test_key_ignores_dict_insertion_order():
    a = ConstructionState(plan_id="p", quantities={"x": 1.0, "y": 2.0})
    b = ConstructionState(plan_id="p", quantities={"y": 2.0, "x": 1.0})
    assert a.key() == b.key()


def test_completeness(state):
    # elements, quantities, compliance filled; din276_costs empty
    assert state.completeness() == pytest.approx(0.75)
    state.din276_costs = {"300": 100.0}
    assert state.completeness() == pytest.approx(1.0)
