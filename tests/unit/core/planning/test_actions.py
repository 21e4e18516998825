"""Test the analysis action catalog."""

import pytest
from mcts_planner.core.planning.actions import ACTION_CATALOG, ACTION_IDS, get_action


def test_catalog_ids_unique():
    assert len(ACTION_IDS) == 5
    assert len(set(ACTION_IDS)) == len(ACTION_IDS)


def test_catalog_order():
    assert ACTION_IDS == (
        "analyze_structure",
        "calculate_quantities",
        "verify_compliance",
        "detect_errors",
        "optimize_costs",
    )


def test_get_action():
    action = get_action("verify_compliance")
    assert action.type == "verification"
    assert action.target == "hoai_compliance"
    assert action in ACTION_CATALOG


def test_unknown_action():
    with pytest.raises(KeyError, match="Unknown action"):
        get_action("demolish")


def test_actions_are_hashable_and_frozen():
    action = get_action("detect_errors")
    assert {action: 1}[get_action("detect_errors")] == 1
    with pytest.raises(AttributeError):
        action.id = "other"
