"""Analysis actions available on a construction plan."""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Action:
    """One analysis step.

    Attributes:
        id: Unique action identifier (used as the search key)
        type: Action category, drives the state transition
        target: What the step works on
    """
    id: str
    type: str
    target: str


ANALYSIS = "analysis"
CALCULATION = "calculation"
VERIFICATION = "verification"
DETECTION = "detection"
OPTIMIZATION = "optimization"

ANALYZE_STRUCTURE = Action("analyze_structure", ANALYSIS, "structural_elements")
CALCULATE_QUANTITIES = Action("calculate_quantities", CALCULATION, "bill_of_quantities")
VERIFY_COMPLIANCE = Action("verify_compliance", VERIFICATION, "hoai_compliance")
DETECT_ERRORS = Action("detect_errors", DETECTION, "plan_errors")
OPTIMIZE_COSTS = Action("optimize_costs", OPTIMIZATION, "cost_structure")

# Order is part of the network's action vocabulary; append only.
ACTION_CATALOG: Tuple[Action, ...] = (
    ANALYZE_STRUCTURE,
    CALCULATE_QUANTITIES,
    VERIFY_COMPLIANCE,
    DETECT_ERRORS,
    OPTIMIZE_COSTS,
)

ACTION_IDS: Tuple[str, ...] = tuple(action.id for action in ACTION_CATALOG)

_BY_ID: Dict[str, Action] = {action.id: action for action in ACTION_CATALOG}


def get_action(action_id: str) -> Action:
    """Look up a catalog action by id.

    Raises:
        KeyError: If the id is not in the catalog
    """
    try:
        return _BY_ID[action_id]
    except KeyError:
        raise KeyError(f"Unknown action: {action_id}") from None
