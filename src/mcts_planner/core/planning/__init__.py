"""Construction plan analysis domain."""

from .actions import Action, ACTION_CATALOG, ACTION_IDS, get_action
from .state import ConstructionState
from .analyzers import PlanAnalyzer, PlanDocument, PlanDocumentAnalyzer, PlanElement
from .domain import ConstructionPlanDomain
from .features import FEATURE_DIM, encode_state, encode_batch

__all__ = [
    "Action",
    "ACTION_CATALOG",
    "ACTION_IDS",
    "get_action",
    "ConstructionState",
    "PlanAnalyzer",
    "PlanDocument",
    "PlanDocumentAnalyzer",
    "PlanElement",
    "ConstructionPlanDomain",
    "FEATURE_DIM",
    "encode_state",
    "encode_batch",
]
