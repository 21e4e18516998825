"""Construction plan analysis as a search domain."""

import uuid
from typing import Any, Dict, List, Optional

from ...mcts.domain import SearchDomain
from .actions import (
    ACTION_CATALOG,
    ANALYSIS,
    CALCULATION,
    DETECTION,
    OPTIMIZATION,
    VERIFICATION,
    Action,
    get_action,
)
from .analyzers import PlanAnalyzer
from .state import ConstructionState


class ConstructionPlanDomain(SearchDomain):
    """Sequencing of analysis steps over one construction plan.

    An analysis is complete once at least min_actions steps were taken and
    elements, quantities and compliance are all populated. The terminal
    value rewards compliance and completeness and penalizes the error rate.
    """

    def __init__(
        self,
        analyzer: PlanAnalyzer,
        plan_id: Optional[str] = None,
        hoai_phase: str = "LP6",
        min_actions: int = 5
    ):
        self.analyzer = analyzer
        self.plan_id = plan_id
        self.hoai_phase = hoai_phase
        self.min_actions = min_actions

    def initial_state(self) -> ConstructionState:
        plan_id = self.plan_id or f"plan_{uuid.uuid4().hex[:12]}"
        return ConstructionState(plan_id=plan_id, hoai_phase=self.hoai_phase)

    def legal_actions(self, state: ConstructionState) -> List[Action]:
        return [action for action in ACTION_CATALOG if self.is_action_legal(state, action)]

    def is_action_legal(self, state: ConstructionState, action: Action) -> bool:
        # Quantities need elements; cost optimization needs quantities.
        if action.type == CALCULATION and not state.elements:
            return False
        if action.type == OPTIMIZATION and not state.quantities:
            return False
        return True

    def next_state(self, state: ConstructionState, action: Action) -> ConstructionState:
        new_state = state.copy()

        if action.type == ANALYSIS:
            new_state.elements = self.analyzer.analyze_elements(state)
        elif action.type == CALCULATION:
            new_state.quantities = self.analyzer.calculate_quantities(state)
        elif action.type == VERIFICATION:
            new_state.compliance = self.analyzer.verify_compliance(state)
        elif action.type == DETECTION:
            new_state.errors = self.analyzer.detect_errors(state)
        elif action.type == OPTIMIZATION:
            new_state.din276_costs = self.analyzer.cost_breakdown(state)
            new_state.optimizations = self.analyzer.optimize_costs(state)
        else:
            raise ValueError(f"Unknown action type: {action.type}")

        new_state.last_action = action.id
        new_state.action_history.append(action.id)
        return new_state

    def is_terminal(self, state: ConstructionState) -> bool:
        return (
            len(state.action_history) >= self.min_actions
            and bool(state.elements)
            and bool(state.quantities)
            and bool(state.compliance)
        )

    def terminal_value(self, state: ConstructionState) -> float:
        value = 0.0

        # Compliance bonus
        if state.compliance.get("hoai"):
            value += 0.3
        if state.compliance.get("din276"):
            value += 0.3
        if state.compliance.get("vob"):
            value += 0.2

        # Accuracy penalty
        error_rate = len(state.errors) / max(len(state.elements), 1)
        value -= error_rate * 0.5

        # Completeness bonus
        value += state.completeness() * 0.2

        return max(-1.0, min(1.0, value))

    def action_key(self, action: Action) -> str:
        return action.id

    def state_key(self, state: ConstructionState) -> str:
        return state.key()

    def encode_state(self, state: ConstructionState) -> Dict[str, Any]:
        return state.to_dict()

    def decode_state(self, data: Dict[str, Any]) -> ConstructionState:
        return ConstructionState.from_dict(data)

    def encode_action(self, action: Action) -> str:
        return action.id

    def decode_action(self, data: str) -> Action:
        return get_action(data)
