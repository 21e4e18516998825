"""Construction plan analysis state."""

import copy
import hashlib
import json
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


def _default_compliance() -> Dict[str, bool]:
    return {"hoai": True, "din276": True, "vob": True}


# Fields that count towards completeness of an analysis.
COMPLETENESS_FIELDS = ("elements", "quantities", "compliance", "din276_costs")


@dataclass
class ConstructionState:
    """Partially built analysis of one construction plan.

    Treated as immutable by the search: transitions work on copy().

    Attributes:
        plan_id: Plan being analyzed
        elements: Structural elements found so far (list of dicts)
        quantities: Bill of quantities, element id -> quantity
        din276_costs: Cost per DIN 276 cost group
        hoai_phase: HOAI service phase the analysis belongs to
        compliance: Compliance flags (hoai, din276, vob)
        errors: Detected plan errors (list of dicts)
        optimizations: Cost structure findings, cost group -> cost share
        action_history: Ids of applied actions, in order
        last_action: Id of the most recent action
    """
    plan_id: str
    elements: List[Dict[str, Any]] = field(default_factory=list)
    quantities: Dict[str, float] = field(default_factory=dict)
    din276_costs: Dict[str, float] = field(default_factory=dict)
    hoai_phase: str = "LP6"
    compliance: Dict[str, bool] = field(default_factory=_default_compliance)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    optimizations: Dict[str, float] = field(default_factory=dict)
    action_history: List[str] = field(default_factory=list)
    last_action: Optional[str] = None

    def copy(self) -> 'ConstructionState':
        """Deep copy; nothing is shared with the original."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConstructionState':
        return cls(**copy.deepcopy(data))

    def key(self) -> str:
        """SHA-1 of the canonical JSON form."""
        payload = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()

    def completeness(self) -> float:
        """Fraction of COMPLETENESS_FIELDS that are populated."""
        filled = sum(1 for name in COMPLETENESS_FIELDS if getattr(self, name))
        return filled / len(COMPLETENESS_FIELDS)
