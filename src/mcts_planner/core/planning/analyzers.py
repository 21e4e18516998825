"""Plan analysis strategies.

The domain delegates every analysis step to a PlanAnalyzer. Real analysis
(CAD parsing, quantity take-off, regulatory checks) plugs in here; the
default PlanDocumentAnalyzer only reads and aggregates what a plan
document already declares.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .state import ConstructionState

# DIN 276 top-level cost groups.
DIN276_GROUPS = ("100", "200", "300", "400", "500", "600", "700", "800")


def din276_top_group(code: str) -> Optional[str]:
    """Map a cost group code like '331' to its top-level group '300'."""
    code = str(code).strip()
    if len(code) != 3 or not code.isdigit():
        return None
    top = code[0] + "00"
    return top if top in DIN276_GROUPS else None


@dataclass
class PlanElement:
    """One element listed in a plan document."""
    id: str
    din276_group: str
    description: str = ""
    quantity: Optional[float] = None
    unit: str = ""
    unit_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlanDocument:
    """Plan description the default analyzer reads from.

    Attributes:
        plan_id: Plan identifier
        elements: Listed elements
        hoai_phase: HOAI phase the plan was issued for
        declared_compliance: Compliance flags declared by the planner
    """
    plan_id: str
    elements: List[PlanElement] = field(default_factory=list)
    hoai_phase: str = "LP6"
    declared_compliance: Dict[str, bool] = field(
        default_factory=lambda: {"hoai": True, "din276": True, "vob": True}
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlanDocument':
        if "plan_id" not in data:
            raise KeyError("Plan document requires 'plan_id'")
        elements = [PlanElement(**element) for element in data.get("elements") or []]
        kwargs = {"plan_id": str(data["plan_id"]), "elements": elements}
        if "hoai_phase" in data:
            kwargs["hoai_phase"] = data["hoai_phase"]
        if "declared_compliance" in data:
            kwargs["declared_compliance"] = dict(data["declared_compliance"])
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str) -> 'PlanDocument':
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Plan document not found: {p}")
        with open(p, 'r') as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Plan document root must be a mapping, got {type(data)}")
        return cls.from_dict(data)


class PlanAnalyzer(ABC):
    """Strategy behind each analysis action.

    Every method receives the state before the action is applied and
    returns the new value of the corresponding state field.
    """

    @abstractmethod
    def analyze_elements(self, state: ConstructionState) -> List[Dict[str, Any]]:
        """Structural elements of the plan."""

    @abstractmethod
    def calculate_quantities(self, state: ConstructionState) -> Dict[str, float]:
        """Bill of quantities for the known elements."""

    @abstractmethod
    def verify_compliance(self, state: ConstructionState) -> Dict[str, bool]:
        """Compliance flags keyed hoai/din276/vob."""

    @abstractmethod
    def detect_errors(self, state: ConstructionState) -> List[Dict[str, Any]]:
        """Plan errors found in the known elements."""

    @abstractmethod
    def cost_breakdown(self, state: ConstructionState) -> Dict[str, float]:
        """Cost per DIN 276 top-level group."""

    @abstractmethod
    def optimize_costs(self, state: ConstructionState) -> Dict[str, float]:
        """Cost structure findings."""


class PlanDocumentAnalyzer(PlanAnalyzer):
    """Reads everything from a PlanDocument. No inference beyond sums."""

    def __init__(self, document: PlanDocument):
        self.document = document

    def analyze_elements(self, state: ConstructionState) -> List[Dict[str, Any]]:
        return [element.to_dict() for element in self.document.elements]

    def calculate_quantities(self, state: ConstructionState) -> Dict[str, float]:
        quantities = {}
        for element in state.elements:
            quantity = element.get("quantity")
            if quantity is not None and quantity > 0:
                quantities[element["id"]] = float(quantity)
        return quantities

    def verify_compliance(self, state: ConstructionState) -> Dict[str, bool]:
        declared = self.document.declared_compliance
        groups_valid = all(din276_top_group(e.get("din276_group", "")) for e in state.elements)
        return {
            "hoai": bool(declared.get("hoai", False)) and state.hoai_phase == self.document.hoai_phase,
            "din276": bool(declared.get("din276", False)) and groups_valid,
            "vob": bool(declared.get("vob", False)),
        }

    def detect_errors(self, state: ConstructionState) -> List[Dict[str, Any]]:
        errors = []
        for element in state.elements:
            element_id = element.get("id")
            if din276_top_group(element.get("din276_group", "")) is None:
                errors.append({"element_id": element_id, "reason": "invalid_cost_group"})
            quantity = element.get("quantity")
            if quantity is None or quantity <= 0:
                errors.append({"element_id": element_id, "reason": "missing_quantity"})
            if element.get("unit_price") is None:
                errors.append({"element_id": element_id, "reason": "missing_unit_price"})
        return errors

    def cost_breakdown(self, state: ConstructionState) -> Dict[str, float]:
        costs: Dict[str, float] = {}
        for element in state.elements:
            group = din276_top_group(element.get("din276_group", ""))
            quantity = state.quantities.get(element.get("id"))
            unit_price = element.get("unit_price")
            if group is None or quantity is None or unit_price is None:
                continue
            costs[group] = costs.get(group, 0.0) + quantity * float(unit_price)
        return costs

    def optimize_costs(self, state: ConstructionState) -> Dict[str, float]:
        """Share of total cost per cost group, largest first."""
        costs = self.cost_breakdown(state)
        total = sum(costs.values())
        if total <= 0:
            return {}
        ranked = sorted(costs.items(), key=lambda item: item[1], reverse=True)
        return {group: cost / total for group, cost in ranked}
