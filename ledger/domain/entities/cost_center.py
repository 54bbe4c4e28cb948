"""
Cost Center Entity - Budget-owning organizational unit.

Cost centers form a forest through `parent_cost_center_id`. Allocations
capture a CostCenterSnapshot so historical records keep the code and name
they were calculated with.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .base import optional_float, parse_datetime, text


class BudgetEnforcement(str, Enum):
    """How budget overruns are treated when validating new allocations."""
    STRICT = "strict"      # Reject allocations that exceed budget
    WARNING = "warning"    # Allow but warn about overruns
    NONE = "none"          # No enforcement


@dataclass(frozen=True)
class CostCenterSnapshot:
    """Copy of a cost center's identity captured onto an allocation."""

    id: str
    code: str
    name: str

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["CostCenterSnapshot"]:
        if not data:
            return None
        return cls(id=str(data["id"]), code=data.get("code", ""), name=data.get("name", ""))

    def to_dict(self) -> dict:
        return {'id': self.id, 'code': self.code, 'name': self.name}


@dataclass(frozen=True)
class CostCenter:
    """
    Cost center with optional budget and parent.

    Attributes:
        id: Unique identifier
        code: Short code, stored uppercased (2-10 chars of A-Z, 0-9, _ and -)
        name: Display name
        manager: Manager name (need not be a team member)
        description: Optional free text
        monthly_budget: Optional monthly budget
        yearly_budget: Optional yearly budget
        budget_period: Optional 4-digit budget year
        parent_cost_center_id: Optional parent forming the hierarchy
        is_active: Inactive centers cannot be chosen as parents
        actual_monthly_cost: Running monthly total, never reset by edits
        actual_yearly_cost: Running yearly total, never reset by edits
        budget_enforcement: Overrun policy for budget capacity checks
        over_budget_threshold: Percent over budget tolerated in warning mode
        created_at: Set once on create
        updated_at: Set on every committed change
    """

    id: str
    code: str
    name: str
    manager: str = ""
    description: str = ""
    monthly_budget: Optional[float] = None
    yearly_budget: Optional[float] = None
    budget_period: Optional[str] = None
    parent_cost_center_id: Optional[str] = None
    is_active: bool = True
    actual_monthly_cost: float = 0
    actual_yearly_cost: float = 0
    budget_enforcement: BudgetEnforcement = BudgetEnforcement.WARNING
    over_budget_threshold: float = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def snapshot(self) -> CostCenterSnapshot:
        return CostCenterSnapshot(id=self.id, code=self.code, name=self.name)

    @classmethod
    def from_dict(cls, data: dict) -> "CostCenter":
        is_active = data.get("is_active")
        if is_active is None:
            is_active = data.get("status", "Active") == "Active"
        budget_period = data.get("budget_period")
        return cls(
            id=str(data["id"]),
            code=text(data.get("code")),
            name=text(data.get("name")),
            manager=text(data.get("manager")),
            description=text(data.get("description")),
            monthly_budget=optional_float(data.get("monthly_budget")),
            yearly_budget=optional_float(data.get("yearly_budget")),
            budget_period=str(budget_period) if budget_period not in (None, "") else None,
            parent_cost_center_id=data.get("parent_cost_center_id") or None,
            is_active=bool(is_active),
            actual_monthly_cost=data.get("actual_monthly_cost", 0) or 0,
            actual_yearly_cost=data.get("actual_yearly_cost", 0) or 0,
            budget_enforcement=BudgetEnforcement(
                data.get("budget_enforcement") or BudgetEnforcement.WARNING.value
            ),
            over_budget_threshold=data.get("over_budget_threshold", 0) or 0,
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'manager': self.manager,
            'description': self.description,
            'monthly_budget': self.monthly_budget,
            'yearly_budget': self.yearly_budget,
            'budget_period': self.budget_period,
            'parent_cost_center_id': self.parent_cost_center_id,
            'is_active': self.is_active,
            'actual_monthly_cost': self.actual_monthly_cost,
            'actual_yearly_cost': self.actual_yearly_cost,
            'budget_enforcement': self.budget_enforcement.value,
            'over_budget_threshold': self.over_budget_threshold,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
