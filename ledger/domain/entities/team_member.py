"""
Team Member Entity - A resource that can be allocated to tasks.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RoleType(str, Enum):
    """Role a team member plays."""
    BA = "BA"
    PM = "PM"
    FULLSTACK = "FULLSTACK"
    BACKEND = "BACKEND"
    FRONTEND = "FRONTEND"
    QA = "QA"
    DEVOPS = "DEVOPS"
    UIUX = "UIUX"
    ARCHITECT = "ARCHITECT"
    CLOUD = "CLOUD"
    FINOPS = "FINOPS"


@dataclass(frozen=True)
class TeamMember:
    """
    Team member available for allocation.

    Attributes:
        id: Unique identifier
        name: Display name, referenced by allocations as `resource`
        type: Role type
        max_hours_per_week: Weekly capacity
        is_active: Whether the member can take new work
        cost_tier_id: Reference to a Cost tier used for rate lookup
        cost_center_id: Assigned cost center (blocks deletion of that center)
        default_coa_id: Account inherited by the member's allocations
    """

    id: str
    name: str
    type: RoleType = RoleType.BA
    max_hours_per_week: float = 40
    is_active: bool = True
    cost_tier_id: Optional[str] = None
    cost_center_id: Optional[str] = None
    default_coa_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TeamMember":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            type=RoleType(data.get("type", RoleType.BA.value)),
            max_hours_per_week=data.get("max_hours_per_week", 40),
            is_active=data.get("is_active", True),
            cost_tier_id=data.get("cost_tier_id") or None,
            cost_center_id=data.get("cost_center_id") or None,
            default_coa_id=data.get("default_coa_id") or None,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'max_hours_per_week': self.max_hours_per_week,
            'is_active': self.is_active,
            'cost_tier_id': self.cost_tier_id,
            'cost_center_id': self.cost_center_id,
            'default_coa_id': self.default_coa_id,
        }
