"""
Cost Entity - Resource cost tier (rate card).
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Cost:
    """
    Resource cost tier referenced by team members through `cost_tier_id`.

    Attributes:
        id: Unique identifier (e.g. 'beatrix')
        resource_name: Resource the rate applies to
        role_type: Optional role the tier belongs to
        tier_level: Optional seniority level (1-5)
        monthly_cost: Monthly rate
        per_day_cost: Daily rate, applied to workload in man-days
        per_hour_cost: Hourly rate
        currency: ISO currency code
    """

    id: str
    resource_name: str
    role_type: Optional[str] = None
    tier_level: Optional[int] = None
    monthly_cost: float = 0
    per_day_cost: float = 0
    per_hour_cost: float = 0
    currency: str = "IDR"

    @classmethod
    def from_dict(cls, data: dict) -> "Cost":
        return cls(
            id=str(data["id"]),
            resource_name=data.get("resource_name", ""),
            role_type=data.get("role_type"),
            tier_level=data.get("tier_level"),
            monthly_cost=data.get("monthly_cost", 0),
            per_day_cost=data.get("per_day_cost", 0),
            per_hour_cost=data.get("per_hour_cost", 0),
            currency=data.get("currency", "IDR"),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'resource_name': self.resource_name,
            'role_type': self.role_type,
            'tier_level': self.tier_level,
            'monthly_cost': self.monthly_cost,
            'per_day_cost': self.per_day_cost,
            'per_hour_cost': self.per_hour_cost,
            'currency': self.currency,
        }
