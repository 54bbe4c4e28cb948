"""
Allocation Entity - Time-boxed assignment of a member to a task.

Plan figures, workload and the cost-center/COA snapshots are derived by the
recalculation engine; callers only supply the assignment itself.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from .base import format_date, parse_date
from .coa import CoaSnapshot
from .cost_center import CostCenterSnapshot


class WorkCategory(str, Enum):
    """Kind of work; only Project work carries cost."""
    PROJECT = "Project"
    SUPPORT = "Support"
    MAINTENANCE = "Maintenance"


@dataclass(frozen=True)
class Plan:
    """
    Planned schedule and cost of an allocation.

    Attributes:
        task_start: Planned start date (caller supplied)
        task_end: Derived end date (working-day adjusted)
        cost_project: Derived total cost
        cost_monthly: Derived cost spread per month
    """

    task_start: Optional[date] = None
    task_end: Optional[date] = None
    cost_project: float = 0.0
    cost_monthly: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Plan":
        data = data or {}
        return cls(
            task_start=parse_date(data.get("task_start")),
            task_end=parse_date(data.get("task_end")),
            cost_project=data.get("cost_project", 0.0) or 0.0,
            cost_monthly=data.get("cost_monthly", 0.0) or 0.0,
        )

    def to_dict(self) -> dict:
        return {
            'task_start': format_date(self.task_start),
            'task_end': format_date(self.task_end),
            'cost_project': self.cost_project,
            'cost_monthly': self.cost_monthly,
        }


@dataclass(frozen=True)
class Allocation:
    """
    Assignment record linking a member, a task/phase, a time window
    and a cost-center/COA snapshot.

    Attributes:
        id: Unique identifier
        activity_name: Description of the work
        resource: Team member name
        task_name: Task template name
        phase: Phase name
        complexity: Complexity level key
        category: Project, Support or Maintenance
        status: Task status
        plan: Planned schedule and cost
        workload: Derived effort in man-days
        cost_center_id: Assigned cost center
        cost_center_snapshot: Cost center identity at calculation time
        coa_id: Assigned account
        coa_snapshot: Account identity at calculation time
    """

    id: str
    activity_name: str = ""
    resource: str = ""
    task_name: str = ""
    phase: str = ""
    complexity: str = "medium"
    category: WorkCategory = WorkCategory.PROJECT
    status: str = "open"
    plan: Plan = field(default_factory=Plan)
    workload: float = 0.0
    cost_center_id: Optional[str] = None
    cost_center_snapshot: Optional[CostCenterSnapshot] = None
    coa_id: Optional[str] = None
    coa_snapshot: Optional[CoaSnapshot] = None
    remarks: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Allocation":
        return cls(
            id=str(data["id"]),
            activity_name=data.get("activity_name", ""),
            resource=data.get("resource", ""),
            task_name=data.get("task_name", ""),
            phase=data.get("phase", ""),
            complexity=data.get("complexity", "") or "",
            category=WorkCategory(data.get("category") or WorkCategory.PROJECT.value),
            status=data.get("status", "open"),
            plan=Plan.from_dict(data.get("plan")),
            workload=data.get("workload", 0.0) or 0.0,
            cost_center_id=data.get("cost_center_id") or None,
            cost_center_snapshot=CostCenterSnapshot.from_dict(data.get("cost_center_snapshot")),
            coa_id=data.get("coa_id") or None,
            coa_snapshot=CoaSnapshot.from_dict(data.get("coa_snapshot")),
            remarks=data.get("remarks", ""),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'activity_name': self.activity_name,
            'resource': self.resource,
            'task_name': self.task_name,
            'phase': self.phase,
            'complexity': self.complexity,
            'category': self.category.value,
            'status': self.status,
            'plan': self.plan.to_dict(),
            'workload': self.workload,
            'cost_center_id': self.cost_center_id,
            'cost_center_snapshot': (
                self.cost_center_snapshot.to_dict() if self.cost_center_snapshot else None
            ),
            'coa_id': self.coa_id,
            'coa_snapshot': self.coa_snapshot.to_dict() if self.coa_snapshot else None,
            'remarks': self.remarks,
        }
