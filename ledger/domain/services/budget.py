"""
Budget Service - Cost-center budget capacity and enforcement.

Projects spend for a cost center from its running actuals plus the planned
costs of allocations assigned to it, and checks new allocation costs
against the center's budget under its enforcement mode.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ledger.config import get_config
from ledger.domain.entities import Allocation, BudgetEnforcement, CostCenter
from ledger.domain.exceptions import RecordNotFoundError


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetValidationResult(str, Enum):
    APPROVED = "approved"
    WARNING = "warning"
    REJECTED = "rejected"


class BudgetHealth(str, Enum):
    NO_BUDGET = "no_budget"
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    OVER_BUDGET = "over_budget"


@dataclass
class BudgetValidation:
    """Outcome of a budget capacity check."""

    result: BudgetValidationResult
    message: str
    details: Dict = field(default_factory=dict)

    @property
    def approved(self) -> bool:
        return self.result == BudgetValidationResult.APPROVED

    def to_dict(self) -> dict:
        return {'result': self.result.value, 'message': self.message, 'details': self.details}


@dataclass
class BudgetStatus:
    """Budget position of one cost center for both periods."""

    cost_center_id: str
    cost_center_name: str
    monthly_budget: float
    yearly_budget: float
    monthly_projected: float
    yearly_projected: float
    monthly_utilization: float
    yearly_utilization: float
    status: BudgetHealth

    def to_dict(self) -> dict:
        return {
            'cost_center_id': self.cost_center_id,
            'cost_center_name': self.cost_center_name,
            'monthly_budget': self.monthly_budget,
            'yearly_budget': self.yearly_budget,
            'monthly_projected': self.monthly_projected,
            'yearly_projected': self.yearly_projected,
            'monthly_utilization': self.monthly_utilization,
            'yearly_utilization': self.yearly_utilization,
            'status': self.status.value,
        }


def format_currency(amount: float, currency: str = "IDR") -> str:
    return f"{currency} {amount:,.0f}"


class BudgetService:
    """
    Budget capacity calculations over a read-only view of the ledger.

    Usage:
        service = BudgetService(snapshot.cost_centers, snapshot.allocations)
        check = service.validate_budget_capacity("CC-001", 5_000_000)
        if not check.approved:
            print(check.message)
    """

    def __init__(self, cost_centers: Sequence[CostCenter], allocations: Sequence[Allocation]):
        self.cost_centers = list(cost_centers)
        self.allocations = list(allocations)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_cost_center(self, cost_center_id: str) -> Optional[CostCenter]:
        for center in self.cost_centers:
            if center.id == cost_center_id:
                return center
        return None

    def _require(self, cost_center_id: str) -> CostCenter:
        center = self.get_cost_center(cost_center_id)
        if center is None:
            raise RecordNotFoundError("cost_centers", cost_center_id)
        return center

    @staticmethod
    def _budget(center: CostCenter, period: BudgetPeriod) -> float:
        value = center.monthly_budget if period == BudgetPeriod.MONTHLY else center.yearly_budget
        return float(value or 0)

    # =========================================================================
    # Spend
    # =========================================================================

    def calculate_current_spend(self, cost_center_id: str, period: BudgetPeriod = BudgetPeriod.MONTHLY) -> float:
        """Running actual cost recorded on the cost center."""
        center = self.get_cost_center(cost_center_id)
        if center is None:
            return 0.0
        if period == BudgetPeriod.MONTHLY:
            return float(center.actual_monthly_cost)
        return float(center.actual_yearly_cost)

    def calculate_pending_allocations_cost(
        self,
        cost_center_id: str,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
    ) -> float:
        """
        Planned cost of allocations assigned to the cost center.

        Monthly sums plan.cost_monthly; yearly sums plan.cost_project.
        """
        total = 0.0
        for allocation in self.allocations:
            snapshot_id = allocation.cost_center_snapshot.id if allocation.cost_center_snapshot else None
            if allocation.cost_center_id != cost_center_id and snapshot_id != cost_center_id:
                continue
            if period == BudgetPeriod.MONTHLY:
                total += allocation.plan.cost_monthly
            else:
                total += allocation.plan.cost_project
        return total

    def calculate_projected_spend(
        self,
        cost_center_id: str,
        additional_cost: float = 0,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
    ) -> float:
        return (
            self.calculate_current_spend(cost_center_id, period)
            + self.calculate_pending_allocations_cost(cost_center_id, period)
            + additional_cost
        )

    def get_available_budget(self, cost_center_id: str, period: BudgetPeriod = BudgetPeriod.MONTHLY) -> float:
        center = self.get_cost_center(cost_center_id)
        if center is None:
            return 0.0
        remaining = self._budget(center, period) - self.calculate_projected_spend(cost_center_id, 0, period)
        return max(0.0, remaining)

    def get_budget_utilization(self, cost_center_id: str, period: BudgetPeriod = BudgetPeriod.MONTHLY) -> float:
        """Projected spend as a percentage of budget (0 when no budget)."""
        center = self.get_cost_center(cost_center_id)
        if center is None:
            return 0.0
        budget = self._budget(center, period)
        if budget == 0:
            return 0.0
        return self.calculate_projected_spend(cost_center_id, 0, period) / budget * 100

    # =========================================================================
    # Enforcement
    # =========================================================================

    def get_budget_enforcement_mode(self, cost_center_id: str) -> BudgetEnforcement:
        center = self.get_cost_center(cost_center_id)
        if center is None:
            return BudgetEnforcement.NONE
        return center.budget_enforcement or BudgetEnforcement(get_config().default_budget_enforcement)

    def validate_budget_capacity(
        self,
        cost_center_id: str,
        allocation_cost: float,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
    ) -> BudgetValidation:
        """
        Check whether a new allocation cost fits the cost center's budget.

        Args:
            cost_center_id: Cost center to charge
            allocation_cost: Cost of the new allocation
            period: Budget period to check against

        Returns:
            BudgetValidation (approved, warning or rejected)
        """
        center = self.get_cost_center(cost_center_id)
        if center is None:
            return BudgetValidation(
                result=BudgetValidationResult.REJECTED,
                message="Cost center not found",
                details={
                    'cost_center_id': cost_center_id,
                    'allocation_cost': allocation_cost,
                    'period': period.value,
                },
            )

        mode = self.get_budget_enforcement_mode(cost_center_id)
        total_budget = self._budget(center, period)
        current_projected = self.calculate_projected_spend(cost_center_id, 0, period)
        new_projected = current_projected + allocation_cost
        available = total_budget - current_projected
        utilization = (new_projected / total_budget * 100) if total_budget > 0 else 0.0
        threshold = float(center.over_budget_threshold or 0)
        max_allowed = total_budget * (1 + threshold / 100)

        details = {
            'cost_center_id': cost_center_id,
            'cost_center_name': center.name,
            'allocation_cost': allocation_cost,
            'period': period.value,
            'total_budget': total_budget,
            'current_projected_spend': current_projected,
            'new_projected_spend': new_projected,
            'available_budget': available,
            'utilization_after_allocation': round(utilization, 2),
            'enforcement_mode': mode.value,
            'over_budget_threshold': threshold,
            'max_allowed_spend': max_allowed,
        }

        overrun = format_currency(new_projected - total_budget)
        exceeds_budget = new_projected > total_budget
        exceeds_threshold = new_projected > max_allowed

        if mode == BudgetEnforcement.STRICT and exceeds_budget:
            return BudgetValidation(
                result=BudgetValidationResult.REJECTED,
                message=f"Allocation rejected: Would exceed {period.value} budget by {overrun}",
                details=details,
            )

        if mode == BudgetEnforcement.WARNING:
            if exceeds_threshold:
                return BudgetValidation(
                    result=BudgetValidationResult.WARNING,
                    message=(
                        f"Budget warning: Allocation would exceed {period.value} budget "
                        f"threshold ({utilization:.1f}% utilization)"
                    ),
                    details=details,
                )
            if exceeds_budget:
                return BudgetValidation(
                    result=BudgetValidationResult.WARNING,
                    message=f"Budget warning: Allocation would exceed {period.value} budget by {overrun}",
                    details=details,
                )

        return BudgetValidation(
            result=BudgetValidationResult.APPROVED,
            message=(
                f"Budget validation passed: {format_currency(available)} "
                f"remaining in {period.value} budget"
            ),
            details=details,
        )

    def has_sufficient_budget(
        self,
        cost_center_id: str,
        allocation_cost: float,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
    ) -> bool:
        return self.validate_budget_capacity(cost_center_id, allocation_cost, period).approved

    # =========================================================================
    # Status
    # =========================================================================

    def get_budget_status(self, cost_center_id: str) -> BudgetStatus:
        """
        Budget position of a cost center.

        Health is derived from the higher of monthly and yearly utilization.

        Raises:
            RecordNotFoundError: If the cost center does not exist
        """
        center = self._require(cost_center_id)
        config = get_config()

        monthly_util = self.get_budget_utilization(cost_center_id, BudgetPeriod.MONTHLY)
        yearly_util = self.get_budget_utilization(cost_center_id, BudgetPeriod.YEARLY)
        peak = max(monthly_util, yearly_util)

        if not center.monthly_budget and not center.yearly_budget:
            status = BudgetHealth.NO_BUDGET
        elif peak > 100:
            status = BudgetHealth.OVER_BUDGET
        elif peak >= config.critical_utilization:
            status = BudgetHealth.CRITICAL
        elif peak >= config.warning_utilization:
            status = BudgetHealth.WARNING
        else:
            status = BudgetHealth.HEALTHY

        return BudgetStatus(
            cost_center_id=center.id,
            cost_center_name=center.name,
            monthly_budget=self._budget(center, BudgetPeriod.MONTHLY),
            yearly_budget=self._budget(center, BudgetPeriod.YEARLY),
            monthly_projected=self.calculate_projected_spend(cost_center_id, 0, BudgetPeriod.MONTHLY),
            yearly_projected=self.calculate_projected_spend(cost_center_id, 0, BudgetPeriod.YEARLY),
            monthly_utilization=round(monthly_util, 2),
            yearly_utilization=round(yearly_util, 2),
            status=status,
        )

    def get_all_budget_statuses(self) -> List[BudgetStatus]:
        return [self.get_budget_status(center.id) for center in self.cost_centers]

    def get_over_budget_cost_centers(self, period: BudgetPeriod = BudgetPeriod.MONTHLY) -> List[dict]:
        """Cost centers whose projected spend exceeds budget."""
        over = []
        for center in self.cost_centers:
            utilization = self.get_budget_utilization(center.id, period)
            if utilization <= 100:
                continue
            over.append({
                'cost_center': center,
                'utilization': utilization,
                'overage_amount': (
                    self.calculate_projected_spend(center.id, 0, period) - self._budget(center, period)
                ),
            })
        return over
