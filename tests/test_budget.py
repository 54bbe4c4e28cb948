"""
Unit Tests for cost-center budget capacity.

Tests business rules:
- Projected spend = running actuals + planned allocation cost
- Strict mode rejects overruns, warning mode warns, none approves
- Health thresholds at 80% (warning) and 95% (critical)
"""
import pytest

from ledger.domain.entities import BudgetEnforcement, CostCenter, CostCenterSnapshot, Plan
from ledger.domain.exceptions import RecordNotFoundError
from ledger.domain.services.budget import (
    BudgetHealth,
    BudgetPeriod,
    BudgetService,
    BudgetValidationResult,
    format_currency,
)

from conftest import MONDAY, make_allocation


# =============================================================================
# Fixtures
# =============================================================================

def budget_center(**overrides) -> CostCenter:
    values = {
        'id': "CC-1",
        'code': "ENG",
        'name': "Engineering",
        'manager': "Jane Doe",
        'monthly_budget': 1_000_000,
        'yearly_budget': 12_000_000,
        'actual_monthly_cost': 200_000,
        'actual_yearly_cost': 2_000_000,
    }
    values.update(overrides)
    return CostCenter(**values)


@pytest.fixture
def planned_allocation():
    """Allocation charging 300,000/month and 3,000,000 in total to CC-1."""
    return make_allocation(
        cost_center_id="CC-1",
        cost_center_snapshot=CostCenterSnapshot(id="CC-1", code="ENG", name="Engineering"),
        plan=Plan(task_start=MONDAY, cost_project=3_000_000, cost_monthly=300_000),
    )


def service_for(center, allocations=()):
    return BudgetService([center], list(allocations))


# =============================================================================
# Spend
# =============================================================================

class TestSpend:
    """Tests for spend projections."""

    def test_projected_spend(self, planned_allocation):
        """Test actuals plus planned cost plus the new cost."""
        service = service_for(budget_center(), [planned_allocation])
        assert service.calculate_current_spend("CC-1") == 200_000
        assert service.calculate_pending_allocations_cost("CC-1") == 300_000
        assert service.calculate_projected_spend("CC-1", 100_000) == 600_000
        assert service.calculate_projected_spend("CC-1", 0, BudgetPeriod.YEARLY) == 5_000_000

    def test_available_and_utilization(self, planned_allocation):
        """Test remaining budget and utilization percentage."""
        service = service_for(budget_center(), [planned_allocation])
        assert service.get_available_budget("CC-1") == 500_000
        assert service.get_budget_utilization("CC-1") == 50.0

    def test_unknown_center(self):
        """Test unknown centers have no spend or budget."""
        service = service_for(budget_center())
        assert service.calculate_current_spend("CC-404") == 0.0
        assert service.get_available_budget("CC-404") == 0.0
        assert service.get_budget_utilization("CC-404") == 0.0

    def test_no_budget_zero_utilization(self):
        """Test a center without a budget reports 0% utilization."""
        service = service_for(budget_center(monthly_budget=None, yearly_budget=None))
        assert service.get_budget_utilization("CC-1") == 0.0


# =============================================================================
# Enforcement
# =============================================================================

class TestBudgetCapacity:
    """Tests for validate_budget_capacity under each enforcement mode."""

    def test_within_budget_approved(self, planned_allocation):
        """Test an allocation that fits is approved with the remaining budget."""
        service = service_for(budget_center(budget_enforcement=BudgetEnforcement.STRICT), [planned_allocation])
        check = service.validate_budget_capacity("CC-1", 400_000)
        assert check.approved
        assert check.message == "Budget validation passed: IDR 500,000 remaining in monthly budget"
        assert check.details['new_projected_spend'] == 900_000

    def test_strict_rejects_overrun(self, planned_allocation):
        """Test strict mode rejects any overrun."""
        service = service_for(budget_center(budget_enforcement=BudgetEnforcement.STRICT), [planned_allocation])
        check = service.validate_budget_capacity("CC-1", 600_000)
        assert check.result == BudgetValidationResult.REJECTED
        assert check.message == "Allocation rejected: Would exceed monthly budget by IDR 100,000"
        assert not service.has_sufficient_budget("CC-1", 600_000)

    def test_warning_past_threshold(self, planned_allocation):
        """Test warning mode reports utilization past the threshold."""
        service = service_for(budget_center(), [planned_allocation])
        check = service.validate_budget_capacity("CC-1", 600_000)
        assert check.result == BudgetValidationResult.WARNING
        assert "threshold (110.0% utilization)" in check.message

    def test_warning_within_threshold(self, planned_allocation):
        """Test an overrun inside the tolerated threshold still warns."""
        service = service_for(budget_center(over_budget_threshold=20), [planned_allocation])
        check = service.validate_budget_capacity("CC-1", 600_000)
        assert check.result == BudgetValidationResult.WARNING
        assert check.message == "Budget warning: Allocation would exceed monthly budget by IDR 100,000"
        assert check.details['max_allowed_spend'] == pytest.approx(1_200_000)

    def test_none_mode_approves(self, planned_allocation):
        """Test no enforcement approves overruns."""
        service = service_for(budget_center(budget_enforcement=BudgetEnforcement.NONE), [planned_allocation])
        assert service.validate_budget_capacity("CC-1", 5_000_000).approved

    def test_yearly_period(self, planned_allocation):
        """Test checks against the yearly budget."""
        service = service_for(budget_center(budget_enforcement=BudgetEnforcement.STRICT), [planned_allocation])
        check = service.validate_budget_capacity("CC-1", 8_000_000, BudgetPeriod.YEARLY)
        assert check.result == BudgetValidationResult.REJECTED
        assert "yearly budget by IDR 1,000,000" in check.message

    def test_unknown_center_rejected(self):
        """Test a missing cost center is rejected."""
        check = service_for(budget_center()).validate_budget_capacity("CC-404", 1)
        assert check.result == BudgetValidationResult.REJECTED
        assert check.message == "Cost center not found"
        assert check.to_dict()['result'] == "rejected"


# =============================================================================
# Status
# =============================================================================

class TestBudgetStatus:
    """Tests for budget health."""

    @pytest.mark.parametrize("actual_monthly,expected", [
        (200_000, BudgetHealth.HEALTHY),
        (550_000, BudgetHealth.WARNING),
        (660_000, BudgetHealth.CRITICAL),
        (750_000, BudgetHealth.OVER_BUDGET),
    ])
    def test_health_thresholds(self, planned_allocation, actual_monthly, expected):
        """Test health follows the higher utilization."""
        service = service_for(budget_center(actual_monthly_cost=actual_monthly), [planned_allocation])
        assert service.get_budget_status("CC-1").status == expected

    def test_no_budget(self):
        """Test centers without budgets."""
        service = service_for(budget_center(monthly_budget=None, yearly_budget=None))
        assert service.get_budget_status("CC-1").status == BudgetHealth.NO_BUDGET

    def test_status_fields(self, planned_allocation):
        """Test projected totals and rounded utilization."""
        status = service_for(budget_center(), [planned_allocation]).get_budget_status("CC-1")
        assert status.monthly_projected == 500_000
        assert status.yearly_projected == 5_000_000
        assert status.yearly_utilization == 41.67
        assert status.to_dict()['status'] == "healthy"

    def test_unknown_center_raises(self):
        """Test status lookup for a missing center."""
        with pytest.raises(RecordNotFoundError):
            service_for(budget_center()).get_budget_status("CC-404")

    def test_over_budget_list(self, planned_allocation):
        """Test over-budget centers and their overage."""
        service = service_for(budget_center(actual_monthly_cost=900_000), [planned_allocation])
        over = service.get_over_budget_cost_centers()
        assert len(over) == 1
        assert over[0]['overage_amount'] == 200_000

    def test_format_currency(self):
        """Test thousands separators and currency prefix."""
        assert format_currency(1234567) == "IDR 1,234,567"
        assert format_currency(50, "USD") == "USD 50"
