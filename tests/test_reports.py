"""
Tests for tabular ledger reports.
"""
from dataclasses import replace

from ledger.domain.entities import Phase
from ledger.domain.services.reports import (
    ALLOCATION_COLUMNS,
    COST_CENTER_COLUMNS,
    allocations_frame,
    cost_center_summary,
    member_workloads,
)
from ledger.store import AddRecord, Collection, LedgerSnapshot, RefreshSnapshots

from conftest import make_allocation


class TestAllocationsFrame:
    """Tests for the flattened allocation table."""

    def test_columns_and_values(self, calc_store):
        """Test plan and snapshot fields are flattened."""
        frame = allocations_frame(calc_store.snapshot)
        assert list(frame.columns) == ALLOCATION_COLUMNS
        row = frame.iloc[0]
        assert row['cost_project'] == 500_000
        assert row['cost_center_code'] == "ENG"
        assert row['coa_code'] == "5001"
        assert row['category'] == "Project"

    def test_empty(self):
        """Test an empty snapshot gives an empty frame with columns."""
        frame = allocations_frame(LedgerSnapshot())
        assert frame.empty
        assert list(frame.columns) == ALLOCATION_COLUMNS


class TestCostCenterSummary:
    """Tests for spend per cost center."""

    def test_totals_per_center(self, calc_store):
        """Test allocation totals are grouped by cost center."""
        summary = cost_center_summary(calc_store.snapshot).set_index('cost_center_id')
        assert summary.loc["CC-1", 'allocation_count'] == 1
        assert summary.loc["CC-1", 'total_project_cost'] == 500_000
        assert summary.loc["CC-2", 'allocation_count'] == 0
        assert summary.loc["CC-2", 'total_monthly_cost'] == 0.0
        assert summary.loc["CC-1", 'depth'] == 1

    def test_utilization_uses_budget(self, calc_store):
        """Test utilization includes planned cost against the budget."""
        snapshot = calc_store.snapshot
        centers = [replace(snapshot.cost_centers[0], monthly_budget=1_000_000), snapshot.cost_centers[1]]
        snapshot = snapshot.with_collection(Collection.COST_CENTERS, centers)
        summary = cost_center_summary(snapshot).set_index('cost_center_id')
        assert summary.loc["CC-1", 'monthly_utilization_pct'] == 50.0
        assert summary.loc["CC-2", 'monthly_utilization_pct'] == 0.0

    def test_no_allocations(self, calc_snapshot):
        """Test centers are listed with zero totals when nothing is allocated."""
        summary = cost_center_summary(calc_snapshot)
        assert list(summary.columns) == COST_CENTER_COLUMNS
        assert summary['allocation_count'].tolist() == [0, 0]

    def test_no_centers(self):
        """Test an empty frame when there are no cost centers."""
        assert cost_center_summary(LedgerSnapshot()).empty


class TestMemberWorkloads:
    """Tests for per-member workload."""

    def test_workload_and_counts(self, calc_store):
        """Test active and completed allocations are counted per member."""
        calc_store.dispatch_or_raise(AddRecord(
            Collection.ALLOCATIONS, make_allocation("A2", status="completed")
        ))
        calc_store.dispatch_or_raise(RefreshSnapshots())
        frame = member_workloads(calc_store.snapshot).set_index('name')
        assert frame.loc["Alice", 'total_workload'] == 10.0
        assert frame.loc["Alice", 'active_count'] == 1
        assert frame.loc["Alice", 'completed_count'] == 1
        assert frame.loc["Bob", 'total_workload'] == 0.0

    def test_terminal_phase_counts_as_completed(self, calc_snapshot):
        """Test allocations in a terminal phase are completed."""
        snapshot = replace(
            calc_snapshot,
            phases=(Phase(id="8", name="Completed", is_terminal=True),),
            allocations=(make_allocation(phase="Completed", workload=2.0),),
        )
        frame = member_workloads(snapshot).set_index('name')
        assert frame.loc["Alice", 'completed_count'] == 1
        assert frame.loc["Alice", 'active_count'] == 0
