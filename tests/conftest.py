"""
Shared fixtures for ledger tests.
"""
from datetime import date, datetime, timezone

import pytest

from ledger.domain.entities import (
    Allocation,
    ChartOfAccount,
    ComplexityLevel,
    Cost,
    CostCenter,
    Plan,
    Task,
    TaskEstimate,
    TeamMember,
)
from ledger.store import (
    AddRecord,
    Collection,
    LedgerSnapshot,
    LedgerStore,
    RefreshSnapshots,
    default_snapshot,
)


NOW = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 1, 5)


def make_center(center_id: str, code: str, parent_id=None, **overrides) -> dict:
    """Cost center input dict with valid defaults."""
    data = {
        'id': center_id,
        'code': code,
        'name': f"Center {code}",
        'manager': "Jane Doe",
        'description': "",
        'parent_cost_center_id': parent_id,
        'is_active': True,
    }
    data.update(overrides)
    return data


def make_allocation(allocation_id: str = "A1", **overrides) -> Allocation:
    """Project allocation for Alice starting on a Monday."""
    values = {
        'id': allocation_id,
        'activity_name': "Billing revamp",
        'resource': "Alice",
        'task_name': "Custom Work",
        'phase': "Execution",
        'complexity': "medium",
        'plan': Plan(task_start=MONDAY),
    }
    values.update(overrides)
    return Allocation(**values)


@pytest.fixture
def seed_snapshot() -> LedgerSnapshot:
    """Snapshot built from the bundled seed data."""
    return default_snapshot()


@pytest.fixture
def seed_store(seed_snapshot) -> LedgerStore:
    """Store over seed data with a fixed clock."""
    return LedgerStore(seed_snapshot, clock=lambda: NOW)


@pytest.fixture
def calc_snapshot() -> LedgerSnapshot:
    """
    Small snapshot with round numbers and no holidays.

    Alice costs 100,000/day; 'medium' is 10 days / 40 hours (workload 5.0).
    """
    return LedgerSnapshot(
        members=(
            TeamMember(
                id="M1", name="Alice", cost_tier_id="alice",
                cost_center_id="CC-1", default_coa_id="COA-1",
            ),
            TeamMember(id="M2", name="Bob", cost_tier_id="bob"),
        ),
        tasks=(
            Task(
                id="T1", name="Build API", phase_id="3",
                estimates={'medium': TaskEstimate(days=2, hours=12)},
            ),
        ),
        complexity={
            'low': ComplexityLevel(level="low", label="Low", days=3, hours=16),
            'medium': ComplexityLevel(level="medium", label="Medium", days=10, hours=40),
        },
        costs=(
            Cost(id="alice", resource_name="Alice", per_day_cost=100000),
            Cost(id="bob", resource_name="Bob", per_day_cost=80000),
        ),
        cost_centers=(
            CostCenter(id="CC-1", code="ENG", name="Engineering", manager="Jane Doe"),
            CostCenter(id="CC-2", code="OPS", name="Operations", manager="Mike Ops"),
        ),
        coa=(
            ChartOfAccount(id="COA-1", code="5001", name="Basic Salary"),
            ChartOfAccount(id="COA-2", code="5004", name="Contractor Fees"),
        ),
    )


@pytest.fixture
def calc_store(calc_snapshot) -> LedgerStore:
    """Store over calc_snapshot with one computed allocation."""
    store = LedgerStore(calc_snapshot, clock=lambda: NOW)
    store.dispatch_or_raise(AddRecord(Collection.ALLOCATIONS, make_allocation()))
    store.dispatch_or_raise(RefreshSnapshots())
    return store
