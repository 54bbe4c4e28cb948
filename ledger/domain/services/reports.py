"""
Reports Module - Tabular summaries of the ledger.

Builds pandas DataFrames from a read-only snapshot:
cost-center spend vs. budget and per-member workload.
"""
import logging
from typing import TYPE_CHECKING

import pandas as pd

from .budget import BudgetPeriod, BudgetService
from .hierarchy import get_hierarchy_depth

if TYPE_CHECKING:
    from ledger.store.snapshot import LedgerSnapshot

logger = logging.getLogger(__name__)


ALLOCATION_COLUMNS = [
    'id', 'activity_name', 'resource', 'task_name', 'phase', 'complexity', 'category',
    'status', 'task_start', 'task_end', 'cost_project', 'cost_monthly', 'workload',
    'cost_center_id', 'cost_center_code', 'coa_id', 'coa_code',
]

COST_CENTER_COLUMNS = [
    'cost_center_id', 'code', 'name', 'depth', 'is_active', 'allocation_count',
    'total_project_cost', 'total_monthly_cost', 'monthly_budget', 'yearly_budget',
    'monthly_utilization_pct', 'yearly_utilization_pct',
]

MEMBER_COLUMNS = ['member_id', 'name', 'type', 'total_workload', 'active_count', 'completed_count']


def allocations_frame(snapshot: "LedgerSnapshot") -> pd.DataFrame:
    """One row per allocation with flattened plan and snapshot columns."""
    rows = []
    for a in snapshot.allocations:
        rows.append({
            'id': a.id,
            'activity_name': a.activity_name,
            'resource': a.resource,
            'task_name': a.task_name,
            'phase': a.phase,
            'complexity': a.complexity,
            'category': a.category.value,
            'status': a.status,
            'task_start': a.plan.task_start,
            'task_end': a.plan.task_end,
            'cost_project': float(a.plan.cost_project),
            'cost_monthly': float(a.plan.cost_monthly),
            'workload': float(a.workload),
            'cost_center_id': a.cost_center_id,
            'cost_center_code': a.cost_center_snapshot.code if a.cost_center_snapshot else None,
            'coa_id': a.coa_id,
            'coa_code': a.coa_snapshot.code if a.coa_snapshot else None,
        })
    if not rows:
        return pd.DataFrame(columns=ALLOCATION_COLUMNS)
    return pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)


def cost_center_summary(snapshot: "LedgerSnapshot") -> pd.DataFrame:
    """
    Spend vs. budget per cost center.

    Allocation totals are grouped by assigned cost_center_id; utilization
    uses the same projection as BudgetService (actuals plus planned cost).
    """
    if not snapshot.cost_centers:
        return pd.DataFrame(columns=COST_CENTER_COLUMNS)

    allocations = allocations_frame(snapshot)
    if allocations.empty:
        totals = pd.DataFrame(columns=['allocation_count', 'total_project_cost', 'total_monthly_cost'])
    else:
        totals = allocations.dropna(subset=['cost_center_id']).groupby('cost_center_id').agg(
            allocation_count=('id', 'count'),
            total_project_cost=('cost_project', 'sum'),
            total_monthly_cost=('cost_monthly', 'sum'),
        )

    budget = BudgetService(snapshot.cost_centers, snapshot.allocations)
    rows = []
    for center in snapshot.cost_centers:
        in_totals = center.id in totals.index
        rows.append({
            'cost_center_id': center.id,
            'code': center.code,
            'name': center.name,
            'depth': get_hierarchy_depth(snapshot.cost_centers, center.id),
            'is_active': center.is_active,
            'allocation_count': int(totals.loc[center.id, 'allocation_count']) if in_totals else 0,
            'total_project_cost': float(totals.loc[center.id, 'total_project_cost']) if in_totals else 0.0,
            'total_monthly_cost': float(totals.loc[center.id, 'total_monthly_cost']) if in_totals else 0.0,
            'monthly_budget': center.monthly_budget,
            'yearly_budget': center.yearly_budget,
            'monthly_utilization_pct': round(
                budget.get_budget_utilization(center.id, BudgetPeriod.MONTHLY), 2
            ),
            'yearly_utilization_pct': round(
                budget.get_budget_utilization(center.id, BudgetPeriod.YEARLY), 2
            ),
        })

    summary = pd.DataFrame(rows, columns=COST_CENTER_COLUMNS)
    logger.debug(f"Built cost center summary for {len(summary)} centers")
    return summary


def member_workloads(snapshot: "LedgerSnapshot") -> pd.DataFrame:
    """
    Total workload and active/completed counts per team member.

    An allocation counts as completed when its status is 'completed' or its
    phase is a terminal phase.
    """
    if not snapshot.members:
        return pd.DataFrame(columns=MEMBER_COLUMNS)

    terminal_phases = {p.name for p in snapshot.phases if p.is_terminal}
    allocations = allocations_frame(snapshot)

    if allocations.empty:
        grouped = pd.DataFrame(columns=['total_workload', 'active_count', 'completed_count'])
    else:
        allocations['completed'] = (
            allocations['status'].str.lower().eq('completed')
            | allocations['phase'].isin(terminal_phases)
        )
        grouped = allocations.groupby('resource').agg(
            total_workload=('workload', 'sum'),
            completed_count=('completed', 'sum'),
            total_count=('id', 'count'),
        )
        grouped['active_count'] = grouped['total_count'] - grouped['completed_count']

    rows = []
    for member in snapshot.members:
        found = member.name in grouped.index
        rows.append({
            'member_id': member.id,
            'name': member.name,
            'type': member.type.value,
            'total_workload': float(grouped.loc[member.name, 'total_workload']) if found else 0.0,
            'active_count': int(grouped.loc[member.name, 'active_count']) if found else 0,
            'completed_count': int(grouped.loc[member.name, 'completed_count']) if found else 0,
        })
    return pd.DataFrame(rows, columns=MEMBER_COLUMNS)
