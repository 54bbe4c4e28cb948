"""
Recalculation Engine - Recomputes derived allocation fields.

Given the full ledger snapshot, every allocation's plan (end date, project
and monthly cost), workload and cost-center/COA snapshots are recomputed
from its member, complexity level, task template, cost tier, holidays and
leaves.

The engine is total: an allocation that cannot be resolved keeps its prior
values and the problem is logged, so one bad record never blocks the batch.
"""
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ledger.config import get_config
from ledger.domain.entities import (
    Allocation,
    ChartOfAccount,
    ComplexityLevel,
    Cost,
    CostCenter,
    Holiday,
    Leave,
    Plan,
    Task,
    TeamMember,
    WorkCategory,
)
from .calculations import (
    calculate_monthly_cost,
    calculate_plan_end_date,
    calculate_project_cost,
    find_cost_tier,
)

if TYPE_CHECKING:
    from ledger.store.snapshot import LedgerSnapshot

logger = logging.getLogger(__name__)


class UnresolvedAllocationError(Exception):
    """An allocation references a member or complexity level that does not exist."""


@dataclass(frozen=True)
class RecalculationContext:
    """Lookup tables built once per recalculation pass."""

    members_by_name: Dict[str, TeamMember]
    complexity: Dict[str, ComplexityLevel]
    costs: Tuple[Cost, ...]
    tasks_by_name: Dict[str, Task]
    holidays: Tuple[Holiday, ...]
    leaves: Tuple[Leave, ...]
    cost_centers_by_id: Dict[str, CostCenter]
    coa_by_id: Dict[str, ChartOfAccount]

    @classmethod
    def from_snapshot(cls, snapshot: "LedgerSnapshot") -> "RecalculationContext":
        return cls(
            members_by_name={m.name: m for m in snapshot.members},
            complexity={key.lower(): level for key, level in snapshot.complexity.items()},
            costs=tuple(snapshot.costs),
            tasks_by_name={t.name: t for t in snapshot.tasks},
            holidays=tuple(snapshot.holidays),
            leaves=tuple(snapshot.leaves),
            cost_centers_by_id={cc.id: cc for cc in snapshot.cost_centers},
            coa_by_id={coa.id: coa for coa in snapshot.coa},
        )


def is_calculable(allocation: Allocation) -> bool:
    """An allocation needs a start date, a resource and a complexity level."""
    return bool(allocation.plan.task_start and allocation.resource and allocation.complexity)


def calculate_workload(
    allocation: Allocation,
    level: ComplexityLevel,
    tasks_by_name: Dict[str, Task],
) -> float:
    """
    Man-days of effort for the allocation.

    Uses the task template's estimate for the allocation's complexity level
    when present, otherwise the complexity level's own workload.
    """
    task = tasks_by_name.get(allocation.task_name)
    estimate = task.estimate_for(level.level) if task else None
    if estimate is not None:
        return estimate.hours / get_config().hours_per_day
    return level.workload


def _assign_cost_center(
    allocation: Allocation,
    member: TeamMember,
    context: RecalculationContext,
    force_snapshots: bool,
) -> Allocation:
    cost_center_id = allocation.cost_center_id or member.cost_center_id
    if not cost_center_id:
        return allocation

    snapshot = allocation.cost_center_snapshot
    stale = snapshot is None or snapshot.id != cost_center_id
    center = context.cost_centers_by_id.get(cost_center_id)
    if center is not None and (stale or force_snapshots):
        snapshot = center.snapshot()
    elif center is None and stale:
        logger.warning(
            f"Allocation {allocation.id}: cost center '{cost_center_id}' not found, "
            f"keeping previous snapshot"
        )
    return replace(allocation, cost_center_id=cost_center_id, cost_center_snapshot=snapshot)


def _assign_coa(
    allocation: Allocation,
    member: TeamMember,
    context: RecalculationContext,
    force_snapshots: bool,
) -> Allocation:
    coa_id = allocation.coa_id or member.default_coa_id
    if not coa_id:
        return allocation

    snapshot = allocation.coa_snapshot
    stale = snapshot is None or snapshot.id != coa_id
    account = context.coa_by_id.get(coa_id)
    if account is not None and (stale or force_snapshots):
        snapshot = account.snapshot()
    elif account is None and stale:
        logger.warning(
            f"Allocation {allocation.id}: account '{coa_id}' not found, keeping previous snapshot"
        )
    return replace(allocation, coa_id=coa_id, coa_snapshot=snapshot)


def compute_plan(
    allocation: Allocation,
    context: RecalculationContext,
    force_snapshots: bool = False,
) -> Allocation:
    """
    Recompute one allocation's derived fields.

    Args:
        allocation: Allocation to recompute
        context: Lookup tables for the current snapshot
        force_snapshots: Re-capture cost-center/COA snapshots even when the
            assignment has not changed

    Returns:
        Allocation with plan, workload and snapshots refreshed

    Raises:
        UnresolvedAllocationError: Member or complexity level not found
    """
    member = context.members_by_name.get(allocation.resource)
    if member is None:
        raise UnresolvedAllocationError(f"member '{allocation.resource}' not found")

    level = context.complexity.get(allocation.complexity.lower())
    if level is None:
        raise UnresolvedAllocationError(f"complexity level '{allocation.complexity}' not found")

    start = allocation.plan.task_start
    task_end = calculate_plan_end_date(
        start, level, allocation.resource, context.holidays, context.leaves
    )

    # Support and maintenance work carries no project cost
    if allocation.category == WorkCategory.PROJECT:
        tier = find_cost_tier(context.costs, member, allocation.resource)
        cost_project = calculate_project_cost(level, tier)
    else:
        cost_project = 0.0

    plan = replace(
        allocation.plan,
        task_end=task_end,
        cost_project=cost_project,
        cost_monthly=calculate_monthly_cost(cost_project, start, task_end),
    )
    updated = replace(
        allocation,
        plan=plan,
        workload=calculate_workload(allocation, level, context.tasks_by_name),
    )
    updated = _assign_cost_center(updated, member, context, force_snapshots)
    return _assign_coa(updated, member, context, force_snapshots)


def recalculate_allocations(
    snapshot: "LedgerSnapshot",
    force_snapshots: bool = False,
) -> Tuple[Allocation, ...]:
    """
    Recompute every allocation in the snapshot.

    Never raises. Allocations missing a start date, resource or complexity
    are returned as-is; unresolvable ones keep their prior values.

    Args:
        snapshot: Current ledger snapshot
        force_snapshots: Re-capture all cost-center/COA snapshots

    Returns:
        New allocation tuple, position-aligned with snapshot.allocations
    """
    context = RecalculationContext.from_snapshot(snapshot)
    results = []
    unresolved = 0

    for allocation in snapshot.allocations:
        if not is_calculable(allocation):
            results.append(allocation)
            continue
        try:
            results.append(compute_plan(allocation, context, force_snapshots))
        except UnresolvedAllocationError as e:
            unresolved += 1
            logger.warning(f"Allocation {allocation.id} left unchanged: {e}")
            results.append(allocation)
        except Exception as e:
            unresolved += 1
            logger.error(f"Recalculation failed for allocation {allocation.id}: {e}", exc_info=True)
            results.append(allocation)

    if unresolved:
        logger.info(f"Recalculated {len(results) - unresolved}/{len(results)} allocations")

    return tuple(results)
