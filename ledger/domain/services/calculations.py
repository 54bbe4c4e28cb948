"""
Calculation helpers for allocation plans.

Working-day arithmetic (WORKDAY equivalent), month spreading and
cost-tier lookup. All functions are pure.
"""
import math
from datetime import date
from typing import Iterable, Optional, Sequence

import numpy as np

from ledger.config import get_config
from ledger.domain.entities import ComplexityLevel, Cost, Holiday, Leave, TeamMember


def add_workdays(start: date, num_days: float, excluded: Iterable[date] = ()) -> date:
    """
    Return the num_days-th working day after start.

    Weekends and excluded dates are skipped; start itself is never counted.
    A non-positive count returns start unchanged.

    Args:
        start: Start date
        num_days: Number of working days to add (fractions round up)
        excluded: Holiday and leave dates to skip

    Returns:
        Resulting date
    """
    days = math.ceil(num_days)
    if days <= 0:
        return start

    holidays = np.array(sorted(set(excluded)), dtype="datetime64[D]")
    # A non-working start rolls back to the previous working day before counting
    result = np.busday_offset(
        np.datetime64(start, "D"), days, roll="backward", holidays=holidays
    )
    return result.item()


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def excluded_dates_for(
    resource: str,
    holidays: Iterable[Holiday],
    leaves: Iterable[Leave],
) -> Sequence[date]:
    """Holiday dates plus every leave day of the named member."""
    excluded = [h.date for h in holidays]
    for leave in leaves:
        if leave.member_name == resource:
            excluded.extend(leave.dates())
    return excluded


def calculate_plan_end_date(
    start: date,
    level: ComplexityLevel,
    resource: str,
    holidays: Iterable[Holiday],
    leaves: Iterable[Leave],
) -> date:
    """=WORKDAY(TaskStart, ComplexityDays, Holidays + Leaves)"""
    return add_workdays(start, level.days, excluded_dates_for(resource, holidays, leaves))


def find_cost_tier(
    costs: Iterable[Cost],
    member: Optional[TeamMember],
    resource: str,
) -> Optional[Cost]:
    """
    Resolve the cost tier for a member.

    Matches the member's cost_tier_id against tier IDs first, then falls back
    to a case-insensitive resource-name match on the tier ID or the
    resource name.
    """
    costs = list(costs)
    tier_id = member.cost_tier_id if member else None
    if tier_id:
        for cost in costs:
            if cost.id == tier_id:
                return cost

    keys = {k.lower() for k in (tier_id, resource) if k}
    for cost in costs:
        if cost.resource_name.lower() in keys:
            return cost
    return None


def calculate_project_cost(level: ComplexityLevel, tier: Optional[Cost]) -> float:
    """Workload (man-days) x the tier's daily rate; 0 without a tier."""
    if tier is None:
        return 0.0
    return level.workload * tier.per_day_cost


def calculate_monthly_cost(project_cost: float, start: date, end: date) -> float:
    """=CostProject / DATEDIF(StartDate, EndDate, "m"), at least one month."""
    months = max(months_between(start, end), get_config().min_months)
    return project_cost / months
