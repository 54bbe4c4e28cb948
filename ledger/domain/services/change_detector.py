"""
Allocation Change Detector.

Compares old vs. recomputed allocation lists field by field to decide
whether a recalculation is a no-op. Committing only real differences keeps
the post-commit recalculation hook from re-triggering itself.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Sequence, Tuple

from ledger.domain.entities import Allocation

logger = logging.getLogger(__name__)


# Derived fields whose difference makes a recalculation worth committing.
# Snapshot dataclasses compare by value, so == is a deep comparison.
TRACKED_FIELDS: Tuple[Tuple[str, Callable[[Allocation], Any]], ...] = (
    ("plan.cost_project", lambda a: a.plan.cost_project),
    ("plan.cost_monthly", lambda a: a.plan.cost_monthly),
    ("plan.task_end", lambda a: a.plan.task_end),
    ("workload", lambda a: a.workload),
    ("cost_center_id", lambda a: a.cost_center_id),
    ("cost_center_snapshot", lambda a: a.cost_center_snapshot),
    ("coa_id", lambda a: a.coa_id),
    ("coa_snapshot", lambda a: a.coa_snapshot),
)


@dataclass
class AllocationChange:
    """Represents a single changed derived field."""

    allocation_id: str
    field: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict:
        return {
            "allocation_id": self.allocation_id,
            "field": self.field,
            "old_value": _jsonable(self.old_value),
            "new_value": _jsonable(self.new_value),
        }


@dataclass
class AllocationChangeReport:
    """Report of all detected allocation changes."""

    changes: List[AllocationChange]
    length_changed: bool = False
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def has_changes(self) -> bool:
        return self.length_changed or len(self.changes) > 0

    @property
    def changed_allocation_ids(self) -> List[str]:
        seen = []
        for change in self.changes:
            if change.allocation_id not in seen:
                seen.append(change.allocation_id)
        return seen

    def to_dict(self) -> dict:
        return {
            "changes": [c.to_dict() for c in self.changes],
            "length_changed": self.length_changed,
            "changed_allocations": self.changed_allocation_ids,
            "timestamp": self.timestamp.isoformat(),
        }


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def has_allocation_changes(old: Sequence[Allocation], new: Sequence[Allocation]) -> bool:
    """
    Check whether any tracked derived field differs.

    Lists are aligned by position; a length mismatch counts as a change.
    """
    if len(old) != len(new):
        return True
    for before, after in zip(old, new):
        for _, getter in TRACKED_FIELDS:
            if getter(before) != getter(after):
                return True
    return False


def detect_allocation_changes(
    old: Sequence[Allocation],
    new: Sequence[Allocation],
) -> AllocationChangeReport:
    """
    Build a field-level report of derived changes between two lists.

    Args:
        old: Allocations before recalculation
        new: Allocations after recalculation (position-aligned)

    Returns:
        AllocationChangeReport
    """
    changes = []
    for before, after in zip(old, new):
        for name, getter in TRACKED_FIELDS:
            old_value, new_value = getter(before), getter(after)
            if old_value != new_value:
                changes.append(AllocationChange(
                    allocation_id=after.id,
                    field=name,
                    old_value=old_value,
                    new_value=new_value,
                ))

    report = AllocationChangeReport(changes=changes, length_changed=len(old) != len(new))
    if report.has_changes:
        logger.debug(
            f"Detected {len(changes)} field changes across "
            f"{len(report.changed_allocation_ids)} allocations"
        )
    return report
