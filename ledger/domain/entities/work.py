"""
Work Entities - Phases, task templates and complexity levels.

Complexity levels carry the effort figures that drive allocation
duration and cost.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ledger.config import get_config


@dataclass(frozen=True)
class Phase:
    """
    Ordered stage of work owning a list of task references.

    Attributes:
        id: Unique identifier
        name: Phase name (allocations reference phases by name)
        tasks: Ordered task IDs belonging to this phase
        sort_order: Display order
        is_terminal: Marks end-of-pipeline stages (e.g. 'Completed')
    """

    id: str
    name: str
    description: str = ""
    category: str = "Project"
    tasks: Tuple[str, ...] = ()
    sort_order: int = 0
    is_terminal: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Phase":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description", ""),
            category=data.get("category", "Project"),
            tasks=tuple(str(t) for t in data.get("tasks", [])),
            sort_order=data.get("sort_order", 0),
            is_terminal=data.get("is_terminal", False),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'tasks': list(self.tasks),
            'sort_order': self.sort_order,
            'is_terminal': self.is_terminal,
        }


@dataclass(frozen=True)
class TaskEstimate:
    """Effort estimate for one complexity level of a task."""

    days: float = 0
    hours: float = 0


@dataclass(frozen=True)
class Task:
    """Task template belonging to exactly one phase."""

    id: str
    name: str
    phase_id: str
    category: str = "Project"
    estimates: Dict[str, TaskEstimate] = field(default_factory=dict)

    def estimate_for(self, level: str) -> Optional[TaskEstimate]:
        return self.estimates.get(level.lower())

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        estimates = {
            str(level).lower(): TaskEstimate(
                days=values.get("days", 0),
                hours=values.get("hours", 0),
            )
            for level, values in (data.get("estimates") or {}).items()
        }
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            phase_id=str(data.get("phase_id", "")),
            category=data.get("category", "Project"),
            estimates=estimates,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'phase_id': self.phase_id,
            'category': self.category,
            'estimates': {
                level: {'days': e.days, 'hours': e.hours}
                for level, e in self.estimates.items()
            },
        }


def _check_effort(value: Any, name: str, level: str) -> None:
    """
    Raises:
        ValueError: If value is not a finite, non-negative number
    """
    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
    if not is_number or math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(
            f"Complexity level '{level}' {name} must be a non-negative number, got {value!r}"
        )


@dataclass(frozen=True)
class ComplexityLevel:
    """
    Complexity level keyed by name (low, medium, high, sophisticated).

    Workload is derived from hours on every access, so it can never drift
    from hours / hours_per_day.

    Attributes:
        level: Key in the complexity map
        label: Display label
        days: Duration in working days
        hours: Effort in hours
        color: Display color
    """

    level: str
    label: str = ""
    days: float = 0
    hours: float = 0
    color: str = ""

    def __post_init__(self):
        _check_effort(self.days, "days", self.level)
        _check_effort(self.hours, "hours", self.level)

    @property
    def workload(self) -> float:
        """Effort in man-days."""
        return self.hours / get_config().hours_per_day

    @classmethod
    def from_dict(cls, data: dict, level: Optional[str] = None) -> "ComplexityLevel":
        # A stored 'workload' is ignored; it is always re-derived from hours.
        if not isinstance(data, Mapping):
            raise TypeError(
                f"Complexity level '{level}' must be a mapping, got {type(data).__name__}"
            )
        key = level or data.get("level", "")
        return cls(
            level=str(key).lower(),
            label=data.get("label", str(key).title()),
            days=data.get("days", 0),
            hours=data.get("hours", 0),
            color=data.get("color", ""),
        )

    def to_dict(self) -> dict:
        return {
            'level': self.level,
            'label': self.label,
            'days': self.days,
            'hours': self.hours,
            'workload': self.workload,
            'color': self.color,
        }
