"""
Ledger Snapshot - The full set of entity collections at one point in time.

Snapshots are immutable: collections are tuples of frozen dataclasses and
the complexity map is a read-only mapping. A transition always produces a
new snapshot.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ledger.domain.entities import (
    Allocation,
    ChartOfAccount,
    ComplexityLevel,
    Cost,
    CostCenter,
    Holiday,
    Leave,
    Phase,
    Settings,
    Task,
    TeamMember,
)


class Collection(str, Enum):
    """Record collections addressable by generic intents."""
    MEMBERS = "members"
    PHASES = "phases"
    TASKS = "tasks"
    COSTS = "costs"
    HOLIDAYS = "holidays"
    LEAVES = "leaves"
    ALLOCATIONS = "allocations"
    COST_CENTERS = "cost_centers"
    COA = "coa"


RECORD_TYPES = {
    Collection.MEMBERS: TeamMember,
    Collection.PHASES: Phase,
    Collection.TASKS: Task,
    Collection.COSTS: Cost,
    Collection.HOLIDAYS: Holiday,
    Collection.LEAVES: Leave,
    Collection.ALLOCATIONS: Allocation,
    Collection.COST_CENTERS: CostCenter,
    Collection.COA: ChartOfAccount,
}

# Every persistable top-level key, in write order
PERSISTED_KEYS = (
    "members", "phases", "tasks", "complexity", "costs", "holidays",
    "leaves", "allocations", "cost_centers", "coa", "settings",
)

# Collections whose change makes allocations stale
RECALCULATION_TRIGGERS = (
    "costs", "complexity", "tasks", "holidays", "leaves",
    "members", "cost_centers", "coa",
)


def coerce_record(collection: Collection, item: Any):
    """Accept either an entity instance or its dict form."""
    record_type = RECORD_TYPES[collection]
    if isinstance(item, record_type):
        return item
    return record_type.from_dict(item)


def coerce_complexity(levels: Mapping[str, Any]) -> Dict[str, ComplexityLevel]:
    result = {}
    for key, value in levels.items():
        level_key = str(key).lower()
        if isinstance(value, ComplexityLevel):
            result[level_key] = value
        else:
            result[level_key] = ComplexityLevel.from_dict(value, level=level_key)
    return result


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Immutable ledger state.

    Attributes:
        members, phases, tasks, costs, holidays, leaves, allocations,
        cost_centers, coa: Record collections in insertion order
        complexity: Complexity levels keyed by level name
        settings: Application settings
    """

    members: Tuple[TeamMember, ...] = ()
    phases: Tuple[Phase, ...] = ()
    tasks: Tuple[Task, ...] = ()
    complexity: Mapping[str, ComplexityLevel] = field(default_factory=dict)
    costs: Tuple[Cost, ...] = ()
    holidays: Tuple[Holiday, ...] = ()
    leaves: Tuple[Leave, ...] = ()
    allocations: Tuple[Allocation, ...] = ()
    cost_centers: Tuple[CostCenter, ...] = ()
    coa: Tuple[ChartOfAccount, ...] = ()
    settings: Settings = field(default_factory=Settings)

    def __post_init__(self):
        for collection in Collection:
            object.__setattr__(self, collection.value, tuple(getattr(self, collection.value)))
        object.__setattr__(self, "complexity", MappingProxyType(dict(self.complexity)))

    def get(self, collection: Collection) -> tuple:
        return getattr(self, collection.value)

    def find(self, collection: Collection, record_id: str) -> Optional[Any]:
        for record in self.get(collection):
            if record.id == record_id:
                return record
        return None

    def with_collection(self, collection: Collection, items) -> "LedgerSnapshot":
        return replace(self, **{collection.value: tuple(items)})

    def with_complexity(self, levels: Mapping[str, ComplexityLevel]) -> "LedgerSnapshot":
        return replace(self, complexity=dict(levels))

    def changed_keys(self, other: "LedgerSnapshot") -> Tuple[str, ...]:
        """Top-level keys whose values differ from another snapshot."""
        return tuple(
            key for key in PERSISTED_KEYS
            if _comparable(getattr(self, key)) != _comparable(getattr(other, key))
        )

    def to_collections(self) -> Dict[str, Any]:
        """Serialize the eleven persistable collections/settings."""
        data: Dict[str, Any] = {
            collection.value: [record.to_dict() for record in self.get(collection)]
            for collection in Collection
        }
        data["complexity"] = {key: level.to_dict() for key, level in self.complexity.items()}
        data["settings"] = self.settings.model_dump()
        return {key: data[key] for key in PERSISTED_KEYS}

    @classmethod
    def from_collections(cls, data: Mapping[str, Any]) -> "LedgerSnapshot":
        """Build a snapshot from serialized collections (missing keys are empty)."""
        kwargs: Dict[str, Any] = {}
        for collection in Collection:
            items = data.get(collection.value) or ()
            kwargs[collection.value] = tuple(coerce_record(collection, item) for item in items)
        kwargs["complexity"] = coerce_complexity(data.get("complexity") or {})
        settings = data.get("settings")
        if isinstance(settings, Settings):
            kwargs["settings"] = settings
        else:
            kwargs["settings"] = Settings.model_validate(settings or {})
        return cls(**kwargs)


def _comparable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    return value
