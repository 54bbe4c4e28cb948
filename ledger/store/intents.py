"""
Ledger Intents - The closed set of mutations the store accepts.

Each intent is a frozen dataclass; the transition module registers one
pure handler per intent type.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Union

from .snapshot import Collection


@dataclass(frozen=True)
class SetCollection:
    """Replace a whole collection."""
    collection: Collection
    items: Sequence[Any]


@dataclass(frozen=True)
class AddRecord:
    """Append a record; its ID must not already exist."""
    collection: Collection
    record: Any


@dataclass(frozen=True)
class UpdateRecord:
    """Replace the record with the same ID."""
    collection: Collection
    record: Any


@dataclass(frozen=True)
class DeleteRecord:
    """Remove the record with the given ID."""
    collection: Collection
    record_id: str


@dataclass(frozen=True)
class LoadState:
    """Bulk replace of several collections at startup."""
    data: Mapping[str, Any]


@dataclass(frozen=True)
class ResetToDefaults:
    """Replace everything with seed data; leaves and allocations are cleared."""


@dataclass(frozen=True)
class SetComplexity:
    """Replace the complexity map."""
    levels: Mapping[str, Any]


@dataclass(frozen=True)
class UpdateComplexity:
    """Shallow-merge levels into the complexity map."""
    levels: Mapping[str, Any]


@dataclass(frozen=True)
class UpdateSettings:
    """Shallow-merge top-level settings keys."""
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RefreshSnapshots:
    """Recalculate all allocations and re-capture their cost-center/COA snapshots."""


Intent = Union[
    SetCollection,
    AddRecord,
    UpdateRecord,
    DeleteRecord,
    LoadState,
    ResetToDefaults,
    SetComplexity,
    UpdateComplexity,
    UpdateSettings,
    RefreshSnapshots,
]
