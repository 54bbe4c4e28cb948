"""
Ledger State Store - Immutable snapshots, intents and the store that applies them.
"""

from .snapshot import Collection, LedgerSnapshot, PERSISTED_KEYS, RECALCULATION_TRIGGERS
from .intents import (
    AddRecord,
    DeleteRecord,
    Intent,
    LoadState,
    RefreshSnapshots,
    ResetToDefaults,
    SetCollection,
    SetComplexity,
    UpdateComplexity,
    UpdateRecord,
    UpdateSettings,
)
from .transitions import apply_intent
from .store import LedgerStore
from .defaults import default_snapshot, load_seed_data
from .loader import bootstrap_store, merge_with_defaults
from .holidays import HolidayRefreshCoordinator

__all__ = [
    'Collection',
    'LedgerSnapshot',
    'PERSISTED_KEYS',
    'RECALCULATION_TRIGGERS',
    'AddRecord',
    'DeleteRecord',
    'Intent',
    'LoadState',
    'RefreshSnapshots',
    'ResetToDefaults',
    'SetCollection',
    'SetComplexity',
    'UpdateComplexity',
    'UpdateRecord',
    'UpdateSettings',
    'apply_intent',
    'LedgerStore',
    'default_snapshot',
    'load_seed_data',
    'bootstrap_store',
    'merge_with_defaults',
    'HolidayRefreshCoordinator',
]
