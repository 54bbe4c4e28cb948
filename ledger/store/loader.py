"""
Startup loading - Merge stored collections with seed defaults and build the store.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from .defaults import load_seed_data
from .intents import LoadState, ResetToDefaults
from .snapshot import PERSISTED_KEYS, LedgerSnapshot
from .store import LedgerStore

logger = logging.getLogger(__name__)


def merge_with_defaults(loaded: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Fill absent keys from seed data.

    A key is absent when missing or None; an empty list is a stored value and
    is kept. Complexity levels are merged so stored levels override defaults
    while levels that were never stored still exist. Settings are merged the
    same way.

    Args:
        loaded: Mapping of key -> stored value (or None)

    Returns:
        Dict with every persisted key present
    """
    loaded = loaded or {}
    defaults = load_seed_data()
    merged: Dict[str, Any] = {}

    for key in PERSISTED_KEYS:
        stored = loaded.get(key)
        default = defaults.get(key)
        if key in ("complexity", "settings"):
            merged[key] = {**(default or {}), **(stored or {})}
        elif stored is None:
            merged[key] = default if default is not None else []
        else:
            merged[key] = stored

    return merged


def bootstrap_store(loader, migrator=None, clock=None) -> LedgerStore:
    """
    Build a LedgerStore from persisted state.

    Steps: run the migrator (if any), load, merge with defaults, then commit
    the result as a LoadState intent so the recalculation hook brings derived
    allocation fields up to date. When no members are stored the store starts
    from ResetToDefaults instead.

    Args:
        loader: Object with load() -> Mapping[str, Optional[Any]]
        migrator: Optional object with migrate() -> MigrationResult
        clock: Optional callable returning the current datetime

    Returns:
        LedgerStore ready for dispatch

    Raises:
        DomainError: Stored records could not be loaded
    """
    if migrator is not None:
        outcome = migrator.migrate()
        if outcome.migrated:
            logger.info(f"Migrated stored data from {outcome.from_version} to {outcome.version}")
        else:
            logger.info(f"Stored data is at schema version {outcome.version}")

    loaded = loader.load() or {}
    store = LedgerStore(LedgerSnapshot(), clock=clock)

    if not loaded.get("members"):
        logger.info("No stored team members, starting from defaults")
        store.dispatch_or_raise(ResetToDefaults())
        return store

    store.dispatch_or_raise(LoadState(merge_with_defaults(loaded)))
    snapshot = store.snapshot
    logger.info(
        f"Loaded {len(snapshot.members)} members, {len(snapshot.allocations)} allocations, "
        f"{len(snapshot.cost_centers)} cost centers"
    )
    return store
