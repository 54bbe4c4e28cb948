"""
State Transitions - Pure handlers mapping (snapshot, intent) to a new snapshot.

Each intent type has exactly one handler registered in HANDLERS. Handlers
raise DomainError subclasses on rejection; apply_intent turns the outcome
into Ok(new_snapshot) or Err(error) and guarantees the input snapshot is
never partially modified.
"""
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from ledger.domain.entities import ChartOfAccount, ComplexityLevel, CostCenter, Settings
from ledger.domain.exceptions import (
    DomainError,
    ReferentialIntegrityViolation,
    ValidationFailure,
)
from ledger.domain.result import Err, Ok, Result
from ledger.domain.services.change_detector import has_allocation_changes
from ledger.domain.services.hierarchy import check_hierarchy, get_children
from ledger.domain.services.recalculation import recalculate_allocations
from ledger.domain.services.validation import (
    normalize_coa,
    normalize_cost_center,
    raise_if_invalid,
    stamp_timestamps,
    validate_coa,
    validate_cost_center,
)
from .defaults import default_snapshot
from .intents import (
    AddRecord,
    DeleteRecord,
    LoadState,
    RefreshSnapshots,
    ResetToDefaults,
    SetCollection,
    SetComplexity,
    UpdateComplexity,
    UpdateRecord,
    UpdateSettings,
)
from .snapshot import Collection, LedgerSnapshot, coerce_record

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def _coerce(collection: Collection, item: Any):
    """Build an entity from caller input, reporting malformed input as a validation failure."""
    try:
        return coerce_record(collection, item)
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationFailure([f"Invalid {collection.value} record: {e}"], entity_type=collection.value)


def _coerce_levels(
    levels: Any,
    existing: Optional[Mapping[str, ComplexityLevel]] = None,
) -> Dict[str, ComplexityLevel]:
    """
    Build complexity levels from caller input, collecting every malformed level.

    With existing, a dict value is laid over that entry's fields, so
    {'medium': {'hours': 56}} only changes hours.

    Raises:
        ValidationFailure: Levels not a mapping, or any level malformed
    """
    if not isinstance(levels, Mapping):
        raise ValidationFailure(
            [f"Complexity levels must be a mapping, got {type(levels).__name__}"],
            entity_type="complexity",
        )

    result: Dict[str, ComplexityLevel] = {}
    errors: List[str] = []
    for key, value in levels.items():
        level_key = str(key).lower()
        if isinstance(value, ComplexityLevel):
            result[level_key] = value
            continue
        current = (existing or {}).get(level_key)
        if current is not None and isinstance(value, Mapping):
            value = {**current.to_dict(), **value}
        try:
            result[level_key] = ComplexityLevel.from_dict(value, level=level_key)
        except (KeyError, TypeError, ValueError) as e:
            errors.append(str(e))

    raise_if_invalid(errors, "complexity")
    return result


def _replace_by_id(records: tuple, updated) -> tuple:
    return tuple(updated if r.id == updated.id else r for r in records)


def _prepare_cost_center(
    snapshot: LedgerSnapshot,
    center: CostCenter,
    previous: Optional[CostCenter],
    now: datetime,
) -> tuple:
    """
    Validate, normalize and place a cost center; return the new collection.

    Raises:
        ValidationFailure: Field rules violated
        HierarchyViolation: Parent invalid, cycle, or depth exceeded
    """
    exclude_id = previous.id if previous else None
    errors = validate_cost_center(center, snapshot.cost_centers, exclude_id=exclude_id, today=now.date())
    raise_if_invalid(errors, "cost_center")

    normalized = normalize_cost_center(center)
    if previous is not None:
        normalized = replace(
            normalized,
            actual_monthly_cost=previous.actual_monthly_cost,
            actual_yearly_cost=previous.actual_yearly_cost,
        )
    stamped = stamp_timestamps(normalized, previous, now)

    if previous is None:
        centers_after = snapshot.cost_centers + (stamped,)
    else:
        centers_after = _replace_by_id(snapshot.cost_centers, stamped)

    check_hierarchy(centers_after, stamped)
    return centers_after


def _prepare_coa(
    snapshot: LedgerSnapshot,
    account: ChartOfAccount,
    previous: Optional[ChartOfAccount],
    now: datetime,
) -> tuple:
    exclude_id = previous.id if previous else None
    raise_if_invalid(validate_coa(account, snapshot.coa, exclude_id=exclude_id), "coa")

    stamped = stamp_timestamps(normalize_coa(account), previous, now)
    if previous is None:
        return snapshot.coa + (stamped,)
    return _replace_by_id(snapshot.coa, stamped)


def _check_cost_center_deletable(snapshot: LedgerSnapshot, center: CostCenter) -> None:
    """
    Raises:
        ReferentialIntegrityViolation: Center has children or assigned members
    """
    reasons: List[str] = []
    children = get_children(snapshot.cost_centers, center.id)
    if children:
        reasons.append(
            f"Cannot delete cost center '{center.code}': it has {len(children)} child cost center(s)"
        )
    members = [m for m in snapshot.members if m.cost_center_id == center.id]
    if members:
        reasons.append(
            f"Cannot delete cost center '{center.code}': it is assigned to {len(members)} team member(s)"
        )
    if reasons:
        raise ReferentialIntegrityViolation("; ".join(reasons), record_id=center.id)


# =============================================================================
# Handlers
# =============================================================================

def _set_collection(snapshot: LedgerSnapshot, intent: SetCollection, now: datetime) -> LedgerSnapshot:
    items = tuple(_coerce(intent.collection, item) for item in intent.items)
    return snapshot.with_collection(intent.collection, items)


def _add_record(snapshot: LedgerSnapshot, intent: AddRecord, now: datetime) -> LedgerSnapshot:
    record = _coerce(intent.collection, intent.record)
    if snapshot.find(intent.collection, record.id) is not None:
        raise ValidationFailure(
            [f"A {intent.collection.value} record with id '{record.id}' already exists"],
            entity_type=intent.collection.value,
        )

    if intent.collection == Collection.COST_CENTERS:
        return snapshot.with_collection(
            intent.collection, _prepare_cost_center(snapshot, record, None, now)
        )
    if intent.collection == Collection.COA:
        return snapshot.with_collection(intent.collection, _prepare_coa(snapshot, record, None, now))

    return snapshot.with_collection(intent.collection, snapshot.get(intent.collection) + (record,))


def _update_record(snapshot: LedgerSnapshot, intent: UpdateRecord, now: datetime) -> LedgerSnapshot:
    record = _coerce(intent.collection, intent.record)
    previous = snapshot.find(intent.collection, record.id)
    if previous is None:
        logger.warning(f"Update ignored: no {intent.collection.value} record with id '{record.id}'")
        return snapshot

    if intent.collection == Collection.COST_CENTERS:
        return snapshot.with_collection(
            intent.collection, _prepare_cost_center(snapshot, record, previous, now)
        )
    if intent.collection == Collection.COA:
        return snapshot.with_collection(intent.collection, _prepare_coa(snapshot, record, previous, now))

    return snapshot.with_collection(
        intent.collection, _replace_by_id(snapshot.get(intent.collection), record)
    )


def _delete_record(snapshot: LedgerSnapshot, intent: DeleteRecord, now: datetime) -> LedgerSnapshot:
    previous = snapshot.find(intent.collection, intent.record_id)
    if previous is None:
        return snapshot

    if intent.collection == Collection.COST_CENTERS:
        _check_cost_center_deletable(snapshot, previous)

    remaining = tuple(r for r in snapshot.get(intent.collection) if r.id != intent.record_id)
    return snapshot.with_collection(intent.collection, remaining)


def _load_state(snapshot: LedgerSnapshot, intent: LoadState, now: datetime) -> LedgerSnapshot:
    changes: Dict[str, Any] = {}
    for collection in Collection:
        if intent.data.get(collection.value) is not None:
            changes[collection.value] = tuple(
                _coerce(collection, item) for item in intent.data[collection.value]
            )
    if intent.data.get("complexity") is not None:
        changes["complexity"] = _coerce_levels(intent.data["complexity"])
    if intent.data.get("settings") is not None:
        changes["settings"] = _validated_settings(Settings(), intent.data["settings"])

    logger.info(f"Loaded collections: {', '.join(changes) or 'none'}")
    return replace(snapshot, **changes)


def _reset_to_defaults(snapshot: LedgerSnapshot, intent: ResetToDefaults, now: datetime) -> LedgerSnapshot:
    logger.info("Resetting ledger to built-in defaults")
    return replace(default_snapshot(), settings=snapshot.settings)


def _set_complexity(snapshot: LedgerSnapshot, intent: SetComplexity, now: datetime) -> LedgerSnapshot:
    return snapshot.with_complexity(_coerce_levels(intent.levels))


def _update_complexity(snapshot: LedgerSnapshot, intent: UpdateComplexity, now: datetime) -> LedgerSnapshot:
    """Shallow-merge levels into the complexity map."""
    merged = dict(snapshot.complexity)
    merged.update(_coerce_levels(intent.levels, existing=snapshot.complexity))
    return snapshot.with_complexity(merged)


def _validated_settings(settings: Settings, changes: Mapping[str, Any]) -> Settings:
    try:
        return settings.merged(dict(changes))
    except PydanticValidationError as e:
        violations = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ValidationFailure(violations, entity_type="settings")


def _update_settings(snapshot: LedgerSnapshot, intent: UpdateSettings, now: datetime) -> LedgerSnapshot:
    return replace(snapshot, settings=_validated_settings(snapshot.settings, intent.changes))


def _refresh_snapshots(snapshot: LedgerSnapshot, intent: RefreshSnapshots, now: datetime) -> LedgerSnapshot:
    recalculated = recalculate_allocations(snapshot, force_snapshots=True)
    if not has_allocation_changes(snapshot.allocations, recalculated):
        return snapshot
    return snapshot.with_collection(Collection.ALLOCATIONS, recalculated)


Handler = Callable[[LedgerSnapshot, Any, datetime], LedgerSnapshot]

HANDLERS: Dict[type, Handler] = {
    SetCollection: _set_collection,
    AddRecord: _add_record,
    UpdateRecord: _update_record,
    DeleteRecord: _delete_record,
    LoadState: _load_state,
    ResetToDefaults: _reset_to_defaults,
    SetComplexity: _set_complexity,
    UpdateComplexity: _update_complexity,
    UpdateSettings: _update_settings,
    RefreshSnapshots: _refresh_snapshots,
}


def apply_intent(
    snapshot: LedgerSnapshot,
    intent: Any,
    now: Optional[datetime] = None,
) -> Result[LedgerSnapshot]:
    """
    Apply one intent to a snapshot.

    Args:
        snapshot: Current snapshot (never modified)
        intent: One of the intent dataclasses
        now: Timestamp for created_at/updated_at (defaults to current UTC time)

    Returns:
        Ok(new_snapshot) on commit, Ok(snapshot) for unknown intents or
        no-ops, Err(DomainError) on rejection
    """
    handler = HANDLERS.get(type(intent))
    if handler is None:
        logger.debug(f"Ignoring unknown intent {type(intent).__name__}")
        return Ok(snapshot)

    try:
        return Ok(handler(snapshot, intent, now or datetime.now(timezone.utc)))
    except DomainError as e:
        logger.info(f"{type(intent).__name__} rejected ({e.code}): {e.message}")
        return Err(e)
