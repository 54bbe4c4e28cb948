"""
Ledger Store - Owns the current snapshot and applies intents in order.

After every committed transition the store diffs the recalculation-trigger
collections by value. When one changed and allocations exist, the
Recalculation Engine runs and its result is committed only if the
Change-Detector reports a tracked difference. Subscribers are notified with
the serialized collections after each commit.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ledger.domain.exceptions import DomainError
from ledger.domain.result import Ok, Result
from ledger.domain.services.change_detector import detect_allocation_changes
from ledger.domain.services.recalculation import recalculate_allocations
from .snapshot import RECALCULATION_TRIGGERS, Collection, LedgerSnapshot
from .transitions import apply_intent

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class LedgerStore:
    """
    Single-writer holder of the ledger snapshot.

    Example:
        store = LedgerStore(default_snapshot())
        store.subscribe(storage.save)
        result = store.dispatch(AddRecord(Collection.COST_CENTERS, {...}))
        if not result.is_ok:
            print(result.error.message)
    """

    def __init__(
        self,
        initial_snapshot: Optional[LedgerSnapshot] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._snapshot = initial_snapshot or LedgerSnapshot()
        self._listeners: List[Listener] = []
        self._clock = clock
        self.last_error: Optional[DomainError] = None

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a persist hook called with snapshot.to_collections().

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, intent: Any) -> Result[LedgerSnapshot]:
        """
        Apply one intent and, on commit, run the recalculation hook.

        Returns:
            Ok(committed_snapshot) or Err(DomainError); on Err the current
            snapshot is untouched and last_error is set.
        """
        previous = self._snapshot
        now = self._clock() if self._clock else None
        result = apply_intent(previous, intent, now)

        if not result.is_ok:
            self.last_error = result.error
            return result

        self.last_error = None
        committed = result.value
        if committed is previous:
            return result

        committed = self._recalculate_if_stale(previous, committed)
        self._snapshot = committed
        self._notify()
        return Ok(committed)

    def dispatch_or_raise(self, intent: Any) -> LedgerSnapshot:
        """
        Raises:
            DomainError: The intent was rejected
        """
        return self.dispatch(intent).unwrap()

    def _recalculate_if_stale(self, previous: LedgerSnapshot, committed: LedgerSnapshot) -> LedgerSnapshot:
        changed = [key for key in committed.changed_keys(previous) if key in RECALCULATION_TRIGGERS]
        if not changed or not committed.allocations:
            return committed

        recalculated = recalculate_allocations(committed)
        report = detect_allocation_changes(committed.allocations, recalculated)
        if not report.has_changes:
            logger.debug(f"Recalculation after {', '.join(changed)} changed nothing")
            return committed

        logger.info(
            f"Recalculated {len(report.changed_allocation_ids)} allocations "
            f"after change to {', '.join(changed)}"
        )
        return committed.with_collection(Collection.ALLOCATIONS, recalculated)

    def _notify(self) -> None:
        collections = self._snapshot.to_collections()
        for listener in list(self._listeners):
            try:
                listener(collections)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)
