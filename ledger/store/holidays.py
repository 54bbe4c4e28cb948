"""
Holiday refresh - Fetch holidays from an async feed and commit them to the store.

Refreshes may overlap. Each one takes a ticket when it starts; a result is
committed only if no refresh with a later ticket has committed already, so
the most recently issued successful refresh wins.
"""
import itertools
import logging
from typing import Optional

from ledger.domain.result import Result
from .intents import SetCollection
from .snapshot import Collection
from .store import LedgerStore

logger = logging.getLogger(__name__)


class HolidayRefreshCoordinator:
    """
    Serializes holiday feed results into SetCollection(HOLIDAYS, ...) intents.

    Attributes:
        store: The LedgerStore receiving the holidays
        feed: Object with an async fetch() -> list of holiday dicts
    """

    def __init__(self, store: LedgerStore, feed):
        self.store = store
        self.feed = feed
        self._tickets = itertools.count(1)
        self._last_committed = 0

    @property
    def last_committed_ticket(self) -> int:
        return self._last_committed

    async def refresh(self) -> Optional[Result]:
        """
        Fetch holidays and commit them unless a later refresh already has.

        Returns:
            The dispatch Result, or None when the fetch failed or the result
            was superseded
        """
        ticket = next(self._tickets)
        try:
            holidays = await self.feed.fetch()
        except Exception as e:
            logger.error(f"Holiday refresh #{ticket} failed: {e}")
            return None

        # No await between the ticket check and the dispatch
        if ticket < self._last_committed:
            logger.info(
                f"Discarding holiday refresh #{ticket}; #{self._last_committed} already committed"
            )
            return None

        result = self.store.dispatch(SetCollection(Collection.HOLIDAYS, holidays))
        if result.is_ok:
            self._last_committed = ticket
            logger.info(f"Holiday refresh #{ticket} committed {len(holidays)} holidays")
        else:
            logger.warning(f"Holiday refresh #{ticket} rejected: {result.error.message}")
        return result
